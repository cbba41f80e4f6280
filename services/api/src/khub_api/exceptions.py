"""应用异常处理注册。"""

from http import HTTPStatus
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from khub_api.services.validation import localize_error
from khub_api.utils.response import DEFAULT_ERROR_MESSAGE, error_payload, request_id_of

logger = logging.getLogger("khub_api.errors")


def _default_http_error_code(status_code: int) -> str:
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "BAD_REQUEST"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "UNAUTHORIZED"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "FORBIDDEN"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "NOT_FOUND"
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return "METHOD_NOT_ALLOWED"
    if status_code == status.HTTP_409_CONFLICT:
        return "CONFLICT"
    if status_code >= 500:
        return "SERVER_ERROR"
    return "HTTP_ERROR"


def _default_http_message(status_code: int) -> str:
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "请求参数不合法。"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "未登录或登录状态已失效。"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "无权限访问该资源。"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "请求资源不存在。"
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return "不支持的请求方法。"
    if status_code == status.HTTP_409_CONFLICT:
        return "请求与当前数据状态冲突。"
    if status_code >= 500:
        return DEFAULT_ERROR_MESSAGE
    return "请求处理失败。"


def _parse_http_detail(detail: object, status_code: int) -> tuple[str, str, dict[str, object]]:
    code = _default_http_error_code(status_code)
    message = _default_http_message(status_code)
    extra: dict[str, object] = {}

    if isinstance(detail, dict):
        code = str(detail.get("code") or code)
        message = str(detail.get("message") or message)
        for key, value in detail.items():
            if key in {"code", "message", "error", "request_id"}:
                continue
            extra[key] = value
        return code, message, extra

    # 框架默认 detail（如 "Not Found"）不直接透出，统一使用本地化文案。
    if isinstance(detail, str) and detail and detail != _starlette_phrase(status_code):
        message = detail
    return code, message, extra


def _starlette_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """将协议异常统一包装为标准错误结构。"""
    code, message, extra = _parse_http_detail(exc.detail, exc.status_code)
    if exc.status_code >= 500:
        logger.warning(
            "request failed status=%s code=%s path=%s request_id=%s",
            exc.status_code,
            code,
            request.url.path,
            request_id_of(request),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(request, code=code, message=message, extra=extra),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """框架层参数错误（非法 JSON、查询参数类型错误）统一返回 400 与第一条违规信息。"""
    errors = exc.errors()
    violation = localize_error(errors[0]) if errors else None
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(
            request,
            code="VALIDATION_ERROR",
            message=violation.message if violation else _default_http_message(status.HTTP_400_BAD_REQUEST),
            extra={"field": violation.field} if violation else None,
        ),
    )


async def unexpected_exception_handler(request: Request, exc: Exception):
    """处理未捕获异常，记录日志并避免内部细节泄露。"""
    logger.exception(
        "unhandled error method=%s path=%s request_id=%s",
        request.method,
        request.url.path,
        request_id_of(request),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(request, code="INTERNAL_ERROR", message=DEFAULT_ERROR_MESSAGE),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """集中注册异常处理器。"""
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(unexpected_exception_handler)
