"""统一错误响应结构工具。"""

from typing import Any

from fastapi import Request

DEFAULT_ERROR_MESSAGE = "服务器内部错误，请稍后重试。"


def request_id_of(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def error_payload(request: Request, code: str, message: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """构造统一错误响应结构，`error` 字段始终是面向用户的可读信息。"""
    payload: dict[str, Any] = {
        "error": message,
        "code": code,
        "request_id": request_id_of(request),
    }
    if extra:
        payload.update(extra)
    return payload
