"""请求上下文依赖。

职责:
1. 从会话 Cookie 或 Bearer 头读取会话令牌。
2. 调用会话解析得到用户与当前工作空间。
3. 解析失败统一返回 401，不区分“未登录”与“无工作空间”。
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from khub_api.core.config import get_settings
from khub_api.db.session import get_db
from khub_api.services.session import RequestContext, resolve_session

bearer_scheme = HTTPBearer(auto_error=False)

UNAUTHORIZED_MESSAGE = "未登录或登录状态已失效。"


def unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "UNAUTHORIZED", "message": UNAUTHORIZED_MESSAGE},
    )


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """提取会话令牌，Bearer 头优先于 Cookie。"""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(get_settings().auth_session_cookie_name)


def get_optional_context(
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> RequestContext | None:
    """解析会话，失败时返回 None。"""
    return resolve_session(db, token)


def get_request_context(
    ctx: RequestContext | None = Depends(get_optional_context),
) -> RequestContext:
    """工作空间内接口的统一入口，要求已解析到工作空间。"""
    if ctx is None:
        raise unauthorized()
    return ctx
