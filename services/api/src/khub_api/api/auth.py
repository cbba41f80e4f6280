"""认证接口。"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from khub_api.core.config import get_settings
from khub_api.core.security import InvalidSessionToken, decode_session_token, revoke_token_jti
from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context, get_session_token
from khub_api.models.user import User
from khub_api.schemas.auth import AuthLoginRequest, AuthRegisterRequest
from khub_api.schemas.common import ErrorResponse
from khub_api.schemas.responses import AuthLoginData, AuthLogoutData, AuthMeData, AuthRegisterData
from khub_api.services.local_auth import hash_password, issue_session_token, normalize_email, verify_password
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.validation import parse_payload
from khub_api.services.workspace_bootstrap import create_workspace_with_owner

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("khub_api.auth")


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "INVALID_CREDENTIALS", "message": "邮箱或密码错误。"},
    )


@router.post(
    "/register",
    summary="注册账号",
    description="创建用户、工作空间与所有者成员关系，并写入默认分类与分类字典。",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthRegisterData,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def register(
    payload: dict[str, Any] | None = Body(default=None),
    db: Session = Depends(get_db),
):
    """注册账号，所有写入在同一事务中完成。"""
    data = parse_payload(AuthRegisterRequest, payload)
    email = normalize_email(data.email)

    existing = db.execute(select(User.id).where(User.email == email)).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "EMAIL_TAKEN", "message": "该邮箱已注册。"},
        )

    with persistence_errors(db, "注册失败，请稍后重试。"):
        user = User(email=email, password_hash=hash_password(data.password), name=data.name.strip())
        db.add(user)
        db.flush()
        workspace = create_workspace_with_owner(db, owner=user, workspace_name=data.workspace_name.strip())
        db.commit()

    logger.info("user registered user_id=%s workspace_id=%s", user.id, workspace.id)
    return {
        "message": "账号创建成功。",
        "user": {"id": user.id, "email": user.email, "name": user.name, "avatar": user.avatar},
        "workspace": {"id": workspace.id, "name": workspace.name, "slug": workspace.slug},
    }


@router.post(
    "/login",
    summary="登录",
    description="校验邮箱密码，签发会话令牌并写入会话 Cookie。",
    status_code=status.HTTP_200_OK,
    response_model=AuthLoginData,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def login(
    response: Response,
    payload: dict[str, Any] | None = Body(default=None),
    db: Session = Depends(get_db),
):
    """登录并签发会话令牌。"""
    data = parse_payload(AuthLoginRequest, payload)
    user = db.execute(select(User).where(User.email == normalize_email(data.email))).scalar_one_or_none()
    if user is None or not verify_password(data.password, user.password_hash):
        raise _invalid_credentials()

    token, expires_at = issue_session_token(user)
    settings = get_settings()
    response.set_cookie(
        key=settings.auth_session_cookie_name,
        value=token,
        max_age=settings.auth_access_token_ttl_seconds,
        httponly=True,
        secure=settings.auth_session_cookie_secure,
        samesite="lax",
    )
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_at": expires_at,
        "user": {"id": user.id, "email": user.email, "name": user.name, "avatar": user.avatar},
    }


@router.post(
    "/logout",
    summary="登出",
    description="将当前会话令牌加入黑名单（优先 Redis）并清除会话 Cookie。",
    status_code=status.HTTP_200_OK,
    response_model=AuthLogoutData,
)
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
):
    """登出；没有有效令牌时同样返回成功，仅不做吊销。"""
    revoked = False
    if token:
        try:
            claims = decode_session_token(token)
        except InvalidSessionToken:
            claims = {}
        jti = claims.get("jti")
        exp = claims.get("exp")
        if isinstance(jti, str) and jti and isinstance(exp, int):
            revoke_token_jti(jti, exp)
            revoked = True

    response.delete_cookie(get_settings().auth_session_cookie_name)
    return {"logged_out": True, "revoked": revoked}


@router.get(
    "/me",
    summary="当前会话",
    description="返回当前用户与其绑定的工作空间。",
    response_model=AuthMeData,
    responses={401: {"model": ErrorResponse}},
)
def me(ctx: RequestContext = Depends(get_request_context)):
    return {
        "user_id": ctx.user_id,
        "workspace_id": ctx.workspace_id,
        "workspace_name": ctx.workspace_name,
        "role": ctx.role,
    }
