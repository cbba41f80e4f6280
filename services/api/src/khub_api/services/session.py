"""会话解析。

由会话令牌确定当前用户及其“当前工作空间”：
1. 解码令牌得到用户 ID。
2. 按成员关系创建时间升序读取该用户的工作空间成员关系。
3. 绑定第一条成员关系。

解析失败一律返回 None，不抛异常；是否拒绝请求由各接口决定。
"""

from dataclasses import dataclass
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khub_api.core.security import InvalidSessionToken, decode_session_token
from khub_api.models.workspace import Workspace, WorkspaceMember

logger = logging.getLogger("khub_api.session")


@dataclass(frozen=True)
class RequestContext:
    """请求上下文，路由层统一输入。"""

    # 当前请求用户 ID。
    user_id: UUID
    # 当前绑定的工作空间 ID。
    workspace_id: UUID
    # 当前工作空间名称。
    workspace_name: str
    # 当前用户在该工作空间内的角色。
    role: str


def resolve_user_id(token: str | None) -> UUID | None:
    """解码令牌并返回用户 ID。"""
    if not token:
        return None
    try:
        claims = decode_session_token(token)
    except InvalidSessionToken as exc:
        logger.debug("session token rejected: %s", exc)
        return None
    try:
        return UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        return None


def resolve_session(db: Session, token: str | None) -> RequestContext | None:
    """解析会话令牌为请求上下文，无法解析或没有工作空间时返回 None。"""
    user_id = resolve_user_id(token)
    if user_id is None:
        return None

    try:
        row = db.execute(
            select(WorkspaceMember, Workspace)
            .join(Workspace, Workspace.id == WorkspaceMember.workspace_id)
            .where(WorkspaceMember.user_id == user_id)
            .order_by(WorkspaceMember.created_at.asc(), WorkspaceMember.id.asc())
            .limit(1)
        ).first()
    except SQLAlchemyError as exc:
        logger.warning("workspace membership lookup failed: %s", exc)
        return None
    if row is None:
        # 已认证但没有任何工作空间，对外与未认证等价。
        return None

    member, workspace = row
    return RequestContext(
        user_id=user_id,
        workspace_id=workspace.id,
        workspace_name=workspace.name,
        role=member.role,
    )
