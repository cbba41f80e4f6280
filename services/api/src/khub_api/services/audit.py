"""活动日志服务。

活动日志在业务事务提交之后单独提交：写入失败只记录告警，
不回滚、也不影响已经成功的业务变更。
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khub_api.models.activity import ActivityLog
from khub_api.services.session import RequestContext
from khub_api.utils.text import truncate

logger = logging.getLogger("khub_api.activity")

ENTITY_TITLE_LENGTH = 50


def _client_ip(request: Request) -> str | None:
    """从代理头或连接信息中提取客户端 IP。"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def record_activity(
    db: Session,
    request: Request,
    ctx: RequestContext,
    *,
    action: str,
    entity_type: str,
    entity_id: UUID | str,
    entity_title: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> bool:
    """追加一条活动记录，返回是否写入成功。"""
    title = truncate(entity_title, ENTITY_TITLE_LENGTH) if entity_title else None
    try:
        db.add(
            ActivityLog(
                workspace_id=ctx.workspace_id,
                user_id=ctx.user_id,
                action=str(action),
                entity_type=str(entity_type),
                entity_id=str(entity_id),
                entity_title=title,
                metadata_=metadata,
                ip=_client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "activity log write failed action=%s entity=%s:%s request_id=%s",
            action,
            entity_type,
            entity_id,
            getattr(request.state, "request_id", None),
            exc_info=True,
        )
        return False
    return True


def list_activity(db: Session, ctx: RequestContext, *, limit: int = 20) -> list[ActivityLog]:
    """按时间倒序读取当前工作空间的活动记录。"""
    return list(
        db.execute(
            select(ActivityLog)
            .where(ActivityLog.workspace_id == ctx.workspace_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        .scalars()
        .all()
    )
