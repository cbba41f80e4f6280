"""活动日志模型。"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import INET, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, UUIDPrimaryKeyMixin, utc_now


class ActivityLog(Base, UUIDPrimaryKeyMixin):
    """只追加的操作审计记录，应用层从不修改或删除。"""

    __tablename__ = "activity_logs"

    workspace_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    # 操作人用户 ID。
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    # 动作（CREATE/UPDATE/DELETE/ARCHIVE）。
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    # 实体类型，例如 Tool/Tweet/Prompt。
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(128), nullable=False)
    # 简短可读标题（截断后的名称或正文）。
    entity_title: Mapped[str | None] = mapped_column(String(256))
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONB)
    # 客户端 IP。
    ip: Mapped[str | None] = mapped_column(INET)
    # 客户端 User-Agent。
    user_agent: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False
    )
