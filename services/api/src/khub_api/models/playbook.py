"""操作手册模型：手册由有序步骤组成，步骤可引用提示词、工具与推文。"""

from uuid import UUID

from sqlalchemy import Boolean, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Playbook(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """操作手册。"""

    __tablename__ = "playbooks"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class PlaybookStep(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """手册步骤，按 order 升序展示。"""

    __tablename__ = "playbook_steps"

    playbook_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PlaybookStepItem(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """步骤引用的内容。"""

    __tablename__ = "playbook_step_items"
    __table_args__ = (UniqueConstraint("step_id", "entity_type", "entity_id", name="uk_playbook_step_item"),)

    step_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    # 被引用实体类型（Prompt/Tool/Tweet）。
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    # 同类引用内的先后顺序。
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
