"""推文/笔记模型。"""

from uuid import UUID

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Tweet(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """收藏的推文或笔记。"""

    __tablename__ = "tweets"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    source_url: Mapped[str | None] = mapped_column(String(2048))
    # 重要性说明。
    importance: Mapped[str | None] = mapped_column(Text)
    # 使用方式备注。
    how_to_use: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[UUID | None] = mapped_column(index=True)
    benefit_type_id: Mapped[UUID | None] = mapped_column()
    content_type_id: Mapped[UUID | None] = mapped_column()
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
