"""工具与学习资料模型。"""

from uuid import UUID

from sqlalchemy import Boolean, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Tool(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """工具条目。"""

    __tablename__ = "tools"

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    official_url: Mapped[str | None] = mapped_column(String(2048))
    # 使用前提。
    prerequisites: Mapped[str | None] = mapped_column(Text)
    # 常见错误。
    common_mistakes: Mapped[str | None] = mapped_column(Text)
    # 最佳实践。
    best_practices: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[UUID | None] = mapped_column(index=True)
    # 掌握程度，指向 kind=mastery_level 的字典项。
    mastery_level_id: Mapped[UUID | None] = mapped_column()
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Lesson(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """工具下的学习课程。"""

    __tablename__ = "lessons"

    tool_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    url: Mapped[str | None] = mapped_column(String(2048))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LearningPath(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """学习路径。"""

    __tablename__ = "learning_paths"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class LearningPathTool(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """学习路径包含的工具。"""

    __tablename__ = "learning_path_tools"
    __table_args__ = (UniqueConstraint("learning_path_id", "tool_id", name="uk_learning_path_tool"),)

    learning_path_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    tool_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
