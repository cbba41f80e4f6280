"""提示词及其版本、变量、测试记录模型。"""

from uuid import UUID

from sqlalchemy import Boolean, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Prompt(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """提示词模板，正文中使用 `{{variable}}` 占位。"""

    __tablename__ = "prompts"

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[UUID | None] = mapped_column(index=True)
    # 所有非空测试评分的算术平均值，没有评分时保持为空。
    rating: Mapped[float | None] = mapped_column(Float)
    # 详情被查看的次数。
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class PromptVersion(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """提示词正文历史版本。"""

    __tablename__ = "prompt_versions"
    __table_args__ = (UniqueConstraint("prompt_id", "version", name="uk_prompt_version"),)

    prompt_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    change_note: Mapped[str | None] = mapped_column(Text)


class PromptVariable(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """从正文中提取出的变量名。"""

    __tablename__ = "prompt_variables"
    __table_args__ = (UniqueConstraint("prompt_id", "name", name="uk_prompt_variable"),)

    prompt_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)


class PromptTest(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """一次提示词测试执行结果。"""

    __tablename__ = "prompt_tests"

    prompt_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    input: Mapped[str | None] = mapped_column(Text)
    output: Mapped[str] = mapped_column(Text, nullable=False)
    is_success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    # 1-5 的整数评分，可为空。
    rating: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    model: Mapped[str | None] = mapped_column(String(128))
