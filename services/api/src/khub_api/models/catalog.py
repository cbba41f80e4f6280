"""分类、标签与分类字典模型。"""

from uuid import UUID

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Category(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """内容分类。"""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    # 可选展示颜色，例如 #6366f1。
    color: Mapped[str | None] = mapped_column(String(32))
    # 可选图标名称。
    icon: Mapped[str | None] = mapped_column(String(64))


class Tag(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """标签，工作空间内名称唯一。"""

    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("workspace_id", "name", name="uk_tag_name"),)

    name: Mapped[str] = mapped_column(String(64), nullable=False)
    color: Mapped[str | None] = mapped_column(String(32))


class TagLink(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """标签与实体的多对多关联。"""

    __tablename__ = "tag_links"
    # 同一实体重复关联同一标签在存储层即被拒绝，上层据此实现幂等关联。
    __table_args__ = (UniqueConstraint("entity_type", "entity_id", "tag_id", name="uk_tag_link"),)

    # 被关联实体类型（Tool/Tweet/Prompt/Playbook）。
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    tag_id: Mapped[UUID] = mapped_column(nullable=False, index=True)


class TaxonomyItem(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """分类字典项（收益类型/内容类型/掌握程度）。"""

    __tablename__ = "taxonomy_items"

    kind: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
