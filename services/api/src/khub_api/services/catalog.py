"""分类、标签与分类字典服务。"""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from khub_api.models.catalog import Category, Tag, TaxonomyItem
from khub_api.models.enums import EntityType, TaxonomyKind
from khub_api.models.prompt import Prompt
from khub_api.models.tool import Tool
from khub_api.models.tweet import Tweet
from khub_api.services.repository import ScopedRepository, ensure_ids_in_workspace
from khub_api.services.session import RequestContext
from khub_api.services.tags import detach_tag_everywhere

category_repository = ScopedRepository(
    Category,
    entity_type=EntityType.CATEGORY,
    not_found_message="分类不存在。",
)

tag_repository = ScopedRepository(
    Tag,
    entity_type=EntityType.TAG,
    not_found_message="标签不存在。",
)


def list_categories(db: Session, ctx: RequestContext) -> list[Category]:
    return category_repository.list(db, ctx, order_by=(Category.name.asc(), Category.id.asc()))


def ensure_category(db: Session, ctx: RequestContext, category_id: UUID | None) -> None:
    ensure_ids_in_workspace(db, ctx, Category, [category_id], message="分类不存在：{id}")


def ensure_taxonomy(db: Session, ctx: RequestContext, kind: TaxonomyKind, item_id: UUID | None) -> None:
    """校验分类字典项属于当前工作空间且类型匹配。"""
    ensure_ids_in_workspace(
        db,
        ctx,
        TaxonomyItem,
        [item_id],
        message="分类字典项不存在：{id}",
        extra_filters=[TaxonomyItem.kind == kind],
    )


def delete_category(db: Session, ctx: RequestContext, category: Category) -> None:
    """删除分类，引用该分类的内容改为未分类。"""
    for model in (Tool, Tweet, Prompt):
        db.execute(
            update(model)
            .where(model.workspace_id == ctx.workspace_id)
            .where(model.category_id == category.id)
            .values(category_id=None)
            .execution_options(synchronize_session=False)
        )
    category_repository.delete(db, category)


def list_tags(db: Session, ctx: RequestContext) -> list[Tag]:
    return tag_repository.list(db, ctx, order_by=(Tag.name.asc(), Tag.id.asc()))


def tag_name_taken(db: Session, ctx: RequestContext, name: str) -> bool:
    return db.execute(
        select(Tag.id).where(Tag.workspace_id == ctx.workspace_id).where(Tag.name == name)
    ).first() is not None


def _tag_exists() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"code": "TAG_EXISTS", "message": "标签名称已存在。"},
    )


def create_tag(db: Session, ctx: RequestContext, *, name: str, color: str | None) -> Tag:
    """创建标签，同一工作空间内名称重复时返回 409。

    并发创建同名标签时预检查可能都通过，后写入的一方由唯一约束拦下，同样返回 409。
    """
    normalized = name.strip()
    if tag_name_taken(db, ctx, normalized):
        raise _tag_exists()
    try:
        return tag_repository.create(db, ctx, name=normalized, color=color)
    except IntegrityError as exc:
        db.rollback()
        raise _tag_exists() from exc


def delete_tag(db: Session, tag: Tag) -> None:
    detach_tag_everywhere(db, tag.id)
    tag_repository.delete(db, tag)


def list_taxonomy(db: Session, ctx: RequestContext, kind: TaxonomyKind | None = None) -> list[TaxonomyItem]:
    stmt = select(TaxonomyItem).where(TaxonomyItem.workspace_id == ctx.workspace_id)
    if kind is not None:
        stmt = stmt.where(TaxonomyItem.kind == kind)
    stmt = stmt.order_by(TaxonomyItem.kind.asc(), TaxonomyItem.order.asc(), TaxonomyItem.name.asc())
    return list(db.execute(stmt).scalars().all())


def category_data(category: Category | None) -> dict[str, Any] | None:
    if category is None:
        return None
    return {
        "id": category.id,
        "workspace_id": category.workspace_id,
        "name": category.name,
        "color": category.color,
        "icon": category.icon,
        "created_at": category.created_at,
    }


def tag_data(tag: Tag) -> dict[str, Any]:
    return {"id": tag.id, "name": tag.name, "color": tag.color}


def tags_data(tags: Iterable[Tag]) -> list[dict[str, Any]]:
    return [tag_data(tag) for tag in tags]


def taxonomy_data(item: TaxonomyItem | None) -> dict[str, Any] | None:
    if item is None:
        return None
    return {"id": item.id, "kind": item.kind, "name": item.name, "order": item.order}
