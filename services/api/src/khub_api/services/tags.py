"""标签关联服务。"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from khub_api.models.catalog import Tag, TagLink
from khub_api.services.repository import ensure_ids_in_workspace
from khub_api.services.session import RequestContext

MISSING_TAG_MESSAGE = "标签不存在：{id}"


def ensure_tags_exist(db: Session, ctx: RequestContext, tag_ids: Sequence[UUID] | None) -> None:
    ensure_ids_in_workspace(db, ctx, Tag, tag_ids or (), message=MISSING_TAG_MESSAGE)


def attach_tags(
    db: Session,
    ctx: RequestContext,
    *,
    entity_type: str,
    entity_id: UUID,
    tag_ids: Iterable[UUID],
) -> None:
    """关联标签；已存在的关联跳过，重复调用结果不变。"""
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return
    existing = set(
        db.execute(
            select(TagLink.tag_id)
            .where(TagLink.entity_type == entity_type)
            .where(TagLink.entity_id == entity_id)
            .where(TagLink.tag_id.in_(wanted))
        )
        .scalars()
        .all()
    )
    for tag_id in wanted:
        if tag_id in existing:
            continue
        db.add(
            TagLink(
                workspace_id=ctx.workspace_id,
                entity_type=entity_type,
                entity_id=entity_id,
                tag_id=tag_id,
            )
        )
    db.flush()


def replace_tags(
    db: Session,
    ctx: RequestContext,
    *,
    entity_type: str,
    entity_id: UUID,
    tag_ids: Iterable[UUID],
) -> None:
    """整体替换实体的标签集合。"""
    wanted = list(dict.fromkeys(tag_ids))
    stmt = delete(TagLink).where(TagLink.entity_type == entity_type).where(TagLink.entity_id == entity_id)
    if wanted:
        stmt = stmt.where(TagLink.tag_id.not_in(wanted))
    db.execute(stmt)
    attach_tags(db, ctx, entity_type=entity_type, entity_id=entity_id, tag_ids=wanted)


def detach_tag_everywhere(db: Session, tag_id: UUID) -> None:
    db.execute(delete(TagLink).where(TagLink.tag_id == tag_id))


def load_tags(db: Session, *, entity_type: str, entity_ids: Iterable[UUID]) -> dict[UUID, list[Tag]]:
    """批量读取多个实体的标签，按标签名排序。"""
    ids = list(entity_ids)
    grouped: dict[UUID, list[Tag]] = defaultdict(list)
    if not ids:
        return grouped
    rows = db.execute(
        select(TagLink.entity_id, Tag)
        .join(Tag, Tag.id == TagLink.tag_id)
        .where(TagLink.entity_type == entity_type)
        .where(TagLink.entity_id.in_(ids))
        .order_by(Tag.name.asc())
    ).all()
    for entity_id, tag in rows:
        grouped[entity_id].append(tag)
    return grouped
