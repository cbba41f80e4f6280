"""工作空间隔离的通用资源仓储。

所有领域实体的读写都先经过 `ScopedRepository.get`：
实体不存在或不属于当前工作空间时一律返回 404，避免泄露其他空间的数据是否存在。
"""

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
import logging
from typing import Any, Generic, TypeVar
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import ColumnElement, Select, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khub_api.models.base import Base
from khub_api.services.session import RequestContext

logger = logging.getLogger("khub_api.repository")

ModelT = TypeVar("ModelT", bound=Base)

LIKE_ESCAPE = "\\"


def not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail={"code": "NOT_FOUND", "message": message})


def bad_request(message: str, *, code: str = "VALIDATION_ERROR") -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"code": code, "message": message})


def escape_like(term: str) -> str:
    """转义 LIKE 通配符，使用户输入按字面匹配。"""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def search_clause(columns: Sequence[Any], term: str) -> ColumnElement[bool]:
    """构造多列“任一包含”的大小写不敏感条件。"""
    pattern = f"%{escape_like(term)}%"
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))


@contextmanager
def persistence_errors(db: Session, message: str) -> Iterator[None]:
    """包裹一次持久化操作：业务异常原样抛出，数据库异常回滚后转为 500。"""
    try:
        yield
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("persistence failure: %s", message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "PERSISTENCE_ERROR", "message": message},
        ) from exc


class ScopedRepository(Generic[ModelT]):
    """按实体配置的工作空间隔离仓储。"""

    def __init__(
        self,
        model: type[ModelT],
        *,
        entity_type: str,
        not_found_message: str,
        search_fields: Sequence[str] = (),
        archivable: bool = False,
    ) -> None:
        self.model = model
        self.entity_type = entity_type
        self.not_found_message = not_found_message
        self.search_fields = tuple(search_fields)
        self.archivable = archivable

    def scoped(self, ctx: RequestContext) -> Select[tuple[ModelT]]:
        return select(self.model).where(self.model.workspace_id == ctx.workspace_id)

    def list(
        self,
        db: Session,
        ctx: RequestContext,
        *,
        search: str | None = None,
        include_archived: bool = False,
        filters: Iterable[ColumnElement[bool]] = (),
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """按工作空间列出实体，默认排除已归档并按创建时间倒序。"""
        stmt = self.scoped(ctx)
        if self.archivable and not include_archived:
            stmt = stmt.where(self.model.is_archived.is_(False))
        term = (search or "").strip()
        if term and self.search_fields:
            stmt = stmt.where(search_clause([getattr(self.model, name) for name in self.search_fields], term))
        for clause in filters:
            stmt = stmt.where(clause)
        if order_by is None:
            order_by = (self.model.created_at.desc(), self.model.id.desc())
        stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars().all())

    def find(self, db: Session, ctx: RequestContext, entity_id: UUID) -> ModelT | None:
        entity = db.get(self.model, entity_id)
        if entity is None or entity.workspace_id != ctx.workspace_id:
            return None
        return entity

    def get(self, db: Session, ctx: RequestContext, entity_id: UUID, *, for_update: bool = False) -> ModelT:
        """读取实体并校验归属，不匹配时返回 404。"""
        if for_update:
            entity = db.execute(
                self.scoped(ctx).where(self.model.id == entity_id).with_for_update()
            ).scalar_one_or_none()
        else:
            entity = self.find(db, ctx, entity_id)
        if entity is None:
            raise not_found(self.not_found_message)
        return entity

    def create(self, db: Session, ctx: RequestContext, **values: Any) -> ModelT:
        entity = self.model(workspace_id=ctx.workspace_id, **values)
        db.add(entity)
        db.flush()
        return entity

    def update(self, db: Session, entity: ModelT, values: dict[str, Any]) -> ModelT:
        for key, value in values.items():
            setattr(entity, key, value)
        db.flush()
        return entity

    def archive(self, db: Session, entity: ModelT) -> ModelT:
        entity.is_archived = True
        db.flush()
        return entity

    def delete(self, db: Session, entity: ModelT) -> None:
        db.delete(entity)
        db.flush()


def ensure_ids_in_workspace(
    db: Session,
    ctx: RequestContext,
    model: type[Base],
    ids: Iterable[UUID | None],
    *,
    message: str,
    extra_filters: Iterable[ColumnElement[bool]] = (),
) -> None:
    """校验引用 ID 均属于当前工作空间，缺失时以 400 返回第一个缺失 ID。"""
    wanted = [item for item in dict.fromkeys(ids) if item is not None]
    if not wanted:
        return
    stmt = select(model.id).where(model.workspace_id == ctx.workspace_id).where(model.id.in_(wanted))
    for clause in extra_filters:
        stmt = stmt.where(clause)
    found = set(db.execute(stmt).scalars().all())
    for item in wanted:
        if item not in found:
            raise bad_request(message.format(id=item))


def load_by_ids(db: Session, model: type[ModelT], ids: Iterable[UUID | None]) -> dict[UUID, ModelT]:
    """批量读取实体，返回 ID 到实体的映射。"""
    wanted = {item for item in ids if item is not None}
    if not wanted:
        return {}
    rows = db.execute(select(model).where(model.id.in_(wanted))).scalars().all()
    return {row.id: row for row in rows}
