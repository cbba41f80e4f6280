"""标签与分类字典接口。"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType, TaxonomyKind
from khub_api.schemas.catalog import TagCreateRequest
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.responses import TagData, TaxonomyData
from khub_api.services.audit import record_activity
from khub_api.services.catalog import create_tag, delete_tag, list_tags, list_taxonomy, tag_repository
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.validation import parse_payload

router = APIRouter(tags=["tags"])


@router.get(
    "/tags",
    summary="标签列表",
    response_model=list[TagData],
    responses={401: {"model": ErrorResponse}},
)
def get_tags(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return list_tags(db, ctx)


@router.post(
    "/tags",
    summary="创建标签",
    description="同一工作空间内标签名称唯一，重复时返回 409。",
    status_code=status.HTTP_201_CREATED,
    response_model=TagData,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def post_tag(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(TagCreateRequest, payload)
    with persistence_errors(db, "创建标签失败。"):
        tag = create_tag(db, ctx, name=data.name, color=data.color)
        db.commit()

    result = TagData.model_validate(tag)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.TAG,
        entity_id=result.id,
        entity_title=result.name,
    )
    return result


@router.delete(
    "/tags/{tag_id}",
    summary="删除标签",
    description="删除标签并解除其与所有内容的关联。",
    response_model=SuccessFlag,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def remove_tag(
    request: Request,
    tag_id: UUID = Path(..., description="标签 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    tag = tag_repository.get(db, ctx, tag_id)
    name = tag.name
    with persistence_errors(db, "删除标签失败。"):
        delete_tag(db, tag)
        db.commit()

    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.DELETE,
        entity_type=EntityType.TAG,
        entity_id=tag_id,
        entity_title=name,
    )
    return {"success": True}


@router.get(
    "/taxonomy",
    summary="分类字典",
    description="返回收益类型、内容类型与掌握程度字典项，可按类型过滤。",
    response_model=list[TaxonomyData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def get_taxonomy(
    kind: TaxonomyKind | None = Query(default=None, description="字典类型。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return list_taxonomy(db, ctx, kind)
