"""分类管理接口。"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.schemas.catalog import CategoryCreateRequest, CategoryUpdateRequest
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.responses import CategoryData
from khub_api.services.audit import record_activity
from khub_api.services.catalog import category_repository, delete_category, list_categories
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.validation import parse_payload

router = APIRouter(prefix="/categories", tags=["categories"])

_ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get(
    "",
    summary="分类列表",
    description="按名称升序返回当前工作空间的全部分类。",
    response_model=list[CategoryData],
    responses={401: {"model": ErrorResponse}},
)
def get_categories(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return list_categories(db, ctx)


@router.post(
    "",
    summary="创建分类",
    status_code=status.HTTP_201_CREATED,
    response_model=CategoryData,
    responses=_ERRORS,
)
def create_category(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(CategoryCreateRequest, payload)
    with persistence_errors(db, "创建分类失败。"):
        category = category_repository.create(db, ctx, name=data.name.strip(), color=data.color, icon=data.icon)
        db.commit()

    result = CategoryData.model_validate(category)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.CATEGORY,
        entity_id=category.id,
        entity_title=category.name,
    )
    return result


@router.get(
    "/{category_id}",
    summary="分类详情",
    response_model=CategoryData,
    responses=_ERRORS,
)
def get_category(
    category_id: UUID = Path(..., description="分类 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return category_repository.get(db, ctx, category_id)


@router.patch(
    "/{category_id}",
    summary="更新分类",
    response_model=CategoryData,
    responses=_ERRORS,
)
def update_category(
    request: Request,
    category_id: UUID = Path(..., description="分类 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(CategoryUpdateRequest, payload)
    category = category_repository.get(db, ctx, category_id)
    values = data.model_dump(exclude_unset=True)
    if values.get("name") is None:
        values.pop("name", None)
    else:
        values["name"] = values["name"].strip()

    with persistence_errors(db, "更新分类失败。"):
        category_repository.update(db, category, values)
        db.commit()

    result = CategoryData.model_validate(category)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.UPDATE,
        entity_type=EntityType.CATEGORY,
        entity_id=category.id,
        entity_title=category.name,
        metadata={"fields": sorted(values)},
    )
    return result


@router.delete(
    "/{category_id}",
    summary="删除分类",
    description="删除分类，引用该分类的工具、推文与提示词改为未分类。",
    response_model=SuccessFlag,
    responses=_ERRORS,
)
def remove_category(
    request: Request,
    category_id: UUID = Path(..., description="分类 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    category = category_repository.get(db, ctx, category_id)
    name = category.name
    with persistence_errors(db, "删除分类失败。"):
        delete_category(db, ctx, category)
        db.commit()

    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.DELETE,
        entity_type=EntityType.CATEGORY,
        entity_id=category_id,
        entity_title=name,
    )
    return {"success": True}
