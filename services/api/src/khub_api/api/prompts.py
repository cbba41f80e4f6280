"""提示词管理接口。"""

from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.models.prompt import Prompt
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.prompt import (
    PromptCreateRequest,
    PromptRenderRequest,
    PromptTestCreateRequest,
    PromptUpdateRequest,
)
from khub_api.schemas.responses import PromptData, PromptDetailData, PromptTestData, RenderedPromptData
from khub_api.services.audit import record_activity
from khub_api.services.prompts import (
    add_test,
    create_prompt,
    increment_usage,
    list_tests,
    prompt_repository,
    prompt_sort,
    render_prompt,
    serialize_prompt_detail,
    serialize_prompts,
    update_prompt,
)
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.validation import parse_payload

router = APIRouter(prefix="/prompts", tags=["prompts"])

_ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}

SortField = Literal["createdAt", "updatedAt", "title", "rating", "usageCount"]


@router.get(
    "",
    summary="提示词列表",
    description="返回未归档提示词，支持按分类过滤、按标题/描述/正文搜索以及排序。",
    response_model=list[PromptData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def list_prompts(
    category_id: UUID | None = Query(default=None, alias="categoryId", description="分类 ID。"),
    search: str | None = Query(default=None, description="搜索关键字（标题、描述、正文）。"),
    sort_by: SortField = Query(default="createdAt", alias="sortBy", description="排序字段。"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder", description="排序方向。"),
    include_archived: bool = Query(default=False, alias="includeArchived", description="是否包含已归档提示词。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    filters = [Prompt.category_id == category_id] if category_id else []
    prompts = prompt_repository.list(
        db,
        ctx,
        search=search,
        include_archived=include_archived,
        filters=filters,
        order_by=prompt_sort(sort_by, sort_order),
    )
    return serialize_prompts(db, prompts)


@router.post(
    "",
    summary="创建提示词",
    description="创建提示词，同时写入第 1 个版本并提取 `{{变量}}`。",
    status_code=status.HTTP_201_CREATED,
    response_model=PromptDetailData,
    responses=_ERRORS,
)
def post_prompt(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(PromptCreateRequest, payload)
    with persistence_errors(db, "创建提示词失败。"):
        prompt = create_prompt(db, ctx, data)
        db.commit()

    result = serialize_prompt_detail(db, ctx, prompt)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.PROMPT,
        entity_id=result["id"],
        entity_title=result["title"],
    )
    return result


@router.get(
    "/{prompt_id}",
    summary="提示词详情",
    description="返回提示词及其版本、变量、测试与附件，并累加使用次数。",
    response_model=PromptDetailData,
    responses=_ERRORS,
)
def get_prompt(
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    prompt = prompt_repository.get(db, ctx, prompt_id)
    with persistence_errors(db, "读取提示词失败。"):
        increment_usage(db, prompt)
        db.commit()
    return serialize_prompt_detail(db, ctx, prompt)


@router.api_route(
    "/{prompt_id}",
    methods=["PUT", "PATCH"],
    summary="更新提示词",
    description="仅修改提交的字段；正文变化时生成新版本并重新提取变量。",
    response_model=PromptDetailData,
    responses=_ERRORS,
)
def put_prompt(
    request: Request,
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(PromptUpdateRequest, payload)
    prompt = prompt_repository.get(db, ctx, prompt_id)
    with persistence_errors(db, "更新提示词失败。"):
        update_prompt(db, ctx, prompt, data)
        db.commit()

    result = serialize_prompt_detail(db, ctx, prompt)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.UPDATE,
        entity_type=EntityType.PROMPT,
        entity_id=result["id"],
        entity_title=result["title"],
        metadata={"fields": sorted(data.model_fields_set)},
    )
    return result


@router.delete(
    "/{prompt_id}",
    summary="归档提示词",
    response_model=SuccessFlag,
    responses=_ERRORS,
)
def archive_prompt(
    request: Request,
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    prompt = prompt_repository.get(db, ctx, prompt_id)
    with persistence_errors(db, "归档提示词失败。"):
        prompt_repository.archive(db, prompt)
        db.commit()

    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.ARCHIVE,
        entity_type=EntityType.PROMPT,
        entity_id=prompt.id,
        entity_title=prompt.title,
    )
    return {"success": True}


@router.get(
    "/{prompt_id}/tests",
    summary="测试记录列表",
    response_model=list[PromptTestData],
    responses=_ERRORS,
)
def get_prompt_tests(
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return list_tests(db, prompt_repository.get(db, ctx, prompt_id))


@router.post(
    "/{prompt_id}/tests",
    summary="新增测试记录",
    description="记录一次测试结果；带评分时同步重算提示词评分（所有非空评分的平均值）。",
    status_code=status.HTTP_201_CREATED,
    response_model=PromptTestData,
    responses=_ERRORS,
)
def post_prompt_test(
    request: Request,
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(PromptTestCreateRequest, payload)
    with persistence_errors(db, "保存测试结果失败。"):
        test = add_test(db, ctx, prompt_id, data)
        prompt_title = prompt_repository.get(db, ctx, prompt_id).title
        db.commit()

    result = PromptTestData.model_validate(test)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.PROMPT_TEST,
        entity_id=result.id,
        entity_title=prompt_title,
        metadata={"prompt_id": str(prompt_id), "rating": result.rating, "is_success": result.is_success},
    )
    return result


@router.post(
    "/{prompt_id}/render",
    summary="渲染提示词",
    description="用提交的变量取值替换 `{{变量}}`，未提供取值的占位符原样保留。",
    response_model=RenderedPromptData,
    responses=_ERRORS,
)
def post_render(
    prompt_id: UUID = Path(..., description="提示词 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(PromptRenderRequest, payload if payload is not None else {})
    prompt = prompt_repository.get(db, ctx, prompt_id)
    return render_prompt(prompt, data.variables)
