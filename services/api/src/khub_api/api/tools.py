"""工具管理接口。"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.responses import ToolData
from khub_api.schemas.tool import ToolCreateRequest, ToolUpdateRequest
from khub_api.services.audit import record_activity
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.tools import create_tool, serialize_tool, serialize_tools, tool_repository, update_tool
from khub_api.services.validation import parse_payload

router = APIRouter(prefix="/tools", tags=["tools"])

_ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get(
    "",
    summary="工具列表",
    description="按创建时间倒序返回未归档工具，可按名称与描述模糊搜索。",
    response_model=list[ToolData],
    responses={401: {"model": ErrorResponse}},
)
def list_tools(
    search: str | None = Query(default=None, description="搜索关键字（名称、描述）。"),
    include_archived: bool = Query(default=False, alias="includeArchived", description="是否包含已归档工具。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    tools = tool_repository.list(db, ctx, search=search, include_archived=include_archived)
    return serialize_tools(db, tools)


@router.post(
    "",
    summary="创建工具",
    description="创建工具并关联标签；标签、分类与掌握程度必须属于当前工作空间。",
    status_code=status.HTTP_201_CREATED,
    response_model=ToolData,
    responses=_ERRORS,
)
def post_tool(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(ToolCreateRequest, payload)
    with persistence_errors(db, "创建工具失败。"):
        tool = create_tool(db, ctx, data)
        db.commit()

    result = serialize_tool(db, tool)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.TOOL,
        entity_id=result["id"],
        entity_title=result["name"],
    )
    return result


@router.get(
    "/{tool_id}",
    summary="工具详情",
    response_model=ToolData,
    responses=_ERRORS,
)
def get_tool(
    tool_id: UUID = Path(..., description="工具 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return serialize_tool(db, tool_repository.get(db, ctx, tool_id))


@router.patch(
    "/{tool_id}",
    summary="更新工具",
    description="仅修改提交的字段；提交 `tagIds` 时整体替换标签。",
    response_model=ToolData,
    responses=_ERRORS,
)
def patch_tool(
    request: Request,
    tool_id: UUID = Path(..., description="工具 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(ToolUpdateRequest, payload)
    tool = tool_repository.get(db, ctx, tool_id)
    with persistence_errors(db, "更新工具失败。"):
        update_tool(db, ctx, tool, data)
        db.commit()

    result = serialize_tool(db, tool)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.UPDATE,
        entity_type=EntityType.TOOL,
        entity_id=result["id"],
        entity_title=result["name"],
        metadata={"fields": sorted(data.model_fields_set)},
    )
    return result


@router.delete(
    "/{tool_id}",
    summary="归档工具",
    description="软删除：标记为已归档，列表与搜索中不再出现。",
    response_model=SuccessFlag,
    responses=_ERRORS,
)
def archive_tool(
    request: Request,
    tool_id: UUID = Path(..., description="工具 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    tool = tool_repository.get(db, ctx, tool_id)
    with persistence_errors(db, "归档工具失败。"):
        tool_repository.archive(db, tool)
        db.commit()

    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.ARCHIVE,
        entity_type=EntityType.TOOL,
        entity_id=tool.id,
        entity_title=tool.name,
    )
    return {"success": True}
