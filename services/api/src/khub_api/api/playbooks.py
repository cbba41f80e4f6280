"""操作手册接口。"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.schemas.common import ErrorResponse
from khub_api.schemas.playbook import PlaybookCreateRequest
from khub_api.schemas.responses import PlaybookData, PlaybookDetailData
from khub_api.services.audit import record_activity
from khub_api.services.playbooks import (
    create_playbook,
    playbook_repository,
    serialize_playbook_detail,
    serialize_playbooks,
)
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.validation import parse_payload

router = APIRouter(prefix="/playbooks", tags=["playbooks"])


@router.get(
    "",
    summary="操作手册列表",
    description="按创建时间倒序返回未归档手册，可按标题与描述模糊搜索。",
    response_model=list[PlaybookData],
    responses={401: {"model": ErrorResponse}},
)
def list_playbooks(
    search: str | None = Query(default=None, description="搜索关键字（标题、描述）。"),
    include_archived: bool = Query(default=False, alias="includeArchived", description="是否包含已归档手册。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    playbooks = playbook_repository.list(db, ctx, search=search, include_archived=include_archived)
    return serialize_playbooks(db, playbooks)


@router.post(
    "",
    summary="创建操作手册",
    description="在一个事务内创建手册、步骤及步骤引用；标签与被引用内容必须属于当前工作空间。",
    status_code=status.HTTP_201_CREATED,
    response_model=PlaybookDetailData,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def post_playbook(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(PlaybookCreateRequest, payload)
    with persistence_errors(db, "创建操作手册失败。"):
        playbook = create_playbook(db, ctx, data)
        db.commit()

    result = serialize_playbook_detail(db, playbook)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.PLAYBOOK,
        entity_id=result["id"],
        entity_title=result["title"],
    )
    return result


@router.get(
    "/{playbook_id}",
    summary="操作手册详情",
    response_model=PlaybookDetailData,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_playbook(
    playbook_id: UUID = Path(..., description="操作手册 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return serialize_playbook_detail(db, playbook_repository.get(db, ctx, playbook_id))
