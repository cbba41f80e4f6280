"""全局搜索与活动记录接口。"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.schemas.common import ErrorResponse
from khub_api.schemas.responses import ActivityData, SearchData
from khub_api.services.audit import list_activity
from khub_api.services.search import global_search
from khub_api.services.session import RequestContext

router = APIRouter(tags=["search"])


@router.get(
    "/search",
    summary="全局搜索",
    description="在提示词、推文、工具与操作手册中搜索，每类最多 10 条；关键字少于 2 个字符时返回空结果。",
    response_model=SearchData,
    response_model_exclude_unset=True,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def search(
    q: str | None = Query(default=None, description="搜索关键字。"),
    search_type: Literal["all", "prompts", "tweets", "tools", "playbooks"] | None = Query(
        default=None, alias="type", description="搜索范围，默认全部。"
    ),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return global_search(db, ctx, q, search_type)


@router.get(
    "/activity",
    summary="活动记录",
    description="按时间倒序返回当前工作空间最近的操作记录。",
    response_model=list[ActivityData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def activity(
    limit: int = Query(default=20, ge=1, le=100, description="返回条数。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return [
        {
            "id": item.id,
            "user_id": item.user_id,
            "action": item.action,
            "entity_type": item.entity_type,
            "entity_id": item.entity_id,
            "entity_title": item.entity_title,
            "metadata": item.metadata_,
            "created_at": item.created_at,
        }
        for item in list_activity(db, ctx, limit=limit)
    ]
