"""推文/笔记管理接口。"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Request, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.responses import TweetData
from khub_api.schemas.tweet import TweetCreateRequest, TweetUpdateRequest
from khub_api.services.audit import record_activity
from khub_api.services.repository import persistence_errors
from khub_api.services.session import RequestContext
from khub_api.services.tweets import create_tweet, serialize_tweet, serialize_tweets, tweet_repository, update_tweet
from khub_api.services.validation import parse_payload

router = APIRouter(prefix="/tweets", tags=["tweets"])

_ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


@router.get(
    "",
    summary="推文列表",
    description="按创建时间倒序返回未归档推文，可按内容与重要性模糊搜索。",
    response_model=list[TweetData],
    responses={401: {"model": ErrorResponse}},
)
def list_tweets(
    search: str | None = Query(default=None, description="搜索关键字（内容、重要性）。"),
    include_archived: bool = Query(default=False, alias="includeArchived", description="是否包含已归档推文。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    tweets = tweet_repository.list(db, ctx, search=search, include_archived=include_archived)
    return serialize_tweets(db, tweets)


@router.post(
    "",
    summary="创建推文",
    status_code=status.HTTP_201_CREATED,
    response_model=TweetData,
    responses=_ERRORS,
)
def post_tweet(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(TweetCreateRequest, payload)
    with persistence_errors(db, "创建推文失败。"):
        tweet = create_tweet(db, ctx, data)
        db.commit()

    result = serialize_tweet(db, tweet)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.TWEET,
        entity_id=result["id"],
        entity_title=result["content"],
    )
    return result


@router.get(
    "/{tweet_id}",
    summary="推文详情",
    response_model=TweetData,
    responses=_ERRORS,
)
def get_tweet(
    tweet_id: UUID = Path(..., description="推文 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return serialize_tweet(db, tweet_repository.get(db, ctx, tweet_id))


@router.patch(
    "/{tweet_id}",
    summary="更新推文",
    response_model=TweetData,
    responses=_ERRORS,
)
def patch_tweet(
    request: Request,
    tweet_id: UUID = Path(..., description="推文 ID。"),
    payload: dict[str, Any] | None = Body(default=None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    data = parse_payload(TweetUpdateRequest, payload)
    tweet = tweet_repository.get(db, ctx, tweet_id)
    with persistence_errors(db, "更新推文失败。"):
        update_tweet(db, ctx, tweet, data)
        db.commit()

    result = serialize_tweet(db, tweet)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.UPDATE,
        entity_type=EntityType.TWEET,
        entity_id=result["id"],
        entity_title=result["content"],
        metadata={"fields": sorted(data.model_fields_set)},
    )
    return result


@router.delete(
    "/{tweet_id}",
    summary="归档推文",
    response_model=SuccessFlag,
    responses=_ERRORS,
)
def archive_tweet(
    request: Request,
    tweet_id: UUID = Path(..., description="推文 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    tweet = tweet_repository.get(db, ctx, tweet_id)
    with persistence_errors(db, "归档推文失败。"):
        tweet_repository.archive(db, tweet)
        db.commit()

    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.ARCHIVE,
        entity_type=EntityType.TWEET,
        entity_id=tweet.id,
        entity_title=tweet.content,
    )
    return {"success": True}
