"""推文/笔记服务。"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from khub_api.models.catalog import Category, TaxonomyItem
from khub_api.models.enums import EntityType, TaxonomyKind
from khub_api.models.tweet import Tweet
from khub_api.schemas.tweet import TweetCreateRequest, TweetUpdateRequest
from khub_api.services.catalog import category_data, ensure_category, ensure_taxonomy, tags_data, taxonomy_data
from khub_api.services.repository import ScopedRepository, load_by_ids
from khub_api.services.session import RequestContext
from khub_api.services.tags import attach_tags, ensure_tags_exist, load_tags, replace_tags

tweet_repository = ScopedRepository(
    Tweet,
    entity_type=EntityType.TWEET,
    not_found_message="推文不存在。",
    search_fields=("content", "importance"),
    archivable=True,
)

_TWEET_FIELDS = (
    "content",
    "source_url",
    "importance",
    "how_to_use",
    "category_id",
    "benefit_type_id",
    "content_type_id",
)


def serialize_tweets(db: Session, tweets: Sequence[Tweet]) -> list[dict[str, Any]]:
    categories = load_by_ids(db, Category, (tweet.category_id for tweet in tweets))
    taxonomy = load_by_ids(
        db,
        TaxonomyItem,
        [tweet.benefit_type_id for tweet in tweets] + [tweet.content_type_id for tweet in tweets],
    )
    tags = load_tags(db, entity_type=EntityType.TWEET, entity_ids=[tweet.id for tweet in tweets])

    return [
        {
            "id": tweet.id,
            "workspace_id": tweet.workspace_id,
            "content": tweet.content,
            "source_url": tweet.source_url,
            "importance": tweet.importance,
            "how_to_use": tweet.how_to_use,
            "category_id": tweet.category_id,
            "category": category_data(categories.get(tweet.category_id)),
            "benefit_type_id": tweet.benefit_type_id,
            "benefit_type": taxonomy_data(taxonomy.get(tweet.benefit_type_id)),
            "content_type_id": tweet.content_type_id,
            "content_type": taxonomy_data(taxonomy.get(tweet.content_type_id)),
            "tags": tags_data(tags.get(tweet.id, [])),
            "is_archived": tweet.is_archived,
            "is_favorite": tweet.is_favorite,
            "created_at": tweet.created_at,
            "updated_at": tweet.updated_at,
        }
        for tweet in tweets
    ]


def serialize_tweet(db: Session, tweet: Tweet) -> dict[str, Any]:
    return serialize_tweets(db, [tweet])[0]


def _check_references(db: Session, ctx: RequestContext, values: dict[str, Any], tag_ids: list[UUID] | None) -> None:
    ensure_tags_exist(db, ctx, tag_ids)
    if values.get("category_id") is not None:
        ensure_category(db, ctx, values["category_id"])
    if values.get("benefit_type_id") is not None:
        ensure_taxonomy(db, ctx, TaxonomyKind.BENEFIT_TYPE, values["benefit_type_id"])
    if values.get("content_type_id") is not None:
        ensure_taxonomy(db, ctx, TaxonomyKind.CONTENT_TYPE, values["content_type_id"])


def create_tweet(db: Session, ctx: RequestContext, payload: TweetCreateRequest) -> Tweet:
    values = payload.model_dump(include=set(_TWEET_FIELDS))
    _check_references(db, ctx, values, payload.tag_ids)
    tweet = tweet_repository.create(db, ctx, **values)
    attach_tags(db, ctx, entity_type=EntityType.TWEET, entity_id=tweet.id, tag_ids=payload.tag_ids or [])
    return tweet


def update_tweet(db: Session, ctx: RequestContext, tweet: Tweet, payload: TweetUpdateRequest) -> Tweet:
    values = payload.model_dump(include=set(_TWEET_FIELDS) | {"is_favorite"}, exclude_unset=True)
    for required in ("content", "is_favorite"):
        if required in values and values[required] is None:
            values.pop(required)
    _check_references(db, ctx, values, payload.tag_ids)
    tweet_repository.update(db, tweet, values)
    if payload.tag_ids is not None:
        replace_tags(db, ctx, entity_type=EntityType.TWEET, entity_id=tweet.id, tag_ids=payload.tag_ids)
    return tweet
