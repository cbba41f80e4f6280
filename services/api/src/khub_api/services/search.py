"""全局搜索服务。"""

from typing import Any

from sqlalchemy.orm import Session

from khub_api.models.catalog import Category, TaxonomyItem
from khub_api.services.catalog import category_data, taxonomy_data
from khub_api.services.playbooks import playbook_repository, serialize_playbooks
from khub_api.services.prompts import prompt_repository
from khub_api.services.repository import load_by_ids
from khub_api.services.session import RequestContext
from khub_api.services.tools import tool_repository
from khub_api.services.tweets import tweet_repository

SEARCH_MIN_LENGTH = 2
SEARCH_GROUP_LIMIT = 10
SEARCH_GROUPS = ("prompts", "tweets", "tools", "playbooks")


def global_search(db: Session, ctx: RequestContext, query: str | None, search_type: str | None = None) -> dict[str, Any]:
    """在提示词、推文、工具与操作手册中搜索，每组最多返回 10 条未归档结果。"""
    term = (query or "").strip()
    if len(term) < SEARCH_MIN_LENGTH:
        return {group: [] for group in SEARCH_GROUPS}

    wanted = SEARCH_GROUPS if search_type in (None, "", "all") else (search_type,)
    results: dict[str, Any] = {}

    if "prompts" in wanted:
        prompts = prompt_repository.list(db, ctx, search=term, limit=SEARCH_GROUP_LIMIT)
        categories = load_by_ids(db, Category, (prompt.category_id for prompt in prompts))
        results["prompts"] = [
            {
                "id": prompt.id,
                "title": prompt.title,
                "description": prompt.description,
                "rating": prompt.rating,
                "category": category_data(categories.get(prompt.category_id)),
            }
            for prompt in prompts
        ]

    if "tweets" in wanted:
        tweets = tweet_repository.list(db, ctx, search=term, limit=SEARCH_GROUP_LIMIT)
        taxonomy = load_by_ids(
            db,
            TaxonomyItem,
            [tweet.benefit_type_id for tweet in tweets] + [tweet.content_type_id for tweet in tweets],
        )
        results["tweets"] = [
            {
                "id": tweet.id,
                "content": tweet.content,
                "benefit_type": taxonomy_data(taxonomy.get(tweet.benefit_type_id)),
                "content_type": taxonomy_data(taxonomy.get(tweet.content_type_id)),
            }
            for tweet in tweets
        ]

    if "tools" in wanted:
        tools = tool_repository.list(db, ctx, search=term, limit=SEARCH_GROUP_LIMIT)
        levels = load_by_ids(db, TaxonomyItem, (tool.mastery_level_id for tool in tools))
        results["tools"] = [
            {
                "id": tool.id,
                "name": tool.name,
                "description": tool.description,
                "mastery_level": taxonomy_data(levels.get(tool.mastery_level_id)),
            }
            for tool in tools
        ]

    if "playbooks" in wanted:
        playbooks = playbook_repository.list(db, ctx, search=term, limit=SEARCH_GROUP_LIMIT)
        results["playbooks"] = [
            {key: item[key] for key in ("id", "title", "description", "step_count")}
            for item in serialize_playbooks(db, playbooks)
        ]

    return results
