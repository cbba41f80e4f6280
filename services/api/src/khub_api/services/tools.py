"""工具服务。"""

from collections import Counter
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from khub_api.models.catalog import Category, TaxonomyItem
from khub_api.models.enums import EntityType, TaxonomyKind
from khub_api.models.tool import LearningPathTool, Lesson, Tool
from khub_api.schemas.tool import ToolCreateRequest, ToolUpdateRequest
from khub_api.services.catalog import category_data, ensure_category, ensure_taxonomy, tags_data, taxonomy_data
from khub_api.services.repository import ScopedRepository, load_by_ids
from khub_api.services.session import RequestContext
from khub_api.services.tags import attach_tags, ensure_tags_exist, load_tags, replace_tags

tool_repository = ScopedRepository(
    Tool,
    entity_type=EntityType.TOOL,
    not_found_message="工具不存在。",
    search_fields=("name", "description"),
    archivable=True,
)

_TOOL_FIELDS = (
    "name",
    "description",
    "official_url",
    "prerequisites",
    "common_mistakes",
    "best_practices",
    "category_id",
    "mastery_level_id",
)


def _count_by_tool(db: Session, model: type, tool_ids: Sequence[UUID]) -> Counter:
    if not tool_ids:
        return Counter()
    return Counter(db.execute(select(model.tool_id).where(model.tool_id.in_(tool_ids))).scalars().all())


def serialize_tools(db: Session, tools: Sequence[Tool]) -> list[dict[str, Any]]:
    """批量组装工具视图：分类、掌握程度、标签与课程/学习路径计数。"""
    ids = [tool.id for tool in tools]
    categories = load_by_ids(db, Category, (tool.category_id for tool in tools))
    levels = load_by_ids(db, TaxonomyItem, (tool.mastery_level_id for tool in tools))
    tags = load_tags(db, entity_type=EntityType.TOOL, entity_ids=ids)
    lesson_counts = _count_by_tool(db, Lesson, ids)
    path_counts = _count_by_tool(db, LearningPathTool, ids)

    return [
        {
            "id": tool.id,
            "workspace_id": tool.workspace_id,
            "name": tool.name,
            "description": tool.description,
            "official_url": tool.official_url,
            "prerequisites": tool.prerequisites,
            "common_mistakes": tool.common_mistakes,
            "best_practices": tool.best_practices,
            "category_id": tool.category_id,
            "category": category_data(categories.get(tool.category_id)),
            "mastery_level_id": tool.mastery_level_id,
            "mastery_level": taxonomy_data(levels.get(tool.mastery_level_id)),
            "tags": tags_data(tags.get(tool.id, [])),
            "is_archived": tool.is_archived,
            "is_favorite": tool.is_favorite,
            "lesson_count": lesson_counts.get(tool.id, 0),
            "learning_path_count": path_counts.get(tool.id, 0),
            "created_at": tool.created_at,
            "updated_at": tool.updated_at,
        }
        for tool in tools
    ]


def serialize_tool(db: Session, tool: Tool) -> dict[str, Any]:
    return serialize_tools(db, [tool])[0]


def _check_references(db: Session, ctx: RequestContext, values: dict[str, Any], tag_ids: list[UUID] | None) -> None:
    ensure_tags_exist(db, ctx, tag_ids)
    if values.get("category_id") is not None:
        ensure_category(db, ctx, values["category_id"])
    if values.get("mastery_level_id") is not None:
        ensure_taxonomy(db, ctx, TaxonomyKind.MASTERY_LEVEL, values["mastery_level_id"])


def create_tool(db: Session, ctx: RequestContext, payload: ToolCreateRequest) -> Tool:
    values = payload.model_dump(include=set(_TOOL_FIELDS))
    _check_references(db, ctx, values, payload.tag_ids)
    tool = tool_repository.create(db, ctx, **values)
    attach_tags(db, ctx, entity_type=EntityType.TOOL, entity_id=tool.id, tag_ids=payload.tag_ids or [])
    return tool


def update_tool(db: Session, ctx: RequestContext, tool: Tool, payload: ToolUpdateRequest) -> Tool:
    """仅更新请求中显式提交的字段。"""
    values = payload.model_dump(include=set(_TOOL_FIELDS) | {"is_favorite"}, exclude_unset=True)
    if values.get("name") is None:
        values.pop("name", None)
    if values.get("is_favorite") is None:
        values.pop("is_favorite", None)
    _check_references(db, ctx, values, payload.tag_ids)
    tool_repository.update(db, tool, values)
    if payload.tag_ids is not None:
        replace_tags(db, ctx, entity_type=EntityType.TOOL, entity_id=tool.id, tag_ids=payload.tag_ids)
    return tool
