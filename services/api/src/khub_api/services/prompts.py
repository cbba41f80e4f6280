"""提示词服务：版本、变量、测试记录与渲染。"""

from collections import Counter
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from khub_api.models.catalog import Category
from khub_api.models.enums import EntityType
from khub_api.models.prompt import Prompt, PromptTest, PromptVariable, PromptVersion
from khub_api.schemas.prompt import PromptCreateRequest, PromptTestCreateRequest, PromptUpdateRequest
from khub_api.schemas.responses import AttachmentData, PromptTestData, PromptVariableData, PromptVersionData
from khub_api.services.attachments import list_attachments
from khub_api.services.catalog import category_data, ensure_category, tags_data
from khub_api.services.ratings import recompute_prompt_rating
from khub_api.services.repository import ScopedRepository, load_by_ids
from khub_api.services.session import RequestContext
from khub_api.services.tags import attach_tags, ensure_tags_exist, load_tags, replace_tags
from khub_api.utils.text import extract_variables, replace_variables

INITIAL_VERSION_NOTE = "初始版本"

prompt_repository = ScopedRepository(
    Prompt,
    entity_type=EntityType.PROMPT,
    not_found_message="提示词不存在。",
    search_fields=("title", "description", "content"),
    archivable=True,
)

# 列表允许的排序字段（线上名称 -> 列）。
SORTABLE_COLUMNS = {
    "createdAt": Prompt.created_at,
    "updatedAt": Prompt.updated_at,
    "title": Prompt.title,
    "rating": Prompt.rating,
    "usageCount": Prompt.usage_count,
}


def prompt_sort(sort_by: str, sort_order: str) -> tuple[Any, ...]:
    column = SORTABLE_COLUMNS[sort_by]
    ordered = column.asc() if sort_order == "asc" else column.desc()
    if sort_by == "rating":
        # 未评分的提示词总是排在最后。
        ordered = ordered.nulls_last()
    return ordered, Prompt.id.desc()


def _count_by_prompt(db: Session, model: type, prompt_ids: Sequence[UUID]) -> Counter:
    if not prompt_ids:
        return Counter()
    rows = db.execute(
        select(model.prompt_id, func.count()).where(model.prompt_id.in_(prompt_ids)).group_by(model.prompt_id)
    ).all()
    return Counter({prompt_id: count for prompt_id, count in rows})


def serialize_prompts(db: Session, prompts: Sequence[Prompt]) -> list[dict[str, Any]]:
    """批量组装提示词列表视图。"""
    ids = [prompt.id for prompt in prompts]
    categories = load_by_ids(db, Category, (prompt.category_id for prompt in prompts))
    tags = load_tags(db, entity_type=EntityType.PROMPT, entity_ids=ids)
    version_counts = _count_by_prompt(db, PromptVersion, ids)
    test_counts = _count_by_prompt(db, PromptTest, ids)

    return [
        {
            "id": prompt.id,
            "workspace_id": prompt.workspace_id,
            "title": prompt.title,
            "description": prompt.description,
            "content": prompt.content,
            "category_id": prompt.category_id,
            "category": category_data(categories.get(prompt.category_id)),
            "tags": tags_data(tags.get(prompt.id, [])),
            "rating": prompt.rating,
            "usage_count": prompt.usage_count,
            "is_archived": prompt.is_archived,
            "is_favorite": prompt.is_favorite,
            "version_count": version_counts.get(prompt.id, 0),
            "test_count": test_counts.get(prompt.id, 0),
            "created_at": prompt.created_at,
            "updated_at": prompt.updated_at,
        }
        for prompt in prompts
    ]


def serialize_prompt_detail(db: Session, ctx: RequestContext, prompt: Prompt) -> dict[str, Any]:
    """详情视图：在列表视图基础上附带版本、变量、测试与附件。"""
    data = serialize_prompts(db, [prompt])[0]
    versions = db.execute(
        select(PromptVersion).where(PromptVersion.prompt_id == prompt.id).order_by(PromptVersion.version.desc())
    ).scalars()
    variables = db.execute(select(PromptVariable).where(PromptVariable.prompt_id == prompt.id)).scalars().all()
    # 变量按在正文中首次出现的顺序返回。
    position = {name: index for index, name in enumerate(extract_variables(prompt.content))}
    variables = sorted(variables, key=lambda item: position.get(item.name, len(position)))
    attachments = list_attachments(db, ctx, prompt_id=prompt.id)

    data["versions"] = [PromptVersionData.model_validate(item) for item in versions]
    data["variables"] = [PromptVariableData.model_validate(item) for item in variables]
    data["tests"] = [PromptTestData.model_validate(item) for item in list_tests(db, prompt)]
    data["attachments"] = [AttachmentData.model_validate(item) for item in attachments]
    return data


def _write_variables(db: Session, prompt: Prompt) -> None:
    """按正文重写变量集合。"""
    db.execute(delete(PromptVariable).where(PromptVariable.prompt_id == prompt.id))
    for name in extract_variables(prompt.content):
        db.add(PromptVariable(workspace_id=prompt.workspace_id, prompt_id=prompt.id, name=name))


def _next_version(db: Session, prompt: Prompt) -> int:
    current = db.execute(
        select(func.max(PromptVersion.version)).where(PromptVersion.prompt_id == prompt.id)
    ).scalar_one_or_none()
    return (current or 0) + 1


def create_prompt(db: Session, ctx: RequestContext, payload: PromptCreateRequest) -> Prompt:
    """创建提示词，同时写入第 1 个版本与变量。"""
    ensure_tags_exist(db, ctx, payload.tag_ids)
    if payload.category_id is not None:
        ensure_category(db, ctx, payload.category_id)

    prompt = prompt_repository.create(
        db,
        ctx,
        title=payload.title,
        description=payload.description,
        content=payload.content,
        category_id=payload.category_id,
    )
    db.add(
        PromptVersion(
            workspace_id=ctx.workspace_id,
            prompt_id=prompt.id,
            version=1,
            content=prompt.content,
            change_note=INITIAL_VERSION_NOTE,
        )
    )
    _write_variables(db, prompt)
    attach_tags(db, ctx, entity_type=EntityType.PROMPT, entity_id=prompt.id, tag_ids=payload.tag_ids or [])
    return prompt


def update_prompt(db: Session, ctx: RequestContext, prompt: Prompt, payload: PromptUpdateRequest) -> Prompt:
    """更新提示词；正文变化时生成新版本并重写变量。"""
    values = payload.model_dump(
        include={"title", "description", "content", "category_id", "is_favorite"},
        exclude_unset=True,
    )
    for required in ("title", "content", "is_favorite"):
        if required in values and values[required] is None:
            values.pop(required)

    ensure_tags_exist(db, ctx, payload.tag_ids)
    if values.get("category_id") is not None:
        ensure_category(db, ctx, values["category_id"])

    content_changed = "content" in values and values["content"] != prompt.content
    prompt_repository.update(db, prompt, values)

    if content_changed:
        db.add(
            PromptVersion(
                workspace_id=ctx.workspace_id,
                prompt_id=prompt.id,
                version=_next_version(db, prompt),
                content=prompt.content,
                change_note=payload.change_note,
            )
        )
        _write_variables(db, prompt)
    if payload.tag_ids is not None:
        replace_tags(db, ctx, entity_type=EntityType.PROMPT, entity_id=prompt.id, tag_ids=payload.tag_ids)
    db.flush()
    return prompt


def increment_usage(db: Session, prompt: Prompt) -> None:
    """原子递增查看次数。"""
    db.execute(
        update(Prompt)
        .where(Prompt.id == prompt.id)
        .values(usage_count=Prompt.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(prompt)


def list_tests(db: Session, prompt: Prompt) -> list[PromptTest]:
    return list(
        db.execute(
            select(PromptTest)
            .where(PromptTest.prompt_id == prompt.id)
            .order_by(PromptTest.created_at.desc(), PromptTest.id.desc())
        )
        .scalars()
        .all()
    )


def add_test(db: Session, ctx: RequestContext, prompt_id: UUID, payload: PromptTestCreateRequest) -> PromptTest:
    """新增测试记录；带评分时在同一事务内重算提示词评分。

    提示词行先加锁，保证并发新增测试时评分基于完整的测试集合。
    """
    prompt = prompt_repository.get(db, ctx, prompt_id, for_update=True)
    test = PromptTest(
        workspace_id=ctx.workspace_id,
        prompt_id=prompt.id,
        input=payload.input,
        output=payload.output,
        is_success=payload.is_success,
        rating=payload.rating,
        notes=payload.notes,
        model=payload.model,
    )
    db.add(test)
    db.flush()
    if test.rating is not None:
        recompute_prompt_rating(db, prompt)
    return test


def render_prompt(prompt: Prompt, values: dict[str, str]) -> dict[str, Any]:
    names = extract_variables(prompt.content)
    return {
        "content": replace_variables(prompt.content, values),
        "missing_variables": [name for name in names if name not in values],
    }
