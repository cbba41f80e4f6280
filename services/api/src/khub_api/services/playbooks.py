"""操作手册服务。

手册与步骤、步骤引用在同一事务中写入，由调用方统一提交；
任一引用不属于当前工作空间时整体失败，不留下半成品。
"""

from collections import Counter, defaultdict
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from khub_api.models.enums import EntityType
from khub_api.models.playbook import Playbook, PlaybookStep, PlaybookStepItem
from khub_api.models.prompt import Prompt
from khub_api.models.tool import Tool
from khub_api.models.tweet import Tweet
from khub_api.schemas.playbook import PlaybookCreateRequest
from khub_api.services.catalog import tags_data
from khub_api.services.repository import ScopedRepository, ensure_ids_in_workspace, load_by_ids
from khub_api.services.session import RequestContext
from khub_api.services.tags import attach_tags, ensure_tags_exist, load_tags
from khub_api.utils.text import truncate

playbook_repository = ScopedRepository(
    Playbook,
    entity_type=EntityType.PLAYBOOK,
    not_found_message="操作手册不存在。",
    search_fields=("title", "description"),
    archivable=True,
)

TWEET_REF_TITLE_LENGTH = 80

# 步骤引用类型：(实体类型, 请求字段, 输出分组, 模型, 缺失提示)
_STEP_REFS = (
    (EntityType.PROMPT, "prompt_ids", "prompts", Prompt, "提示词不存在：{id}"),
    (EntityType.TOOL, "tool_ids", "tools", Tool, "工具不存在：{id}"),
    (EntityType.TWEET, "tweet_ids", "tweets", Tweet, "推文不存在：{id}"),
)


def _step_counts(db: Session, playbook_ids: Sequence[UUID]) -> Counter:
    if not playbook_ids:
        return Counter()
    return Counter(
        db.execute(select(PlaybookStep.playbook_id).where(PlaybookStep.playbook_id.in_(playbook_ids))).scalars().all()
    )


def serialize_playbooks(db: Session, playbooks: Sequence[Playbook]) -> list[dict[str, Any]]:
    """批量组装手册列表视图：标签与步骤数。"""
    ids = [playbook.id for playbook in playbooks]
    tags = load_tags(db, entity_type=EntityType.PLAYBOOK, entity_ids=ids)
    counts = _step_counts(db, ids)
    return [
        {
            "id": playbook.id,
            "workspace_id": playbook.workspace_id,
            "title": playbook.title,
            "description": playbook.description,
            "tags": tags_data(tags.get(playbook.id, [])),
            "is_archived": playbook.is_archived,
            "step_count": counts.get(playbook.id, 0),
            "created_at": playbook.created_at,
            "updated_at": playbook.updated_at,
        }
        for playbook in playbooks
    ]


def _ref_title(entity: Prompt | Tool | Tweet) -> str:
    if isinstance(entity, Prompt):
        return entity.title
    if isinstance(entity, Tool):
        return entity.name
    return truncate(entity.content, TWEET_REF_TITLE_LENGTH)


def serialize_playbook_detail(db: Session, playbook: Playbook) -> dict[str, Any]:
    """手册详情：步骤按 order 升序，引用按提交顺序。"""
    steps = list(
        db.execute(
            select(PlaybookStep)
            .where(PlaybookStep.playbook_id == playbook.id)
            .order_by(PlaybookStep.order.asc(), PlaybookStep.created_at.asc())
        )
        .scalars()
        .all()
    )
    items: list[PlaybookStepItem] = []
    if steps:
        items = list(
            db.execute(
                select(PlaybookStepItem)
                .where(PlaybookStepItem.step_id.in_([step.id for step in steps]))
                .order_by(PlaybookStepItem.position.asc())
            )
            .scalars()
            .all()
        )

    entities: dict[str, dict[UUID, Any]] = {}
    for entity_type, _, _, model, _ in _STEP_REFS:
        entities[entity_type] = load_by_ids(
            db, model, (item.entity_id for item in items if item.entity_type == entity_type)
        )

    refs: dict[UUID, dict[str, list[dict[str, Any]]]] = defaultdict(lambda: defaultdict(list))
    groups = {entity_type: group for entity_type, _, group, _, _ in _STEP_REFS}
    for item in items:
        entity = entities.get(item.entity_type, {}).get(item.entity_id)
        if entity is None:
            continue
        refs[item.step_id][groups[item.entity_type]].append({"id": entity.id, "title": _ref_title(entity)})

    data = serialize_playbooks(db, [playbook])[0]
    data["steps"] = [
        {
            "id": step.id,
            "title": step.title,
            "description": step.description,
            "order": step.order,
            "prompts": refs[step.id]["prompts"],
            "tools": refs[step.id]["tools"],
            "tweets": refs[step.id]["tweets"],
        }
        for step in steps
    ]
    return data


def create_playbook(db: Session, ctx: RequestContext, payload: PlaybookCreateRequest) -> Playbook:
    """创建手册及其步骤；引用校验全部通过后才写入。"""
    steps = payload.steps or []
    ensure_tags_exist(db, ctx, payload.tag_ids)
    for _, field_name, _, model, message in _STEP_REFS:
        wanted = [ref_id for step in steps for ref_id in (getattr(step, field_name) or [])]
        ensure_ids_in_workspace(db, ctx, model, wanted, message=message)

    playbook = playbook_repository.create(db, ctx, title=payload.title, description=payload.description)
    attach_tags(db, ctx, entity_type=EntityType.PLAYBOOK, entity_id=playbook.id, tag_ids=payload.tag_ids or [])

    for step_payload in steps:
        step = PlaybookStep(
            workspace_id=ctx.workspace_id,
            playbook_id=playbook.id,
            title=step_payload.title,
            description=step_payload.description,
            order=step_payload.order,
        )
        db.add(step)
        db.flush()
        for entity_type, field_name, _, _, _ in _STEP_REFS:
            ref_ids = dict.fromkeys(getattr(step_payload, field_name) or [])
            for position, ref_id in enumerate(ref_ids):
                db.add(
                    PlaybookStepItem(
                        workspace_id=ctx.workspace_id,
                        step_id=step.id,
                        entity_type=entity_type,
                        entity_id=ref_id,
                        position=position,
                    )
                )
    db.flush()
    return playbook
