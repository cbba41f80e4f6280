"""工作空间初始化服务。"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from khub_api.models.catalog import Category, TaxonomyItem
from khub_api.models.enums import TaxonomyKind, WorkspaceRole
from khub_api.models.user import User
from khub_api.models.workspace import Workspace, WorkspaceMember
from khub_api.utils.text import generate_slug

DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("通用", "#6366f1"),
    ("内容生成", "#22c55e"),
    ("编程", "#3b82f6"),
    ("分析", "#f59e0b"),
    ("营销", "#ec4899"),
)

DEFAULT_TAXONOMY: dict[TaxonomyKind, tuple[str, ...]] = {
    TaxonomyKind.BENEFIT_TYPE: ("生成", "编程", "营销", "分析", "其他"),
    TaxonomyKind.CONTENT_TYPE: ("课程", "技巧", "工具", "资讯", "其他"),
    TaxonomyKind.MASTERY_LEVEL: ("未开始", "学习中", "已在使用", "精通"),
}

SLUG_MAX_LENGTH = 160


def normalize_workspace_slug(raw: str) -> str:
    """规范化工作空间 slug。"""
    return generate_slug(raw).strip("-")[:SLUG_MAX_LENGTH] or "workspace"


def build_unique_workspace_slug(db: Session, *, base_slug: str) -> str:
    """在现有工作空间集合中生成唯一 slug。"""
    seed = normalize_workspace_slug(base_slug)
    candidate = seed
    suffix = 1
    while db.execute(select(Workspace.id).where(Workspace.slug == candidate)).scalar_one_or_none():
        postfix = f"-{suffix}"
        candidate = f"{seed[: max(1, SLUG_MAX_LENGTH - len(postfix))]}{postfix}"
        suffix += 1
    return candidate


def seed_workspace_defaults(db: Session, workspace: Workspace) -> None:
    """写入默认分类与分类字典项。"""
    for name, color in DEFAULT_CATEGORIES:
        db.add(Category(workspace_id=workspace.id, name=name, color=color))
    for kind, names in DEFAULT_TAXONOMY.items():
        for order, name in enumerate(names):
            db.add(TaxonomyItem(workspace_id=workspace.id, kind=kind, name=name, order=order))


def create_workspace_with_owner(db: Session, *, owner: User, workspace_name: str) -> Workspace:
    """创建工作空间并初始化创建者成员关系与默认数据，调用方负责提交。"""
    workspace = Workspace(
        name=workspace_name,
        slug=build_unique_workspace_slug(db, base_slug=workspace_name),
    )
    db.add(workspace)
    db.flush()

    db.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=owner.id,
            role=WorkspaceRole.OWNER,
        )
    )
    seed_workspace_defaults(db, workspace)
    db.flush()
    return workspace
