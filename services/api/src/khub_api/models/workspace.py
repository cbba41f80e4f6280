"""工作空间模型。"""

from uuid import UUID

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from khub_api.models.enums import WorkspaceRole


class Workspace(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """工作空间实体，即租户隔离边界，拥有全部领域数据。"""

    __tablename__ = "workspaces"

    # 工作空间名称，面向用户展示。
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    # 全局唯一短标识。
    slug: Mapped[str] = mapped_column(String(160), nullable=False, unique=True)


class WorkspaceMember(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """用户与工作空间的成员关系。

    一个用户可属于多个工作空间，会话绑定最早创建的那条成员关系。
    """

    __tablename__ = "workspace_members"
    __table_args__ = (UniqueConstraint("workspace_id", "user_id", name="uk_workspace_member"),)

    workspace_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    # 成员角色（OWNER/ADMIN/MEMBER/VIEWER）。
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=WorkspaceRole.MEMBER)
