"""接口成功响应结构定义。

说明：
1. 服务层返回 snake_case 字典，这里的模型负责按 camelCase 输出。
2. 字段描述会直接用于 Swagger 展示，便于联调时理解含义。
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from khub_api.schemas.common import BaseSchema


class HealthStatusData(BaseSchema):
    """健康检查返回结构。"""

    status: str = Field(description="健康状态值，常见为 ok 或 ready。")


class UserData(BaseSchema):
    id: UUID = Field(description="用户 ID。")
    email: str = Field(description="登录邮箱。")
    name: str = Field(description="展示名。")
    avatar: str | None = Field(default=None, description="头像地址。")


class WorkspaceBriefData(BaseSchema):
    id: UUID = Field(description="工作空间 ID。")
    name: str = Field(description="工作空间名称。")
    slug: str | None = Field(default=None, description="工作空间短标识。")


class AuthRegisterData(BaseSchema):
    """注册结果结构。"""

    message: str = Field(description="提示信息。")
    user: UserData
    workspace: WorkspaceBriefData


class AuthLoginData(BaseSchema):
    """登录结果结构。"""

    access_token: str = Field(description="会话令牌，同时写入会话 Cookie。")
    token_type: str = Field(default="bearer", description="令牌类型。")
    expires_at: datetime = Field(description="令牌过期时间（UTC）。")
    user: UserData


class AuthMeData(BaseSchema):
    """当前会话信息。"""

    user_id: UUID
    workspace_id: UUID
    workspace_name: str
    role: str


class AuthLogoutData(BaseSchema):
    logged_out: bool = Field(description="是否已完成登出。")
    revoked: bool = Field(description="当前令牌是否已加入黑名单。")


class CategoryData(BaseSchema):
    id: UUID
    workspace_id: UUID
    name: str
    color: str | None = None
    icon: str | None = None
    created_at: datetime | None = None


class TagData(BaseSchema):
    id: UUID
    name: str
    color: str | None = None


class TaxonomyData(BaseSchema):
    id: UUID
    kind: str
    name: str
    order: int = 0


class ToolData(BaseSchema):
    """工具视图，含分类、掌握程度、标签与派生计数。"""

    id: UUID
    workspace_id: UUID
    name: str
    description: str | None = None
    official_url: str | None = None
    prerequisites: str | None = None
    common_mistakes: str | None = None
    best_practices: str | None = None
    category_id: UUID | None = None
    category: CategoryData | None = None
    mastery_level_id: UUID | None = None
    mastery_level: TaxonomyData | None = None
    tags: list[TagData] = Field(default_factory=list)
    is_archived: bool = False
    is_favorite: bool = False
    lesson_count: int = Field(default=0, description="课程数量。")
    learning_path_count: int = Field(default=0, description="所属学习路径数量。")
    created_at: datetime
    updated_at: datetime


class TweetData(BaseSchema):
    """推文视图。"""

    id: UUID
    workspace_id: UUID
    content: str
    source_url: str | None = None
    importance: str | None = None
    how_to_use: str | None = None
    category_id: UUID | None = None
    category: CategoryData | None = None
    benefit_type_id: UUID | None = None
    benefit_type: TaxonomyData | None = None
    content_type_id: UUID | None = None
    content_type: TaxonomyData | None = None
    tags: list[TagData] = Field(default_factory=list)
    is_archived: bool = False
    is_favorite: bool = False
    created_at: datetime
    updated_at: datetime


class PromptVersionData(BaseSchema):
    id: UUID
    version: int
    content: str
    change_note: str | None = None
    created_at: datetime


class PromptVariableData(BaseSchema):
    id: UUID
    name: str


class PromptTestData(BaseSchema):
    id: UUID
    prompt_id: UUID
    input: str | None = None
    output: str
    is_success: bool
    rating: int | None = None
    notes: str | None = None
    model: str | None = None
    created_at: datetime


class AttachmentData(BaseSchema):
    id: UUID
    workspace_id: UUID
    filename: str = Field(description="对象存储路径。")
    original_name: str
    mime_type: str
    size: int
    url: str
    prompt_id: UUID | None = None
    tweet_id: UUID | None = None
    tool_id: UUID | None = None
    created_at: datetime


class PromptData(BaseSchema):
    """提示词列表视图。"""

    id: UUID
    workspace_id: UUID
    title: str
    description: str | None = None
    content: str
    category_id: UUID | None = None
    category: CategoryData | None = None
    tags: list[TagData] = Field(default_factory=list)
    rating: float | None = Field(default=None, description="测试评分平均值。")
    usage_count: int = 0
    is_archived: bool = False
    is_favorite: bool = False
    version_count: int = 0
    test_count: int = 0
    created_at: datetime
    updated_at: datetime


class PromptDetailData(PromptData):
    """提示词详情视图。"""

    versions: list[PromptVersionData] = Field(default_factory=list)
    variables: list[PromptVariableData] = Field(default_factory=list)
    tests: list[PromptTestData] = Field(default_factory=list)
    attachments: list[AttachmentData] = Field(default_factory=list)


class RenderedPromptData(BaseSchema):
    content: str = Field(description="替换变量后的正文。")
    missing_variables: list[str] = Field(default_factory=list, description="未提供取值的变量。")


class PlaybookData(BaseSchema):
    """操作手册列表视图。"""

    id: UUID
    workspace_id: UUID
    title: str
    description: str | None = None
    tags: list[TagData] = Field(default_factory=list)
    is_archived: bool = False
    step_count: int = Field(default=0, description="步骤数量。")
    created_at: datetime
    updated_at: datetime


class PlaybookRefData(BaseSchema):
    """步骤引用内容的简要信息。"""

    id: UUID
    title: str = Field(description="提示词标题、工具名称或推文正文摘要。")


class PlaybookStepData(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    order: int
    prompts: list[PlaybookRefData] = Field(default_factory=list)
    tools: list[PlaybookRefData] = Field(default_factory=list)
    tweets: list[PlaybookRefData] = Field(default_factory=list)


class PlaybookDetailData(PlaybookData):
    """操作手册详情视图，步骤按顺序排列。"""

    steps: list[PlaybookStepData] = Field(default_factory=list)


class ActivityData(BaseSchema):
    id: UUID
    user_id: UUID
    action: str
    entity_type: str
    entity_id: str
    entity_title: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime


class SearchPromptItem(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    rating: float | None = None
    category: CategoryData | None = None


class SearchTweetItem(BaseSchema):
    id: UUID
    content: str
    benefit_type: TaxonomyData | None = None
    content_type: TaxonomyData | None = None


class SearchToolItem(BaseSchema):
    id: UUID
    name: str
    description: str | None = None
    mastery_level: TaxonomyData | None = None


class SearchPlaybookItem(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    step_count: int = 0


class SearchData(BaseSchema):
    """全局搜索结果，未请求的分组不返回。"""

    prompts: list[SearchPromptItem] | None = None
    tweets: list[SearchTweetItem] | None = None
    tools: list[SearchToolItem] | None = None
    playbooks: list[SearchPlaybookItem] | None = None


class PlaylistItemData(BaseSchema):
    title: str
    description: str | None = None
    url: str
    thumbnail: str | None = None
    position: int | None = None


class PlaylistData(BaseSchema):
    items: list[PlaylistItemData]
    next_page_token: str | None = None
