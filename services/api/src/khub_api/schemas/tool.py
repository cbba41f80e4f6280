"""工具请求结构。"""

from uuid import UUID

from pydantic import Field

from khub_api.schemas.common import RequestSchema


class ToolCreateRequest(RequestSchema):
    """创建工具请求体。"""

    name: str = Field(min_length=1, max_length=256, title="工具名称", examples=["Cursor"])
    description: str | None = Field(default=None, title="描述")
    official_url: str | None = Field(default=None, max_length=2048, title="官网地址")
    prerequisites: str | None = Field(default=None, title="使用前提")
    common_mistakes: str | None = Field(default=None, title="常见错误")
    best_practices: str | None = Field(default=None, title="最佳实践")
    category_id: UUID | None = Field(default=None, title="分类")
    mastery_level_id: UUID | None = Field(default=None, title="掌握程度")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")


class ToolUpdateRequest(RequestSchema):
    """更新工具请求体；`tagIds` 会整体替换已有标签。"""

    name: str | None = Field(default=None, min_length=1, max_length=256, title="工具名称")
    description: str | None = Field(default=None, title="描述")
    official_url: str | None = Field(default=None, max_length=2048, title="官网地址")
    prerequisites: str | None = Field(default=None, title="使用前提")
    common_mistakes: str | None = Field(default=None, title="常见错误")
    best_practices: str | None = Field(default=None, title="最佳实践")
    category_id: UUID | None = Field(default=None, title="分类")
    mastery_level_id: UUID | None = Field(default=None, title="掌握程度")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")
    is_favorite: bool | None = Field(default=None, strict=True, title="收藏")
