"""推文/笔记请求结构。"""

from uuid import UUID

from pydantic import Field

from khub_api.schemas.common import RequestSchema


class TweetCreateRequest(RequestSchema):
    """创建推文请求体。"""

    content: str = Field(min_length=1, title="内容")
    source_url: str | None = Field(default=None, max_length=2048, title="来源链接")
    importance: str | None = Field(default=None, title="重要性")
    how_to_use: str | None = Field(default=None, title="使用方式")
    category_id: UUID | None = Field(default=None, title="分类")
    benefit_type_id: UUID | None = Field(default=None, title="收益类型")
    content_type_id: UUID | None = Field(default=None, title="内容类型")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")


class TweetUpdateRequest(RequestSchema):
    """更新推文请求体。"""

    content: str | None = Field(default=None, min_length=1, title="内容")
    source_url: str | None = Field(default=None, max_length=2048, title="来源链接")
    importance: str | None = Field(default=None, title="重要性")
    how_to_use: str | None = Field(default=None, title="使用方式")
    category_id: UUID | None = Field(default=None, title="分类")
    benefit_type_id: UUID | None = Field(default=None, title="收益类型")
    content_type_id: UUID | None = Field(default=None, title="内容类型")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")
    is_favorite: bool | None = Field(default=None, strict=True, title="收藏")
