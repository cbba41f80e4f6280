"""提示词请求结构。"""

from uuid import UUID

from pydantic import Field

from khub_api.schemas.common import RequestSchema


class PromptCreateRequest(RequestSchema):
    """创建提示词请求体。"""

    title: str = Field(min_length=1, max_length=256, title="标题", examples=["周报生成"])
    description: str | None = Field(default=None, title="描述")
    content: str = Field(min_length=1, title="提示词内容", examples=["请根据 {{notes}} 生成本周周报"])
    category_id: UUID | None = Field(default=None, title="分类")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")


class PromptUpdateRequest(RequestSchema):
    """更新提示词请求体；正文变化时生成新版本。"""

    title: str | None = Field(default=None, min_length=1, max_length=256, title="标题")
    description: str | None = Field(default=None, title="描述")
    content: str | None = Field(default=None, min_length=1, title="提示词内容")
    category_id: UUID | None = Field(default=None, title="分类")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")
    change_note: str | None = Field(default=None, title="变更说明")
    is_favorite: bool | None = Field(default=None, strict=True, title="收藏")


class PromptTestCreateRequest(RequestSchema):
    """新增测试结果请求体。"""

    input: str | None = Field(default=None, title="测试输入")
    output: str = Field(min_length=1, title="测试结果")
    is_success: bool = Field(strict=True, title="是否成功")
    rating: int | None = Field(default=None, strict=True, ge=1, le=5, title="评分")
    notes: str | None = Field(default=None, title="备注")
    model: str | None = Field(default=None, max_length=128, title="模型")


class PromptRenderRequest(RequestSchema):
    """渲染提示词请求体。"""

    variables: dict[str, str] = Field(default_factory=dict, title="变量取值")
