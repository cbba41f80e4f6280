"""分类与标签请求结构。"""

from pydantic import Field

from khub_api.schemas.common import RequestSchema


class CategoryCreateRequest(RequestSchema):
    """创建分类请求体。"""

    name: str = Field(min_length=1, max_length=128, title="分类名称", examples=["编程"])
    color: str | None = Field(default=None, max_length=32, title="颜色", examples=["#3b82f6"])
    icon: str | None = Field(default=None, max_length=64, title="图标")


class CategoryUpdateRequest(RequestSchema):
    """更新分类请求体，仅提交的字段会被修改。"""

    name: str | None = Field(default=None, min_length=1, max_length=128, title="分类名称")
    color: str | None = Field(default=None, max_length=32, title="颜色")
    icon: str | None = Field(default=None, max_length=64, title="图标")


class TagCreateRequest(RequestSchema):
    """创建标签请求体。"""

    name: str = Field(min_length=1, max_length=64, title="标签名称", examples=["效率"])
    color: str | None = Field(default=None, max_length=32, title="颜色")
