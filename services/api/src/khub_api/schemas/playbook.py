"""操作手册请求结构。"""

from uuid import UUID

from pydantic import Field

from khub_api.schemas.common import RequestSchema


class PlaybookStepRequest(RequestSchema):
    """手册步骤。"""

    title: str = Field(min_length=1, max_length=256, title="步骤标题")
    description: str | None = Field(default=None, title="步骤说明")
    order: int = Field(strict=True, title="步骤顺序")
    prompt_ids: list[UUID] | None = Field(default=None, title="关联提示词")
    tool_ids: list[UUID] | None = Field(default=None, title="关联工具")
    tweet_ids: list[UUID] | None = Field(default=None, title="关联推文")


class PlaybookCreateRequest(RequestSchema):
    """创建操作手册请求体，步骤随手册一并创建。"""

    title: str = Field(min_length=1, max_length=256, title="标题", examples=["新员工入门"])
    description: str | None = Field(default=None, title="描述")
    tag_ids: list[UUID] | None = Field(default=None, title="标签")
    steps: list[PlaybookStepRequest] | None = Field(default=None, title="步骤")
