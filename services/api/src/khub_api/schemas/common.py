"""全局通用结构。

接口字段在线上使用 camelCase（如 `tagIds`、`isFavorite`），
模型内部使用 snake_case，两种写法在请求中均可接受。
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """基础结构，开启对象映射能力与 camelCase 别名。"""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class RequestSchema(BaseModel):
    """请求体基础结构，忽略未知字段。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ErrorResponse(BaseModel):
    """统一错误响应。"""

    error: str = Field(description="面向用户的本地化错误信息。")
    code: str = Field(description="机器可识别错误码。")
    request_id: str | None = Field(default=None, description="服务端生成的请求追踪 ID。")


class SuccessFlag(BaseSchema):
    """简单成功标记。"""

    success: bool = Field(default=True, description="操作是否成功。")
