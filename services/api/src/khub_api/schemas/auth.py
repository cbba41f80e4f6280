"""注册与登录请求结构。"""

from pydantic import Field

from khub_api.schemas.common import RequestSchema

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AuthRegisterRequest(RequestSchema):
    """注册请求：同时创建用户与其第一个工作空间。"""

    email: str = Field(min_length=5, max_length=256, pattern=EMAIL_PATTERN, title="邮箱", examples=["alice@example.com"])
    password: str = Field(min_length=6, max_length=128, title="密码", examples=["StrongPassw0rd!"])
    name: str = Field(min_length=2, max_length=128, title="姓名", examples=["Alice"])
    workspace_name: str = Field(min_length=2, max_length=128, title="工作空间名称", examples=["我的知识库"])


class AuthLoginRequest(RequestSchema):
    """登录请求。"""

    email: str = Field(min_length=5, max_length=256, pattern=EMAIL_PATTERN, title="邮箱", examples=["alice@example.com"])
    password: str = Field(min_length=6, max_length=128, title="密码", examples=["StrongPassw0rd!"])
