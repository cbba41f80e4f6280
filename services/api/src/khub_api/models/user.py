"""用户模型。"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """用户实体，注册后创建，认证时读取。"""

    __tablename__ = "users"

    # 登录邮箱，统一小写后全局唯一。
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    # PBKDF2 口令哈希。
    password_hash: Mapped[str] = mapped_column(String(512), nullable=False)
    # 展示名。
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    # 可选头像地址。
    avatar: Mapped[str | None] = mapped_column(String(1024))
