"""附件模型。"""

from uuid import UUID

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from khub_api.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, WorkspaceScopedMixin


class Attachment(Base, UUIDPrimaryKeyMixin, TimestampMixin, WorkspaceScopedMixin):
    """上传文件元数据，最多关联提示词/推文/工具中的一个。"""

    __tablename__ = "attachments"

    # 对象存储中的路径。
    filename: Mapped[str] = mapped_column(String(1024), nullable=False)
    original_name: Mapped[str] = mapped_column(String(512), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    prompt_id: Mapped[UUID | None] = mapped_column(index=True)
    tweet_id: Mapped[UUID | None] = mapped_column(index=True)
    tool_id: Mapped[UUID | None] = mapped_column(index=True)
