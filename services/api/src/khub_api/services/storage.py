"""对象存储服务（当前为本地文件系统实现）。"""

from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Protocol
from uuid import UUID

from khub_api.core.config import get_settings

logger = logging.getLogger("khub_api.storage")


class StorageError(Exception):
    """对象存储读写失败。"""


class ObjectStorage(Protocol):
    """对象存储最小契约：写入返回公开地址，删除按对象路径。"""

    def put(self, key: str, content: bytes, *, content_type: str) -> str: ...

    def delete(self, key: str) -> None: ...


def build_object_key(workspace_id: UUID, filename: str, *, now: datetime | None = None) -> str:
    """生成附件对象路径：`attachments/{workspace_id}/{毫秒时间戳}-{文件名}`。"""
    # 仅保留文件名部分，避免目录穿越风险。
    safe_name = Path(filename.replace("\\", "/")).name or "file.bin"
    moment = now or datetime.now(timezone.utc)
    return f"attachments/{workspace_id}/{int(moment.timestamp() * 1000)}-{safe_name}"


class LocalFileStorage:
    """落盘到 `storage_root`，通过 `storage_public_base_url` 对外访问。"""

    def __init__(self, root: str | Path, public_base_url: str) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        target = (self.root / key).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"object key escapes storage root: {key}")
        return target

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def put(self, key: str, content: bytes, *, content_type: str) -> str:
        target = self._path_for(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(str(exc)) from exc
        logger.debug("stored object key=%s size=%s type=%s", key, len(content), content_type)
        return self.public_url(key)

    def delete(self, key: str) -> None:
        target = self._path_for(key)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(str(exc)) from exc


def get_storage() -> ObjectStorage:
    """对象存储依赖，测试中可覆盖为内存实现。"""
    settings = get_settings()
    return LocalFileStorage(settings.storage_root, settings.storage_public_base_url)
