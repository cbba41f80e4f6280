"""附件上传与删除服务。

写入顺序：先校验（类型、大小、关联目标），再写对象存储，最后写元数据；
元数据写入失败时删除刚写入的对象。
删除顺序：先删对象存储，成功后才删除元数据行。
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khub_api.models.attachment import Attachment
from khub_api.models.prompt import Prompt
from khub_api.models.tool import Tool
from khub_api.models.tweet import Tweet
from khub_api.services.repository import ScopedRepository, bad_request, not_found
from khub_api.services.session import RequestContext
from khub_api.services.storage import ObjectStorage, StorageError, build_object_key

logger = logging.getLogger("khub_api.attachments")

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
    }
)

attachment_repository = ScopedRepository(
    Attachment,
    entity_type="Attachment",
    not_found_message="附件不存在。",
)

_LINK_TARGETS: dict[str, tuple[type, str]] = {
    "prompt_id": (Prompt, "提示词不存在。"),
    "tweet_id": (Tweet, "推文不存在。"),
    "tool_id": (Tool, "工具不存在。"),
}


def validate_upload(*, filename: str | None, mime_type: str | None, size: int) -> None:
    """校验文件类型与大小，不合法时返回 400。"""
    if not filename:
        raise bad_request("未提供文件。")
    if (mime_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise bad_request("不支持的文件类型，仅允许 JPEG、PNG、GIF、WebP 图片与 PDF。")
    if size > MAX_UPLOAD_BYTES:
        raise bad_request("文件大小不能超过 5MB。")


def parse_link_targets(raw: dict[str, str | None]) -> dict[str, UUID]:
    """解析关联目标，最多允许一个。"""
    targets: dict[str, UUID] = {}
    for key, value in raw.items():
        if value is None or not str(value).strip():
            continue
        try:
            targets[key] = UUID(str(value).strip())
        except ValueError as exc:
            raise bad_request("关联对象 ID 不合法。") from exc
    if len(targets) > 1:
        raise bad_request("附件只能关联一个对象。")
    return targets


def ensure_link_targets(db: Session, ctx: RequestContext, targets: dict[str, UUID]) -> None:
    """关联目标必须属于当前工作空间，否则返回 404。"""
    for key, target_id in targets.items():
        model, message = _LINK_TARGETS[key]
        entity = db.get(model, target_id)
        if entity is None or entity.workspace_id != ctx.workspace_id:
            raise not_found(message)


def store_attachment(
    db: Session,
    ctx: RequestContext,
    storage: ObjectStorage,
    *,
    filename: str,
    mime_type: str,
    content: bytes,
    targets: dict[str, UUID],
) -> Attachment:
    """写入对象存储与附件元数据。"""
    key = build_object_key(ctx.workspace_id, filename)
    try:
        url = storage.put(key, content, content_type=mime_type)
    except StorageError as exc:
        logger.warning("attachment upload failed key=%s error=%s", key, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "STORAGE_ERROR", "message": "文件上传失败，请稍后重试。"},
        ) from exc

    try:
        attachment = attachment_repository.create(
            db,
            ctx,
            filename=key,
            original_name=filename,
            mime_type=mime_type,
            size=len(content),
            url=url,
            **targets,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("attachment metadata insert failed key=%s", key)
        try:
            storage.delete(key)
        except StorageError:
            logger.warning("orphan object left in storage key=%s", key)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "PERSISTENCE_ERROR", "message": "文件上传失败，请稍后重试。"},
        ) from exc
    db.refresh(attachment)
    return attachment


def remove_attachment(db: Session, ctx: RequestContext, storage: ObjectStorage, attachment_id: UUID) -> str:
    """先删除对象存储中的文件，成功后删除元数据，返回原始文件名。"""
    attachment = attachment_repository.get(db, ctx, attachment_id)
    original_name = attachment.original_name
    try:
        storage.delete(attachment.filename)
    except StorageError as exc:
        logger.warning("attachment storage delete failed id=%s key=%s error=%s", attachment.id, attachment.filename, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "STORAGE_ERROR", "message": "删除文件失败，请稍后重试。"},
        ) from exc

    attachment_repository.delete(db, attachment)
    db.commit()
    return original_name


def list_attachments(db: Session, ctx: RequestContext, *, prompt_id: UUID) -> list[Attachment]:
    return attachment_repository.list(
        db,
        ctx,
        filters=[Attachment.prompt_id == prompt_id],
        order_by=(Attachment.created_at.asc(), Attachment.id.asc()),
    )
