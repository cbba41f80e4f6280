"""附件上传接口。"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.dependencies import get_request_context
from khub_api.models.enums import ActivityAction, EntityType
from khub_api.schemas.common import ErrorResponse, SuccessFlag
from khub_api.schemas.responses import AttachmentData
from khub_api.services.attachments import (
    MAX_UPLOAD_BYTES,
    ensure_link_targets,
    parse_link_targets,
    remove_attachment,
    store_attachment,
    validate_upload,
)
from khub_api.services.audit import record_activity
from khub_api.services.session import RequestContext
from khub_api.services.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post(
    "",
    summary="上传附件",
    description="上传图片（JPEG/PNG/GIF/WebP）或 PDF，单个文件不超过 5MB，可选关联一个提示词、推文或工具。",
    status_code=status.HTTP_201_CREATED,
    response_model=AttachmentData,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_attachment(
    request: Request,
    file: UploadFile | None = File(default=None, description="待上传文件。"),
    prompt_id: str | None = Form(default=None, alias="promptId", description="关联提示词 ID。"),
    tweet_id: str | None = Form(default=None, alias="tweetId", description="关联推文 ID。"),
    tool_id: str | None = Form(default=None, alias="toolId", description="关联工具 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """上传附件：校验通过后才写入对象存储。"""
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "VALIDATION_ERROR", "message": "未提供文件。"},
        )
    # 多读 1 字节即可判断是否超限，无需读完整个超大文件。
    content = await file.read(MAX_UPLOAD_BYTES + 1)
    validate_upload(filename=file.filename, mime_type=file.content_type, size=len(content))

    targets = parse_link_targets({"prompt_id": prompt_id, "tweet_id": tweet_id, "tool_id": tool_id})
    ensure_link_targets(db, ctx, targets)

    attachment = store_attachment(
        db,
        ctx,
        storage,
        filename=file.filename or "file.bin",
        mime_type=(file.content_type or "").lower(),
        content=content,
        targets=targets,
    )
    result = AttachmentData.model_validate(attachment)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.CREATE,
        entity_type=EntityType.ATTACHMENT,
        entity_id=result.id,
        entity_title=result.original_name,
        metadata={"size": result.size, "mime_type": result.mime_type},
    )
    return result


@router.delete(
    "",
    summary="删除附件",
    description="先删除存储中的文件，成功后再删除元数据；存储删除失败时元数据保留。",
    response_model=SuccessFlag,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def delete_attachment(
    request: Request,
    attachment_id: str | None = Query(default=None, alias="id", description="附件 ID。"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    if not attachment_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "VALIDATION_ERROR", "message": "缺少附件 ID。"},
        )
    try:
        parsed_id = UUID(attachment_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NOT_FOUND", "message": "附件不存在。"},
        ) from exc

    original_name = remove_attachment(db, ctx, storage, parsed_id)
    record_activity(
        db,
        request,
        ctx,
        action=ActivityAction.DELETE,
        entity_type=EntityType.ATTACHMENT,
        entity_id=parsed_id,
        entity_title=original_name,
    )
    return {"success": True}
