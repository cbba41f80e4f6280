"""健康检查接口，不经过会话解析。"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from khub_api.db.session import get_db
from khub_api.schemas.common import ErrorResponse
from khub_api.schemas.responses import HealthStatusData

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger("khub_api.health")


@router.get(
    "/live",
    summary="存活探针",
    response_model=HealthStatusData,
)
def live():
    return {"status": "ok"}


@router.get(
    "/ready",
    summary="就绪探针",
    description="数据库可执行查询时返回 ready，否则返回 503。",
    response_model=HealthStatusData,
    responses={503: {"model": ErrorResponse}},
)
def ready(db: Session = Depends(get_db)):
    try:
        db.execute(text("select 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness check failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "NOT_READY", "message": "数据库暂不可用。"},
        ) from exc
    return {"status": "ready"}
