"""FastAPI 应用入口点。"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from khub_api.api.router import api_router
from khub_api.core.config import get_settings
from khub_api.core.logging import setup_logging
from khub_api.models.base import Base
from khub_api.db.session import dispose_engine, get_engine
from khub_api.exceptions import register_exception_handlers
from khub_api.middlewares import register_middlewares

logger = logging.getLogger("khub_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """启动时初始化日志（可选建表），关闭时释放连接池。"""
    settings = get_settings()
    setup_logging()
    if settings.database_auto_create:
        Base.metadata.create_all(get_engine())
        logger.info("database tables ensured")
    logger.info("%s started env=%s", settings.app_name, settings.app_env)
    try:
        yield
    finally:
        dispose_engine()
        logger.info("%s stopped", settings.app_name)


def create_app() -> FastAPI:
    """创建并配置 FastAPI 应用实例。"""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.app_debug,
        lifespan=lifespan,
        description=(
            "多租户知识管理接口：提示词、工具、推文/笔记、分类、标签与附件。\n\n"
            "成功时直接返回资源 JSON（camelCase 字段）；失败时返回 `{error, code, request_id}`。\n"
            "通过会话 Cookie 或 Bearer 令牌认证，会话绑定用户最早加入的工作空间。"
        ),
        openapi_tags=[
            {"name": "health", "description": "服务存活与就绪探针。"},
            {"name": "auth", "description": "注册、登录、登出与当前会话。"},
            {"name": "categories", "description": "分类管理。"},
            {"name": "tags", "description": "标签与分类字典。"},
            {"name": "tools", "description": "工具管理。"},
            {"name": "tweets", "description": "推文/笔记管理。"},
            {"name": "prompts", "description": "提示词、版本与测试记录。"},
            {"name": "upload", "description": "附件上传与删除。"},
            {"name": "search", "description": "全局搜索与活动记录。"},
            {"name": "media", "description": "图片代理与 YouTube 播放列表。"},
        ],
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    # 本地存储的公开地址为相对路径时，由应用直接提供静态文件。
    if settings.storage_public_base_url.startswith("/"):
        app.mount(
            settings.storage_public_base_url,
            StaticFiles(directory=settings.storage_root, check_dir=False),
            name="files",
        )
    return app


app = create_app()
