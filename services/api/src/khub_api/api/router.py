"""顶层路由注册。"""

from fastapi import APIRouter

from . import (
    auth,
    categories,
    health,
    media,
    playbooks,
    prompts,
    search,
    tags,
    tools,
    tweets,
    upload,
)

api_router = APIRouter()

# 固定注册顺序，便于在线接口文档展示和问题定位。
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(categories.router)
api_router.include_router(tags.router)
api_router.include_router(tools.router)
api_router.include_router(tweets.router)
api_router.include_router(prompts.router)
api_router.include_router(playbooks.router)
api_router.include_router(upload.router)
api_router.include_router(search.router)
api_router.include_router(media.router)
