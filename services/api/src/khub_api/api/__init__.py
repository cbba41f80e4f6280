"""路由模块导出集合。"""

from . import (
    auth,
    categories,
    health,
    media,
    prompts,
    search,
    tags,
    tools,
    tweets,
    upload,
)

__all__ = [
    "auth",
    "categories",
    "health",
    "media",
    "prompts",
    "search",
    "tags",
    "tools",
    "tweets",
    "upload",
]
