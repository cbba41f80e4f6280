"""客户端工具导出集合。"""

from khub_api.client.api_client import ApiError, KnowledgeHubClient
from khub_api.client.favorites import FavoriteToggler, reorder_favorites

__all__ = [
    "ApiError",
    "FavoriteToggler",
    "KnowledgeHubClient",
    "reorder_favorites",
]
