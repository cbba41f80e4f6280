"""外部请求服务：图片代理与 YouTube 播放列表。"""

from collections.abc import Generator
from dataclasses import dataclass
import logging
from typing import Any
from urllib.parse import urlparse

from fastapi import HTTPException, status
import httpx

from khub_api.core.config import get_settings

logger = logging.getLogger("khub_api.outbound")

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
YOUTUBE_PAGE_SIZE = 50


def get_http_client() -> Generator[httpx.Client, None, None]:
    """外部请求客户端依赖，测试中可替换为 MockTransport。"""
    settings = get_settings()
    client = httpx.Client(timeout=settings.outbound_timeout_seconds, follow_redirects=True)
    try:
        yield client
    finally:
        client.close()


def upstream_error(status_code: int, message: str, *, details: Any = None) -> HTTPException:
    detail: dict[str, Any] = {"code": "UPSTREAM_ERROR", "message": message}
    if details is not None:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


@dataclass(frozen=True)
class FetchedImage:
    content: bytes
    content_type: str


def fetch_image(client: httpx.Client, url: str | None) -> FetchedImage:
    """按原样拉取远端资源，非 2xx 时透传上游状态码。"""
    if not url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"code": "VALIDATION_ERROR", "message": "缺少图片地址。"})
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "VALIDATION_ERROR", "message": "图片地址必须是 http 或 https 链接。"},
        )

    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("image proxy fetch failed url=%s error=%s", url, exc)
        raise upstream_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "获取图片失败。") from exc

    if not response.is_success:
        raise upstream_error(response.status_code, f"获取图片失败：{response.reason_phrase}")
    return FetchedImage(
        content=response.content,
        content_type=response.headers.get("content-type") or "application/octet-stream",
    )


def _thumbnail_of(snippet: dict[str, Any]) -> str | None:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def map_playlist_item(item: dict[str, Any]) -> dict[str, Any]:
    snippet = item.get("snippet") or {}
    video_id = (snippet.get("resourceId") or {}).get("videoId")
    return {
        "title": snippet.get("title") or "",
        "description": snippet.get("description"),
        "url": YOUTUBE_WATCH_URL.format(video_id=video_id),
        "thumbnail": _thumbnail_of(snippet),
        "position": snippet.get("position"),
    }


def fetch_playlist(client: httpx.Client, playlist_id: str | None, page_token: str | None = None) -> dict[str, Any]:
    """读取 YouTube 播放列表的一页视频。"""
    if not playlist_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"code": "VALIDATION_ERROR", "message": "缺少播放列表 ID。"})

    settings = get_settings()
    if not settings.youtube_api_key:
        logger.error("youtube api key is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "CONFIG_ERROR", "message": "服务端未配置 YouTube 密钥。"},
        )

    params: dict[str, Any] = {
        "part": "snippet",
        "maxResults": YOUTUBE_PAGE_SIZE,
        "playlistId": playlist_id,
        "key": settings.youtube_api_key,
    }
    if page_token:
        params["pageToken"] = page_token

    try:
        response = client.get(f"{settings.youtube_api_base_url}/playlistItems", params=params)
    except httpx.HTTPError as exc:
        logger.warning("youtube playlist fetch failed playlist=%s error=%s", playlist_id, exc)
        raise upstream_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "获取播放列表失败。") from exc

    if not response.is_success:
        try:
            details = response.json()
        except ValueError:
            details = response.text
        logger.warning("youtube api error playlist=%s status=%s", playlist_id, response.status_code)
        raise upstream_error(response.status_code, "从 YouTube 获取播放列表失败。", details=details)

    try:
        data = response.json()
    except ValueError as exc:
        raise upstream_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "获取播放列表失败。") from exc

    return {
        "items": [map_playlist_item(item) for item in data.get("items") or []],
        "next_page_token": data.get("nextPageToken"),
    }
