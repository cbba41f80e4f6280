"""外部媒体接口：图片代理与 YouTube 播放列表。"""

from fastapi import APIRouter, Depends, Query, Response
import httpx

from khub_api.schemas.common import ErrorResponse
from khub_api.schemas.responses import PlaylistData
from khub_api.services.outbound import fetch_image, fetch_playlist, get_http_client

router = APIRouter(tags=["media"])

IMAGE_CACHE_CONTROL = "public, max-age=86400"


@router.get(
    "/proxy-image",
    summary="图片代理",
    description="服务端拉取远端图片并原样返回，附带一天的缓存头与跨域头。",
    response_class=Response,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def proxy_image(
    url: str | None = Query(default=None, description="远端图片地址。"),
    client: httpx.Client = Depends(get_http_client),
):
    image = fetch_image(client, url)
    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={
            "Cache-Control": IMAGE_CACHE_CONTROL,
            "Access-Control-Allow-Origin": "*",
        },
    )


@router.get(
    "/youtube/playlist",
    summary="YouTube 播放列表",
    description="读取播放列表的一页视频（每页 50 条），通过 `pageToken` 翻页。",
    response_model=PlaylistData,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def youtube_playlist(
    playlist_id: str | None = Query(default=None, alias="playlistId", description="播放列表 ID。"),
    page_token: str | None = Query(default=None, alias="pageToken", description="翻页令牌。"),
    client: httpx.Client = Depends(get_http_client),
):
    return fetch_playlist(client, playlist_id, page_token)
