import httpx

from khub_api.core.config import get_settings
from khub_api.services.outbound import map_playlist_item


def test_proxy_image_streams_bytes_with_cache_headers(api_client, upstream):
    upstream.handler = lambda request: httpx.Response(200, content=b"GIF89a", headers={"content-type": "image/gif"})

    resp = api_client.get("/api/proxy-image", params={"url": "https://img.test/a.gif"})

    assert resp.status_code == 200
    assert resp.content == b"GIF89a"
    assert resp.headers["content-type"] == "image/gif"
    assert resp.headers["cache-control"] == "public, max-age=86400"
    assert resp.headers["access-control-allow-origin"] == "*"
    assert str(upstream.requests[0].url) == "https://img.test/a.gif"


def test_proxy_image_defaults_content_type(api_client, upstream):
    upstream.handler = lambda request: httpx.Response(200, content=b"raw")

    resp = api_client.get("/api/proxy-image", params={"url": "http://img.test/raw"})

    assert resp.headers["content-type"] == "application/octet-stream"


def test_proxy_image_validates_url(api_client, upstream):
    missing = api_client.get("/api/proxy-image")
    bad_scheme = api_client.get("/api/proxy-image", params={"url": "file:///etc/passwd"})

    assert missing.status_code == 400
    assert bad_scheme.status_code == 400
    assert upstream.requests == []


def test_proxy_image_passes_upstream_status(api_client, upstream):
    upstream.handler = lambda request: httpx.Response(404)

    resp = api_client.get("/api/proxy-image", params={"url": "https://img.test/missing.png"})

    assert resp.status_code == 404
    assert resp.json()["code"] == "UPSTREAM_ERROR"


def test_proxy_image_network_error_is_500(api_client, upstream):
    def fail(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = fail

    resp = api_client.get("/api/proxy-image", params={"url": "https://img.test/a.png"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "获取图片失败。"


def test_youtube_playlist_maps_items(api_client, upstream):
    upstream.handler = lambda request: httpx.Response(
        200,
        json={
            "nextPageToken": "CDIQAA",
            "items": [
                {
                    "snippet": {
                        "title": "第一课",
                        "description": "入门",
                        "position": 0,
                        "resourceId": {"videoId": "abc123"},
                        "thumbnails": {
                            "default": {"url": "https://i.ytimg.com/d.jpg"},
                            "high": {"url": "https://i.ytimg.com/h.jpg"},
                        },
                    }
                }
            ],
        },
    )

    resp = api_client.get("/api/youtube/playlist", params={"playlistId": "PL1", "pageToken": "tok"})

    assert resp.status_code == 200
    assert resp.json() == {
        "items": [
            {
                "title": "第一课",
                "description": "入门",
                "url": "https://www.youtube.com/watch?v=abc123",
                "thumbnail": "https://i.ytimg.com/h.jpg",
                "position": 0,
            }
        ],
        "nextPageToken": "CDIQAA",
    }
    params = upstream.requests[0].url.params
    assert params["playlistId"] == "PL1"
    assert params["pageToken"] == "tok"
    assert params["maxResults"] == "50"
    assert params["key"] == "yt-test-key"


def test_youtube_playlist_requires_id_and_key(api_client, upstream, monkeypatch):
    assert api_client.get("/api/youtube/playlist").status_code == 400

    monkeypatch.delenv("KH_YOUTUBE_API_KEY")
    get_settings.cache_clear()
    resp = api_client.get("/api/youtube/playlist", params={"playlistId": "PL1"})

    assert resp.status_code == 500
    assert resp.json()["code"] == "CONFIG_ERROR"
    assert upstream.requests == []


def test_youtube_playlist_forwards_upstream_error(api_client, upstream):
    upstream.handler = lambda request: httpx.Response(403, json={"error": {"message": "quotaExceeded"}})

    resp = api_client.get("/api/youtube/playlist", params={"playlistId": "PL1"})

    assert resp.status_code == 403
    assert resp.json()["details"] == {"error": {"message": "quotaExceeded"}}


def test_map_playlist_item_thumbnail_fallback():
    item = {"snippet": {"title": "t", "resourceId": {"videoId": "v"}, "thumbnails": {"medium": {"url": "m"}}}}

    assert map_playlist_item(item)["thumbnail"] == "m"
    assert map_playlist_item({"snippet": {"resourceId": {"videoId": "v"}}})["thumbnail"] is None
