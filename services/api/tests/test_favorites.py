import asyncio
import json

import httpx
import pytest

from khub_api.client import ApiError, FavoriteToggler, KnowledgeHubClient, reorder_favorites

ITEMS = [
    {"id": "a", "isFavorite": False, "createdAt": "2024-01-03T00:00:00Z"},
    {"id": "b", "isFavorite": True, "createdAt": "2024-01-01T00:00:00Z"},
    {"id": "c", "isFavorite": False, "createdAt": "2024-01-02T00:00:00Z"},
    {"id": "d", "isFavorite": True, "createdAt": "2024-01-04T00:00:00Z"},
]


def _ids(items):
    return [item["id"] for item in items]


def test_reorder_puts_favorites_first_then_newest():
    ordered = reorder_favorites(ITEMS)

    assert _ids(ordered) == ["d", "b", "a", "c"]
    assert _ids(ITEMS) == ["a", "b", "c", "d"]


def test_reorder_applies_change_without_mutating_input():
    ordered = reorder_favorites(ITEMS, "c", True)

    assert _ids(ordered) == ["d", "c", "b", "a"]
    assert ITEMS[2]["isFavorite"] is False


def test_reorder_is_stable_for_equal_keys():
    items = [{"id": "x", "createdAt": "2024-01-01T00:00:00Z"}, {"id": "y", "createdAt": "2024-01-01T00:00:00Z"}]

    assert _ids(reorder_favorites(items)) == ["x", "y"]


def _client(handler) -> KnowledgeHubClient:
    return KnowledgeHubClient("http://khub.test/api", token="t", transport=httpx.MockTransport(handler))


def test_toggle_persists_then_reorders():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path, json.loads(request.content), request.headers["authorization"]))
        return httpx.Response(200, json={"id": "a", "isFavorite": True})

    successes = []

    async def run():
        async with _client(handler) as client:
            toggler = FavoriteToggler(client, "tools", ITEMS, on_success=lambda: successes.append(True))
            assert await toggler.toggle("a") is True
            return toggler.items

    items = asyncio.run(run())

    assert calls == [("PATCH", "/api/tools/a", {"isFavorite": True}, "Bearer t")]
    assert _ids(items) == ["d", "a", "b", "c"]
    assert items[1]["isFavorite"] is True
    assert successes == [True]


def test_toggle_failure_leaves_list_unchanged():
    errors = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "工具不存在。", "code": "NOT_FOUND", "request_id": "r"})

    async def run():
        async with _client(handler) as client:
            toggler = FavoriteToggler(client, "tools", ITEMS, on_error=errors.append)
            assert await toggler.toggle("a") is False
            return toggler

    toggler = asyncio.run(run())

    assert toggler.items == ITEMS
    assert toggler.toggling == frozenset()
    assert isinstance(errors[0], ApiError)
    assert errors[0].status_code == 404
    assert errors[0].message == "工具不存在。"


def test_duplicate_toggle_is_ignored_while_in_flight():
    async def run():
        release = asyncio.Event()
        hits = []

        async def handler(request: httpx.Request) -> httpx.Response:
            hits.append(request.url.path)
            await release.wait()
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            toggler = FavoriteToggler(client, "prompts", ITEMS)
            first = asyncio.create_task(toggler.toggle("c"))
            while "c" not in toggler.toggling:
                await asyncio.sleep(0)
            assert await toggler.toggle("c") is False
            release.set()
            assert await first is True
            return hits, toggler.items

    hits, items = asyncio.run(run())

    assert hits == ["/api/prompts/c"]
    assert _ids(items) == ["d", "c", "b", "a"]


def test_set_favorite_rejects_unsupported_resource():
    async def run():
        async with _client(lambda request: httpx.Response(200)) as client:
            await client.set_favorite("categories", "x", True)

    with pytest.raises(ValueError):
        asyncio.run(run())


def test_double_toggle_restores_value_and_position():
    async def run():
        async with _client(lambda request: httpx.Response(200, json={})) as client:
            toggler = FavoriteToggler(client, "tweets", reorder_favorites(ITEMS))
            before = toggler.items
            assert await toggler.toggle("c") is True
            assert await toggler.toggle("c") is True
            return before, toggler.items

    before, after = asyncio.run(run())

    assert after == before
