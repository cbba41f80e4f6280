"""工作空间隔离：跨空间访问一律 404，且不改变目标数据。"""

import pytest
from sqlalchemy import func, select

from khub_api.models.activity import ActivityLog
from khub_api.models.attachment import Attachment
from khub_api.models.catalog import Category, Tag
from khub_api.models.playbook import Playbook, PlaybookStep
from khub_api.models.prompt import Prompt, PromptTest
from khub_api.models.tool import Tool
from khub_api.models.tweet import Tweet

SOME_ID = "00000000-0000-4000-8000-000000000001"


def test_requests_without_session_are_401(api_client):
    for method, path in (
        ("get", "/api/tools"),
        ("get", "/api/prompts"),
        ("get", "/api/categories"),
        ("get", "/api/playbooks"),
        ("get", "/api/search?q=abc"),
        ("get", "/api/auth/me"),
    ):
        resp = getattr(api_client, method)(path)
        assert resp.status_code == 401, path
        body = resp.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["error"]


@pytest.mark.parametrize(
    ("method", "path", "payload"),
    [
        ("post", "/api/tools", {"name": "Cursor"}),
        ("patch", f"/api/tools/{SOME_ID}", {"name": "x"}),
        ("delete", f"/api/tools/{SOME_ID}", None),
        ("post", "/api/tweets", {"content": "hello"}),
        ("patch", f"/api/tweets/{SOME_ID}", {"content": "x"}),
        ("delete", f"/api/tweets/{SOME_ID}", None),
        ("post", "/api/prompts", {"title": "t", "content": "c"}),
        ("patch", f"/api/prompts/{SOME_ID}", {"title": "x"}),
        ("delete", f"/api/prompts/{SOME_ID}", None),
        ("post", f"/api/prompts/{SOME_ID}/tests", {"output": "ok", "isSuccess": True, "rating": 5}),
        ("post", "/api/categories", {"name": "新分类"}),
        ("patch", f"/api/categories/{SOME_ID}", {"name": "x"}),
        ("delete", f"/api/categories/{SOME_ID}", None),
        ("post", "/api/tags", {"name": "新标签"}),
        ("delete", f"/api/tags/{SOME_ID}", None),
        ("post", "/api/playbooks", {"title": "手册", "steps": [{"title": "s", "order": 1}]}),
        ("delete", f"/api/upload?id={SOME_ID}", None),
    ],
)
def test_mutations_without_session_are_401_and_write_nothing(
    api_client, session_factory, storage, method, path, payload
):
    kwargs = {} if payload is None else {"json": payload}

    resp = api_client.request(method.upper(), path, **kwargs)

    assert resp.status_code == 401, path
    assert resp.json()["code"] == "UNAUTHORIZED"
    assert storage.put_calls == 0
    with session_factory() as db:
        for model in (Tool, Tweet, Prompt, PromptTest, Category, Tag, Playbook, PlaybookStep, Attachment, ActivityLog):
            assert db.execute(select(func.count()).select_from(model)).scalar_one() == 0, model.__name__


def test_upload_without_session_is_401_and_stores_nothing(api_client, session_factory, storage):
    resp = api_client.post("/api/upload", files={"file": ("a.png", b"\x89PNG", "image/png")})

    assert resp.status_code == 401
    assert storage.put_calls == 0
    assert storage.objects == {}
    with session_factory() as db:
        assert db.execute(select(func.count()).select_from(Attachment)).scalar_one() == 0


def test_invalid_token_is_401(api_client):
    resp = api_client.get("/api/tools", headers={"Authorization": "Bearer not-a-token"})

    assert resp.status_code == 401


def test_cookie_session_is_accepted(api_client, owner):
    api_client.post("/api/auth/login", json={"email": "owner@example.com", "password": "Passw0rd!"})

    resp = api_client.get("/api/auth/me")

    assert resp.status_code == 200
    assert resp.json()["workspaceId"] == owner["workspace_id"]
    api_client.cookies.clear()


@pytest.mark.parametrize(
    ("resource", "payload", "patch"),
    [
        ("tools", {"name": "Cursor"}, {"name": "Hijacked"}),
        ("tweets", {"content": "一条笔记"}, {"content": "Hijacked"}),
        ("prompts", {"title": "周报", "content": "总结 {{notes}}"}, {"title": "Hijacked"}),
    ],
)
def test_cross_workspace_access_is_404(api_client, owner, outsider, resource, payload, patch):
    created = api_client.post(f"/api/{resource}", json=payload, headers=owner["headers"])
    assert created.status_code == 201, created.text
    entity_id = created.json()["id"]

    for method, kwargs in (
        ("get", {}),
        ("patch", {"json": patch}),
        ("delete", {}),
    ):
        resp = getattr(api_client, method)(f"/api/{resource}/{entity_id}", headers=outsider["headers"], **kwargs)
        assert resp.status_code == 404, (method, resp.text)
        assert resp.json()["code"] == "NOT_FOUND"

    listed = api_client.get(f"/api/{resource}", headers=outsider["headers"])
    assert listed.json() == []

    after = api_client.get(f"/api/{resource}/{entity_id}", headers=owner["headers"])
    assert after.status_code == 200
    for key, value in payload.items():
        assert after.json()[key] == value
    assert after.json()["isArchived"] is False


def test_cross_workspace_prompt_tests_and_render_are_404(api_client, owner, outsider):
    prompt_id = api_client.post(
        "/api/prompts", json={"title": "周报", "content": "总结 {{notes}}"}, headers=owner["headers"]
    ).json()["id"]

    resp = api_client.post(
        f"/api/prompts/{prompt_id}/tests",
        json={"output": "ok", "isSuccess": True, "rating": 1},
        headers=outsider["headers"],
    )
    assert resp.status_code == 404
    assert api_client.get(f"/api/prompts/{prompt_id}/tests", headers=outsider["headers"]).status_code == 404
    assert api_client.post(f"/api/prompts/{prompt_id}/render", json={}, headers=outsider["headers"]).status_code == 404

    detail = api_client.get(f"/api/prompts/{prompt_id}", headers=owner["headers"]).json()
    assert detail["tests"] == []
    assert detail["rating"] is None


def test_foreign_tag_and_category_references_are_rejected(api_client, owner, outsider):
    foreign_tag = api_client.post("/api/tags", json={"name": "外部"}, headers=outsider["headers"]).json()["id"]
    foreign_category = api_client.get("/api/categories", headers=outsider["headers"]).json()[0]["id"]

    resp = api_client.post("/api/tools", json={"name": "X", "tagIds": [foreign_tag]}, headers=owner["headers"])
    assert resp.status_code == 400
    assert foreign_tag in resp.json()["error"]

    resp = api_client.post("/api/tools", json={"name": "X", "categoryId": foreign_category}, headers=owner["headers"])
    assert resp.status_code == 400

    assert api_client.get("/api/tools", headers=owner["headers"]).json() == []


def test_search_and_activity_are_scoped(api_client, owner, outsider):
    api_client.post("/api/prompts", json={"title": "秘密提示词", "content": "secret"}, headers=owner["headers"])

    found = api_client.get("/api/search", params={"q": "秘密"}, headers=outsider["headers"]).json()
    assert found == {"prompts": [], "tweets": [], "tools": [], "playbooks": []}
    assert api_client.get("/api/activity", headers=outsider["headers"]).json() == []
