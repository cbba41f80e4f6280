"""接口主流程覆盖：认证、分类标签、工具、推文、提示词与搜索。"""

from sqlalchemy.exc import OperationalError

from khub_api.db.session import get_db
from khub_api.main import app
from khub_api.services import catalog as catalog_service

PASSWORD = "Passw0rd!"


def test_health_checks(api_client):
    assert api_client.get("/api/health/live").json() == {"status": "ok"}
    ready = api_client.get("/api/health/ready")
    assert ready.status_code == 200
    assert ready.headers["x-request-id"]


def test_ready_check_reports_503_when_database_fails(api_client):
    class BrokenSession:
        def execute(self, *args, **kwargs):
            raise OperationalError("select 1", {}, Exception("connection refused"))

    app.dependency_overrides[get_db] = lambda: BrokenSession()

    resp = api_client.get("/api/health/ready")

    assert resp.status_code == 503
    assert resp.json()["code"] == "NOT_READY"


def test_request_id_header_is_echoed_in_errors(api_client):
    resp = api_client.get("/api/tools", headers={"X-Request-Id": "req-123"})

    assert resp.headers["x-request-id"] == "req-123"
    assert resp.json()["request_id"] == "req-123"


def test_register_login_me_logout(api_client, register_account):
    session = register_account(email="Alice@Example.com", name="Alice", workspace_name="Alice Lab")

    me = api_client.get("/api/auth/me", headers=session["headers"])
    assert me.status_code == 200
    assert me.json() == {
        "userId": session["user_id"],
        "workspaceId": session["workspace_id"],
        "workspaceName": "Alice Lab",
        "role": "OWNER",
    }

    duplicate = api_client.post(
        "/api/auth/register",
        json={"email": "alice@example.com", "password": PASSWORD, "name": "Alice", "workspaceName": "Again"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "EMAIL_TAKEN"

    wrong = api_client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "INVALID_CREDENTIALS"

    logout = api_client.post("/api/auth/logout", headers=session["headers"])
    assert logout.json() == {"loggedOut": True, "revoked": True}
    assert api_client.get("/api/auth/me", headers=session["headers"]).status_code == 401

    assert api_client.post("/api/auth/logout").json() == {"loggedOut": True, "revoked": False}


def test_register_validation_message(api_client):
    resp = api_client.post("/api/auth/register", json={"email": "bad-email", "password": PASSWORD, "name": "Al", "workspaceName": "WS"})

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "邮箱格式不正确。",
        "code": "VALIDATION_ERROR",
        "request_id": resp.headers["x-request-id"],
        "field": "email",
    }


def test_new_workspace_is_seeded(api_client, owner):
    categories = api_client.get("/api/categories", headers=owner["headers"]).json()
    taxonomy = api_client.get("/api/taxonomy", params={"kind": "mastery_level"}, headers=owner["headers"]).json()

    assert sorted(item["name"] for item in categories) == sorted(["通用", "内容生成", "编程", "分析", "营销"])
    assert [item["name"] for item in taxonomy] == ["未开始", "学习中", "已在使用", "精通"]
    assert len(api_client.get("/api/taxonomy", headers=owner["headers"]).json()) == 14


def test_category_crud_nulls_references(api_client, owner):
    headers = owner["headers"]
    category = api_client.post("/api/categories", json={"name": "研究", "color": "#111111"}, headers=headers)
    assert category.status_code == 201
    category_id = category.json()["id"]

    renamed = api_client.patch(f"/api/categories/{category_id}", json={"name": " 调研 "}, headers=headers)
    assert renamed.json()["name"] == "调研"
    assert renamed.json()["color"] == "#111111"

    tool = api_client.post("/api/tools", json={"name": "Notion", "categoryId": category_id}, headers=headers).json()
    assert tool["category"]["name"] == "调研"

    assert api_client.delete(f"/api/categories/{category_id}", headers=headers).json() == {"success": True}
    assert api_client.get(f"/api/categories/{category_id}", headers=headers).status_code == 404
    after = api_client.get(f"/api/tools/{tool['id']}", headers=headers).json()
    assert after["categoryId"] is None
    assert after["category"] is None


def test_tags_are_unique_per_workspace(api_client, owner, outsider):
    first = api_client.post("/api/tags", json={"name": "效率", "color": "#fff"}, headers=owner["headers"])
    duplicate = api_client.post("/api/tags", json={"name": " 效率 "}, headers=owner["headers"])
    other_workspace = api_client.post("/api/tags", json={"name": "效率"}, headers=outsider["headers"])

    assert first.status_code == 201
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "TAG_EXISTS"
    assert other_workspace.status_code == 201


def test_concurrent_duplicate_tag_hits_unique_constraint(api_client, owner, monkeypatch):
    assert api_client.post("/api/tags", json={"name": "并发"}, headers=owner["headers"]).status_code == 201
    # 模拟另一请求的写入在预检查之后才可见。
    monkeypatch.setattr(catalog_service, "tag_name_taken", lambda db, ctx, name: False)

    resp = api_client.post("/api/tags", json={"name": "并发"}, headers=owner["headers"])

    assert resp.status_code == 409
    assert resp.json()["code"] == "TAG_EXISTS"
    assert [tag["name"] for tag in api_client.get("/api/tags", headers=owner["headers"]).json()] == ["并发"]


def test_tool_lifecycle_with_tags(api_client, owner):
    headers = owner["headers"]
    tag_a = api_client.post("/api/tags", json={"name": "a"}, headers=headers).json()["id"]
    tag_b = api_client.post("/api/tags", json={"name": "b"}, headers=headers).json()["id"]
    level = api_client.get("/api/taxonomy", params={"kind": "mastery_level"}, headers=headers).json()[1]

    created = api_client.post(
        "/api/tools",
        json={"name": "Cursor", "description": "AI 编辑器", "tagIds": [tag_a, tag_a], "masteryLevelId": level["id"]},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    tool = created.json()
    assert [tag["name"] for tag in tool["tags"]] == ["a"]
    assert tool["masteryLevel"]["name"] == "学习中"
    assert tool["lessonCount"] == 0

    patched = api_client.patch(
        f"/api/tools/{tool['id']}", json={"tagIds": [tag_b], "isFavorite": True}, headers=headers
    ).json()
    assert [tag["name"] for tag in patched["tags"]] == ["b"]
    assert patched["isFavorite"] is True
    assert patched["description"] == "AI 编辑器"

    wrong_kind = api_client.patch(
        f"/api/tools/{tool['id']}",
        json={"masteryLevelId": api_client.get("/api/taxonomy", params={"kind": "benefit_type"}, headers=headers).json()[0]["id"]},
        headers=headers,
    )
    assert wrong_kind.status_code == 400

    assert api_client.delete(f"/api/tags/{tag_b}", headers=headers).status_code == 200
    assert api_client.get(f"/api/tools/{tool['id']}", headers=headers).json()["tags"] == []

    assert api_client.delete(f"/api/tools/{tool['id']}", headers=headers).status_code == 200
    assert api_client.get("/api/tools", headers=headers).json() == []
    archived = api_client.get("/api/tools", params={"includeArchived": "true"}, headers=headers).json()
    assert [item["id"] for item in archived] == [tool["id"]]


def test_tweet_search_escapes_wildcards(api_client, owner):
    headers = owner["headers"]
    api_client.post("/api/tweets", json={"content": "提升 100% 效率"}, headers=headers)
    api_client.post("/api/tweets", json={"content": "普通笔记", "importance": "high"}, headers=headers)

    percent = api_client.get("/api/tweets", params={"search": "100%"}, headers=headers).json()
    by_importance = api_client.get("/api/tweets", params={"search": "HIGH"}, headers=headers).json()
    wildcard = api_client.get("/api/tweets", params={"search": "%"}, headers=headers).json()

    assert [item["content"] for item in percent] == ["提升 100% 效率"]
    assert [item["content"] for item in by_importance] == ["普通笔记"]
    assert [item["content"] for item in wildcard] == ["提升 100% 效率"]


def test_tweet_taxonomy_and_empty_content(api_client, owner):
    headers = owner["headers"]
    benefit = api_client.get("/api/taxonomy", params={"kind": "benefit_type"}, headers=headers).json()[0]
    content_type = api_client.get("/api/taxonomy", params={"kind": "content_type"}, headers=headers).json()[0]

    created = api_client.post(
        "/api/tweets",
        json={"content": "笔记", "benefitTypeId": benefit["id"], "contentTypeId": content_type["id"]},
        headers=headers,
    ).json()
    assert created["benefitType"]["name"] == "生成"
    assert created["contentType"]["name"] == "课程"

    empty = api_client.patch(f"/api/tweets/{created['id']}", json={"content": ""}, headers=headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "内容不能为空。"


def test_prompt_versions_variables_and_render(api_client, owner):
    headers = owner["headers"]
    created = api_client.post(
        "/api/prompts",
        json={"title": "邮件", "content": "给 {{name}} 写关于 {{topic}} 的邮件"},
        headers=headers,
    )
    assert created.status_code == 201
    prompt = created.json()
    assert [item["version"] for item in prompt["versions"]] == [1]
    assert prompt["versions"][0]["changeNote"] == "初始版本"
    assert [item["name"] for item in prompt["variables"]] == ["name", "topic"]

    same_content = api_client.patch(
        f"/api/prompts/{prompt['id']}", json={"title": "邮件模板", "content": prompt["content"]}, headers=headers
    ).json()
    assert same_content["versionCount"] == 1

    updated = api_client.put(
        f"/api/prompts/{prompt['id']}",
        json={"content": "{{tone}} 地回复 {{name}}", "changeNote": "改语气"},
        headers=headers,
    ).json()
    assert [item["version"] for item in updated["versions"]] == [2, 1]
    assert updated["versions"][0]["changeNote"] == "改语气"
    assert [item["name"] for item in updated["variables"]] == ["tone", "name"]
    assert updated["title"] == "邮件模板"

    rendered = api_client.post(
        f"/api/prompts/{prompt['id']}/render", json={"variables": {"name": "Bob"}}, headers=headers
    ).json()
    assert rendered == {"content": "{{tone}} 地回复 Bob", "missingVariables": ["tone"]}


def test_prompt_tests_update_rating_and_usage(api_client, owner):
    headers = owner["headers"]
    prompt_id = api_client.post("/api/prompts", json={"title": "总结", "content": "总结"}, headers=headers).json()["id"]

    for rating in (5, 3, None):
        payload = {"output": "ok", "isSuccess": True}
        if rating is not None:
            payload["rating"] = rating
        resp = api_client.post(f"/api/prompts/{prompt_id}/tests", json=payload, headers=headers)
        assert resp.status_code == 201

    invalid = api_client.post(
        f"/api/prompts/{prompt_id}/tests", json={"output": "ok", "isSuccess": True, "rating": 0}, headers=headers
    )
    assert invalid.status_code == 400

    first = api_client.get(f"/api/prompts/{prompt_id}", headers=headers).json()
    second = api_client.get(f"/api/prompts/{prompt_id}", headers=headers).json()
    assert first["rating"] == 4.0
    assert first["testCount"] == 3
    assert len(first["tests"]) == 3
    assert second["usageCount"] == first["usageCount"] + 1

    tests = api_client.get(f"/api/prompts/{prompt_id}/tests", headers=headers).json()
    assert [item["rating"] for item in tests] == [None, 3, 5]


def test_prompt_list_filters_and_sorting(api_client, owner):
    headers = owner["headers"]
    category_id = api_client.get("/api/categories", headers=headers).json()[0]["id"]
    rated = api_client.post("/api/prompts", json={"title": "B", "content": "x", "categoryId": category_id}, headers=headers).json()
    api_client.post(f"/api/prompts/{rated['id']}/tests", json={"output": "o", "isSuccess": True, "rating": 2}, headers=headers)
    unrated = api_client.post("/api/prompts", json={"title": "A", "content": "y"}, headers=headers).json()

    by_title = api_client.get("/api/prompts", params={"sortBy": "title", "sortOrder": "asc"}, headers=headers).json()
    by_rating = api_client.get("/api/prompts", params={"sortBy": "rating"}, headers=headers).json()
    filtered = api_client.get("/api/prompts", params={"categoryId": category_id}, headers=headers).json()
    bad_sort = api_client.get("/api/prompts", params={"sortBy": "secret"}, headers=headers)

    assert [item["title"] for item in by_title] == ["A", "B"]
    assert [item["id"] for item in by_rating] == [rated["id"], unrated["id"]]
    assert [item["id"] for item in filtered] == [rated["id"]]
    assert bad_sort.status_code == 400


def test_global_search_groups_and_limits(api_client, owner):
    headers = owner["headers"]
    for index in range(12):
        api_client.post("/api/prompts", json={"title": f"Agent 提示词 {index}", "content": "c"}, headers=headers)
    api_client.post("/api/tools", json={"name": "Agent Builder"}, headers=headers)
    archived = api_client.post("/api/tweets", json={"content": "agent 笔记"}, headers=headers).json()
    api_client.delete(f"/api/tweets/{archived['id']}", headers=headers)

    everything = api_client.get("/api/search", params={"q": "agent"}, headers=headers).json()
    tools_only = api_client.get("/api/search", params={"q": "agent", "type": "tools"}, headers=headers).json()
    too_short = api_client.get("/api/search", params={"q": "a"}, headers=headers).json()
    unknown_type = api_client.get("/api/search", params={"q": "agent", "type": "users"}, headers=headers)

    assert len(everything["prompts"]) == 10
    assert everything["tweets"] == []
    assert [item["name"] for item in everything["tools"]] == ["Agent Builder"]
    assert list(tools_only) == ["tools"]
    assert too_short == {"prompts": [], "tweets": [], "tools": [], "playbooks": []}
    assert unknown_type.status_code == 400
