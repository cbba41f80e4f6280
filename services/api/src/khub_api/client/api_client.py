"""知识库接口的异步客户端。"""

from typing import Any

import httpx

FAVORITABLE_RESOURCES = frozenset({"tools", "tweets", "prompts"})


class ApiError(Exception):
    """接口返回非 2xx 状态。"""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class KnowledgeHubClient:
    """对 JSON 接口的薄封装，使用会话令牌认证。"""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "KnowledgeHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        if response.is_success:
            return response.json() if response.content else None
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None
        code = body.get("code") if isinstance(body, dict) else None
        raise ApiError(response.status_code, message or response.reason_phrase, code)

    async def list_resources(self, resource: str, **params: Any) -> list[dict[str, Any]]:
        return await self._request("GET", f"/{resource}", params=params)

    async def update_resource(self, resource: str, resource_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"/{resource}/{resource_id}", json=payload)

    async def set_favorite(self, resource: str, resource_id: str, is_favorite: bool) -> dict[str, Any]:
        """持久化收藏状态，仅支持工具、推文与提示词。"""
        if resource not in FAVORITABLE_RESOURCES:
            raise ValueError(f"resource does not support favorites: {resource}")
        return await self.update_resource(resource, resource_id, {"isFavorite": is_favorite})
