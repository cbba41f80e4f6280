"""收藏切换与列表重排。

切换流程不做乐观更新：先调用接口持久化，成功后才修改本地列表并重排；
失败时本地列表保持不变并触发错误回调。
"""

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
import logging
from typing import Any

import httpx

from khub_api.client.api_client import ApiError, KnowledgeHubClient

logger = logging.getLogger("khub_api.client.favorites")


def _timestamp(value: Any) -> float | None:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None


def _sort_key(item: Mapping[str, Any]) -> tuple[bool, float]:
    created = _timestamp(item.get("createdAt"))
    return (not item.get("isFavorite", False), -created if created is not None else 0.0)


def reorder_favorites(
    items: Iterable[Mapping[str, Any]],
    changed_id: str | None = None,
    is_favorite: bool | None = None,
) -> list[dict[str, Any]]:
    """返回重排后的新列表：收藏在前，同组内创建时间新的在前。

    传入 `changed_id` 时先更新该条目的收藏状态（未给出 `is_favorite` 则取反）。
    排序稳定，输入列表与条目不会被修改。
    """
    updated: list[dict[str, Any]] = []
    for item in items:
        copied = dict(item)
        if changed_id is not None and copied.get("id") == changed_id:
            copied["isFavorite"] = (not copied.get("isFavorite", False)) if is_favorite is None else is_favorite
        updated.append(copied)
    updated.sort(key=_sort_key)
    return updated


class FavoriteToggler:
    """单个列表的收藏切换器，同一条目同时只允许一个切换请求。"""

    def __init__(
        self,
        client: KnowledgeHubClient,
        resource: str,
        items: Iterable[Mapping[str, Any]],
        *,
        on_success: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.client = client
        self.resource = resource
        self._items = [dict(item) for item in items]
        self._in_flight: set[str] = set()
        self.on_success = on_success
        self.on_error = on_error

    @property
    def items(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._items]

    @property
    def toggling(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    async def toggle(self, item_id: str) -> bool:
        """切换收藏状态，返回是否已生效；进行中的重复请求直接忽略。"""
        if item_id in self._in_flight:
            return False
        current = next((item for item in self._items if item.get("id") == item_id), None)
        if current is None:
            return False

        target = not current.get("isFavorite", False)
        self._in_flight.add(item_id)
        try:
            await self.client.set_favorite(self.resource, item_id, target)
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("favorite toggle failed resource=%s id=%s error=%s", self.resource, item_id, exc)
            if self.on_error is not None:
                self.on_error(exc)
            return False
        finally:
            self._in_flight.discard(item_id)

        # 基于最新列表重排，期间完成的其他切换不会被覆盖。
        self._items = reorder_favorites(self._items, item_id, target)
        if self.on_success is not None:
            self.on_success()
        return True
