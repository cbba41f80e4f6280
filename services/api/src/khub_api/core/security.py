"""会话令牌解析与吊销工具。"""

from datetime import datetime, timezone
import logging
from threading import Lock
from typing import Any

import jwt
from jwt import InvalidTokenError
from redis import Redis
from redis.exceptions import RedisError

from khub_api.core.config import get_settings

logger = logging.getLogger("khub_api.security")


class InvalidSessionToken(Exception):
    """会话令牌无法解析、已过期或已吊销。"""


class _ExpiringJtiSet:
    """进程内的 jti 黑名单，条目在令牌过期后自动失效。"""

    def __init__(self) -> None:
        self._entries: dict[str, int] = {}
        self._lock = Lock()

    def _purge(self, now_ts: int) -> None:
        for key in [k for k, exp in self._entries.items() if exp <= now_ts]:
            del self._entries[key]

    def add(self, jti: str, exp_ts: int, now_ts: int) -> None:
        with self._lock:
            self._purge(now_ts)
            self._entries[jti] = exp_ts

    def contains(self, jti: str, now_ts: int) -> bool:
        with self._lock:
            self._purge(now_ts)
            return jti in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_LOCAL_BLACKLIST = _ExpiringJtiSet()
_redis_client: Redis | None = None


def decode_session_token(token: str) -> dict[str, Any]:
    """按配置解码并校验会话令牌，返回声明集。"""
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            key=settings.auth_jwt_secret,
            algorithms=settings.auth_algorithms,
            leeway=settings.auth_jwt_leeway_seconds,
            options={"require": ["sub", "exp"]},
        )
    except InvalidTokenError as exc:
        raise InvalidSessionToken(str(exc)) from exc

    jti = claims.get("jti")
    if isinstance(jti, str) and jti and is_token_jti_revoked(jti):
        raise InvalidSessionToken("token revoked")
    return claims


def _get_redis() -> Redis | None:
    global _redis_client
    settings = get_settings()
    if not settings.redis_url:
        return None
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def _key_for_jti(jti: str) -> str:
    settings = get_settings()
    return f"{settings.auth_token_blacklist_prefix}{jti}"


def revoke_token_jti(jti: str, exp_ts: int) -> None:
    """将令牌 jti 拉黑到令牌过期时间。"""
    now_ts = int(datetime.now(timezone.utc).timestamp())
    ttl = max(1, exp_ts - now_ts)
    redis_client = _get_redis()
    if redis_client is not None:
        try:
            redis_client.setex(_key_for_jti(jti), ttl, "1")
            return
        except RedisError:
            logger.warning("redis unavailable, revoking jti in process memory")

    _LOCAL_BLACKLIST.add(jti, exp_ts, now_ts)


def is_token_jti_revoked(jti: str) -> bool:
    """判断令牌 jti 是否已被拉黑。"""
    redis_client = _get_redis()
    if redis_client is not None:
        try:
            return bool(redis_client.exists(_key_for_jti(jti)))
        except RedisError:
            logger.warning("redis unavailable, checking jti in process memory")

    now_ts = int(datetime.now(timezone.utc).timestamp())
    return _LOCAL_BLACKLIST.contains(jti, now_ts)
