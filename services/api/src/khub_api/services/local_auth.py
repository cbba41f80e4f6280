"""账号口令与会话令牌签发。

口令存储格式：`pbkdf2_sha256$<迭代次数>$<盐 base64>$<摘要 base64>`，
迭代次数随哈希一起保存，调整配置后旧口令仍可校验。
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import secrets
from uuid import uuid4

import jwt

from khub_api.core.config import get_settings
from khub_api.models.user import User

PASSWORD_SCHEME = "pbkdf2_sha256"
SALT_BYTES = 16


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def hash_password(password: str) -> str:
    iterations = get_settings().auth_password_hash_iterations
    salt = secrets.token_bytes(SALT_BYTES)
    return "$".join((PASSWORD_SCHEME, str(iterations), _b64(salt), _b64(_derive(password, salt, iterations))))


def verify_password(password: str, password_hash: str) -> bool:
    """常量时间比较口令摘要；哈希格式不合法时视为不匹配。"""
    parts = password_hash.split("$")
    if len(parts) != 4 or parts[0] != PASSWORD_SCHEME:
        return False
    try:
        iterations = int(parts[1])
        salt = base64.b64decode(parts[2], validate=True)
        expected = base64.b64decode(parts[3], validate=True)
    except (ValueError, binascii.Error):
        return False
    return hmac.compare_digest(_derive(password, salt, iterations), expected)


def issue_session_token(user: User) -> tuple[str, datetime]:
    """签发会话令牌，返回令牌与过期时间。

    令牌带唯一 jti，登出时按 jti 拉黑到过期为止。
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(seconds=settings.auth_access_token_ttl_seconds)
    token = jwt.encode(
        {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": uuid4().hex,
        },
        settings.auth_jwt_secret,
        algorithm=settings.auth_algorithms[0],
    )
    return token, expires_at
