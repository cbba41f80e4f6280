from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import jwt
import pytest

from khub_api.core.config import get_settings
from khub_api.core.security import (
    InvalidSessionToken,
    decode_session_token,
    is_token_jti_revoked,
    revoke_token_jti,
)
from khub_api.services.local_auth import hash_password, issue_session_token, normalize_email, verify_password


def _user():
    return SimpleNamespace(id=uuid4(), email="alice@example.com", name="Alice")


def test_password_hash_roundtrip_and_mismatch():
    hashed = hash_password("StrongPassw0rd!")

    assert hashed.startswith("pbkdf2_sha256$1000$")
    assert verify_password("StrongPassw0rd!", hashed)
    assert not verify_password("wrong-password", hashed)
    assert not verify_password("StrongPassw0rd!", "garbage")


def test_normalize_email_lowercases_and_strips():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"


def test_issued_token_decodes_with_subject():
    user = _user()
    token, expires_at = issue_session_token(user)

    claims = decode_session_token(token)

    assert claims["sub"] == str(user.id)
    assert claims["exp"] == int(expires_at.timestamp())
    assert claims["jti"]


def test_expired_or_forged_tokens_are_rejected():
    settings = get_settings()
    expired = jwt.encode(
        {"sub": str(uuid4()), "exp": int((datetime.now(timezone.utc) - timedelta(hours=1)).timestamp())},
        settings.auth_jwt_secret,
        algorithm="HS256",
    )
    forged = jwt.encode(
        {"sub": str(uuid4()), "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
        "another-secret-key-that-is-long-enough",
        algorithm="HS256",
    )

    with pytest.raises(InvalidSessionToken):
        decode_session_token(expired)
    with pytest.raises(InvalidSessionToken):
        decode_session_token(forged)


def test_revoked_jti_is_rejected_until_expiry():
    token, expires_at = issue_session_token(_user())
    jti = decode_session_token(token)["jti"]

    revoke_token_jti(jti, int(expires_at.timestamp()))

    assert is_token_jti_revoked(jti)
    with pytest.raises(InvalidSessionToken, match="revoked"):
        decode_session_token(token)
