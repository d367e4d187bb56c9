from datetime import datetime, timedelta, timezone

from jose import jwt

from aetherflow.config import settings
from aetherflow.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_access_token_round_trip():
    token = create_access_token("3f1c7a52-0000-4000-8000-000000000001")

    assert decode_access_token(token) == "3f1c7a52-0000-4000-8000-000000000001"


def test_access_token_expiry_comes_from_settings():
    before = datetime.now(timezone.utc)
    token = create_access_token("abc")

    claims = jwt.get_unverified_claims(token)
    lifetime = claims["exp"] - before.timestamp()
    expected = timedelta(minutes=settings.access_token_expire_minutes).total_seconds()
    assert expected - 5 <= lifetime <= expected + 5
    assert claims["type"] == "access"


def test_non_access_token_is_rejected():
    expire = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode(
        {"sub": "abc", "exp": expire, "type": "refresh"},
        settings.secret_key,
        algorithm=settings.algorithm,
    )

    assert decode_access_token(token) is None


def test_expired_or_garbage_token_is_rejected():
    expired = jwt.encode(
        {"sub": "abc", "exp": datetime.now(timezone.utc) - timedelta(minutes=1), "type": "access"},
        settings.secret_key,
        algorithm=settings.algorithm,
    )

    assert decode_access_token(expired) is None
    assert decode_access_token("not-a-jwt") is None


def test_password_hashing():
    hashed = hash_password("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
