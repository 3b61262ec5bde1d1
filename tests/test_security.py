"""
Tests for core/security.py
"""

from datetime import UTC, datetime, timedelta

from jose import jwt

from coachslots.core.config import settings
from coachslots.core.security import Principal, create_access_token, decode_access_token


def test_round_trip_carries_organization_and_role():
    token = create_access_token("user_1", organization_id="org_1", role="coach")
    assert decode_access_token(token) == Principal(user_id="user_1", organization_id="org_1", role="coach")


def test_coach_roles():
    assert Principal("u", "o", "super_coach").is_coach
    assert Principal("u", "o", "admin").is_coach
    assert not Principal("u", "o", "member").is_coach
    assert not Principal("u", "o").is_coach


def test_expired_token_is_rejected():
    expired = datetime.now(UTC) - timedelta(minutes=1)
    token = jwt.encode(
        {"sub": "user_1", "exp": expired, "type": "access"},
        settings.secret_key,
        algorithm=settings.algorithm,
    )
    assert decode_access_token(token) is None


def test_wrong_secret_is_rejected():
    token = jwt.encode({"sub": "user_1", "type": "access"}, "another-secret", algorithm="HS256")
    assert decode_access_token(token) is None


def test_refresh_tokens_are_not_access_tokens():
    token = jwt.encode({"sub": "user_1", "type": "refresh"}, settings.secret_key, algorithm=settings.algorithm)
    assert decode_access_token(token) is None
