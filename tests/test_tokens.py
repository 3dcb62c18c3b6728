"""
tests/test_tokens.py -- Unit tests for auth/tokens.py.

Covers password hashing (salted, 72-byte truncation, malformed hashes) and
TokenService issue / verify including expiry and foreign signing keys.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import User
from auth.tokens import TokenService, authenticate_user, hash_password, verify_password

KEY = "k" * 40


class TestPasswordHashing:
    def test_hash_is_salted(self) -> None:
        assert hash_password("Secret123") != hash_password("Secret123")

    def test_verify_round_trip(self) -> None:
        hashed = hash_password("Secret123")
        assert verify_password("Secret123", hashed)
        assert not verify_password("secret123", hashed)

    def test_malformed_hash_is_false_not_error(self) -> None:
        assert verify_password("Secret123", "not-a-bcrypt-hash") is False

    def test_long_password_truncated_consistently(self) -> None:
        long_pw = "A1" + "x" * 100
        assert verify_password(long_pw, hash_password(long_pw))


class TestTokenService:
    def test_issue_then_verify(self) -> None:
        tokens = TokenService(KEY)
        assert tokens.verify(tokens.issue(42)) == 42

    def test_claims_carry_user_id_and_thirty_day_expiry(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        token = TokenService(KEY).issue(7, now=now)
        claims = jwt.get_unverified_claims(token)
        assert claims["user_id"] == 7
        assert claims["sub"] == "7"
        assert claims["exp"] - claims["iat"] == int(timedelta(days=30).total_seconds())

    def test_expired_token_rejected(self) -> None:
        tokens = TokenService(KEY, expire_days=1)
        token = tokens.issue(7, now=datetime.now(timezone.utc) - timedelta(days=2))
        assert tokens.verify(token) is None

    def test_other_key_rejected(self) -> None:
        token = TokenService("o" * 40).issue(7)
        assert TokenService(KEY).verify(token) is None

    def test_garbage_rejected(self) -> None:
        assert TokenService(KEY).verify("abc.def.ghi") is None

    def test_non_integer_user_id_rejected(self) -> None:
        token = jwt.encode({"user_id": "7"}, KEY, algorithm="HS256")
        assert TokenService(KEY).verify(token) is None

    def test_empty_key_refused(self) -> None:
        with pytest.raises(ValueError):
            TokenService("")


class _StubStore:
    def __init__(self, user: User | None) -> None:
        self.user = user

    def get_by_email(self, email: str) -> User | None:
        return self.user


class TestAuthenticateUser:
    def test_success(self) -> None:
        user = User(username="ann", email="ann@example.com", id=1, hashed_password=hash_password("Secret123"))
        assert authenticate_user(_StubStore(user), "ann@example.com", "Secret123") is user

    def test_wrong_password(self) -> None:
        user = User(username="ann", email="ann@example.com", id=1, hashed_password=hash_password("Secret123"))
        assert authenticate_user(_StubStore(user), "ann@example.com", "nope") is None

    def test_unknown_email(self) -> None:
        assert authenticate_user(_StubStore(None), "ghost@example.com", "Secret123") is None
