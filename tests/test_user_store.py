"""
tests/test_user_store.py -- Unit tests for auth/store.py (UserStore).

Runs against a named shared-memory SQLite database per test.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore, unique_violation_field


def _user(email: str = "ann@example.com", username: str = "ann") -> User:
    return User(username=username, email=email, hashed_password="$2b$12$hash", contact_number="555 0100")


@pytest.fixture
def user_store(stores) -> UserStore:
    return stores[0]


def test_create_and_get_by_email_case_insensitive(user_store: UserStore) -> None:
    uid = user_store.create_user(_user("Ann@Example.COM"))
    user = user_store.get_by_email("ann@example.com")
    assert user is not None
    assert user.id == uid
    assert user.email == "ann@example.com"
    assert user.created_at


def test_get_by_email_missing(user_store: UserStore) -> None:
    assert user_store.get_by_email("ghost@example.com") is None


def test_get_by_id_without_password_omits_hash(user_store: UserStore) -> None:
    uid = user_store.create_user(_user())
    assert user_store.get_by_id(uid).hashed_password == "$2b$12$hash"
    principal = user_store.get_by_id(uid, with_password=False)
    assert principal.hashed_password is None
    assert principal.contact_number == "555 0100"


def test_get_by_id_missing(user_store: UserStore) -> None:
    assert user_store.get_by_id(999) is None


def test_duplicate_email_raises_integrity_error(user_store: UserStore) -> None:
    user_store.create_user(_user())
    with pytest.raises(IntegrityError) as excinfo:
        user_store.create_user(_user("ANN@example.com", username="other"))
    assert unique_violation_field(excinfo.value) == "email"


def test_ping(user_store: UserStore) -> None:
    assert user_store.ping() is True
