"""
tests/test_access.py -- Unit tests for cvs/access.py ownership and visibility rules.
"""

from __future__ import annotations

import pytest

from core.errors import ForbiddenError, NotFoundError, NotPublicError
from cvs.access import get_owned_cv, get_public_cv
from cvs.models import CV, BasicDetails


def _create(cv_store, user_id: int, is_public: bool = False) -> int:
    return cv_store.create_cv(
        CV(user_id=user_id, basic_details=BasicDetails(name="Ann", email="ann@example.com"), is_public=is_public)
    )


def test_owner_gets_cv(stores) -> None:
    _, cv_store = stores
    cv_id = _create(cv_store, user_id=1)
    assert get_owned_cv(cv_store, cv_id, 1).id == cv_id


def test_non_owner_is_forbidden(stores) -> None:
    _, cv_store = stores
    cv_id = _create(cv_store, user_id=1)
    with pytest.raises(ForbiddenError) as excinfo:
        get_owned_cv(cv_store, cv_id, 2)
    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Not authorized"


def test_missing_cv_is_not_found_for_owner_and_public(stores) -> None:
    _, cv_store = stores
    with pytest.raises(NotFoundError):
        get_owned_cv(cv_store, 999, 1)
    with pytest.raises(NotFoundError):
        get_public_cv(cv_store, 999)


def test_public_read_requires_flag(stores) -> None:
    _, cv_store = stores
    private_id = _create(cv_store, user_id=1)
    public_id = _create(cv_store, user_id=1, is_public=True)
    with pytest.raises(NotPublicError) as excinfo:
        get_public_cv(cv_store, private_id)
    assert excinfo.value.status_code == 403
    assert get_public_cv(cv_store, public_id).id == public_id
