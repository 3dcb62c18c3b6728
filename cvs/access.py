"""
cvs/access.py -- Ownership and visibility rules for CV documents.

Every CV read, update and delete except the public share link goes through
get_owned_cv(): load by id -> NotFoundError if absent -> ForbiddenError if
the CV belongs to someone else -> only then hand the CV to the caller.

get_public_cv() serves the share link: it ignores ownership but refuses CVs
whose is_public flag is off.

The owner comparison uses the principal's id only, so this module needs
nothing from auth/.
"""

import logging

from core.errors import ForbiddenError, NotFoundError, NotPublicError
from cvs.models import CV
from cvs.store import CVStore

logger = logging.getLogger("cvshare.cvs")


def _load(store: CVStore, cv_id: int) -> CV:
    cv = store.get_cv(cv_id)
    if cv is None:
        raise NotFoundError("CV not found")
    return cv


def get_owned_cv(store: CVStore, cv_id: int, user_id: int) -> CV:
    """Return CV `cv_id` if `user_id` owns it.

    Raises:
        NotFoundError: no CV with that id.
        ForbiddenError: the CV belongs to another user.
    """
    cv = _load(store, cv_id)
    if cv.user_id != user_id:
        logger.warning("User id=%s denied access to CV id=%s", user_id, cv_id)
        raise ForbiddenError()
    return cv


def get_public_cv(store: CVStore, cv_id: int) -> CV:
    """Return CV `cv_id` for the share link, regardless of who asks.

    Raises:
        NotFoundError: no CV with that id.
        NotPublicError: the owner has not made the CV public.
    """
    cv = _load(store, cv_id)
    if not cv.is_public:
        raise NotPublicError()
    return cv
