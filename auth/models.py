"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in cvs/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/ or cvs/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """Represents an account in cvshare.

    email is the login identifier and is stored lower-cased; the store
    enforces its uniqueness.

    hashed_password is always set at creation. Google-login users get a hash
    derived from their Google subject id, so the password path can never
    match for them in practice. It is None on principals loaded by the access
    middleware, which never selects the hash column.

    google_id / avatar are filled from the identity provider's claims when the
    account is created through Google login.
    """

    username: str
    email: str
    id: int | None = None
    hashed_password: str | None = None
    contact_number: str | None = None
    google_id: str | None = None  # provider's stable subject id
    avatar: str | None = None  # URL
    created_at: str | None = None


@dataclass(frozen=True)
class FederatedClaims:
    """Verified identity returned by the identity verifier."""

    subject: str
    email: str
    name: str | None = None
    picture: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful register / login / Google login."""

    user: User
    token: str
