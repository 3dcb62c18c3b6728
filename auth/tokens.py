"""
auth/tokens.py -- JWT issuance / verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the user id and a fixed expiry
       (30 days by default). Verification returns None on any failure -- the
       access middleware turns that into a 401. Tokens are stateless: there is
       no revocation list, validity is signature + expiry only.

  Signing key: passed explicitly to TokenService at construction. The API
       lifespan builds the one TokenService from core.config.get_settings()
       and stores it on app.state; nothing reads the key from a module global.

  Passwords: bcrypt with a fresh random salt per hash. Bcrypt is the right
       choice for low-entropy secrets because its cost factor makes
       brute-force expensive. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether an email is registered [C1].

Layer rule: no imports from api/ or cvs/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("cvshare.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes; newer bcrypt releases raise instead
# of truncating, so truncate explicitly on both hash and verify.
_BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _secret_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext secret."""
    return bcrypt.hashpw(_secret_bytes(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext matches the bcrypt hash. False on malformed hashes."""
    try:
        return bcrypt.checkpw(_secret_bytes(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("cvshare_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens.

    Usage:
        tokens = TokenService(settings.secret_key, expire_days=30)
        token = tokens.issue(user_id)
        tokens.verify(token)  # -> user_id, or None if invalid/expired
    """

    def __init__(self, secret_key: str, expire_days: int = 30) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a signing key.")
        self._secret_key = secret_key
        self.expire_days = expire_days

    def issue(self, user_id: int, now: datetime | None = None) -> str:
        """Encode a signed JWT for user_id, valid for expire_days from `now`."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.expire_days),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> int | None:
        """Return the user id embedded in a valid token, or None on any failure.

        Fails on a bad signature, malformed token, missing or non-integer
        user_id claim, or an expiry in the past.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as exc:
            logger.info("Token rejected: %s", exc)
            return None
        user_id = payload.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None
        return user_id


# ---------------------------------------------------------------------------
# User authentication (constant-time) [C1]
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
