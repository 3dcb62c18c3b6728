"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_current_user() is the access middleware for every protected route:

  1. Read the Authorization header; it must be "Bearer <token>", else
     NoTokenError.
  2. Verify the token with the app's TokenService; failure -> TokenInvalidError.
  3. Load the user it names, without the password-hash column. A token for a
     user that no longer exists is treated as invalid (fail closed).
  4. Attach the principal to request.state.user and return it.

Every failure short-circuits with a 401 before any handler code runs.

Layer rule: no imports from api/ or cvs/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import NoTokenError, TokenInvalidError

_SCHEME = "bearer"


def bearer_token(request: Request) -> str | None:
    """Return the credential from "Authorization: Bearer <token>", or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credential = auth_header.partition(" ")
    if scheme.lower() != _SCHEME:
        return None
    return credential.strip() or None


def get_current_user(request: Request) -> User:
    """Require a valid bearer token. Raises 401 (NoTokenError / TokenInvalidError) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = bearer_token(request)
    if token is None:
        raise NoTokenError()

    tokens: TokenService = request.app.state.tokens
    user_id = tokens.verify(token)
    if user_id is None:
        raise TokenInvalidError()

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id, with_password=False)
    if user is None:
        raise TokenInvalidError()

    request.state.user = user
    return user
