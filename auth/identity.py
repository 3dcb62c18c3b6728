"""
auth/identity.py -- Google ID-token verification (the identity oracle).

The browser performs Google Sign-In and posts the resulting ID token to
POST /api/v1/federated-login. GoogleIdentityVerifier checks the token's
signature against Google's published certificates, its issuer, expiry, and
that its audience is this service's registered client id, then returns the
verified claims.

Security notes:
  [H1] Email verification is mandatory. A claim set whose email_verified is
       not true is rejected -- an unverified address could belong to someone
       else.

  An empty GOOGLE_CLIENT_ID disables federated login entirely. google-auth
  skips the audience check when audience is None, which would accept ID
  tokens minted for any other Google client.

  Google's signing certificates are fetched over HTTP and cached via
  CacheControl. A requests session is not thread safe, so each worker thread
  gets its own cached session and no lock is held across the HTTP fetch.

Layer rule: no imports from api/ or cvs/.
"""

from __future__ import annotations

import logging
import threading

import cachecontrol
import google.auth.transport.requests
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import id_token as google_id_token

from auth.models import FederatedClaims
from core.errors import FederatedAuthFailedError

logger = logging.getLogger("cvshare.auth.identity")


class GoogleIdentityVerifier:
    """Verifies Google ID tokens for one OAuth client id.

    Usage:
        verifier = GoogleIdentityVerifier(settings.google_client_id)
        claims = verifier.verify(id_token)  # raises FederatedAuthFailedError
    """

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        self._local = threading.local()

    @property
    def enabled(self) -> bool:
        return bool(self.client_id)

    def _get_session(self) -> requests.Session:
        """Return this thread's certificate-caching session, creating it on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = cachecontrol.CacheControl(requests.session())
        return session

    def verify(self, token: str) -> FederatedClaims:
        """Return the verified claims for `token`.

        Raises:
            FederatedAuthFailedError: bad signature, wrong audience or issuer,
                expired token, unverified email, missing claims, or
                certificate fetch failure.
        """
        if not self.enabled:
            logger.warning("Google login attempted but GOOGLE_CLIENT_ID is not configured")
            raise FederatedAuthFailedError("Google authentication is not configured")

        try:
            request = google.auth.transport.requests.Request(session=self._get_session())
            idinfo = google_id_token.verify_oauth2_token(token, request, self.client_id)
        except (ValueError, GoogleAuthError) as exc:
            logger.info("Google ID token rejected: %s", exc)
            raise FederatedAuthFailedError() from exc

        return claims_from_idinfo(idinfo)


def claims_from_idinfo(idinfo: dict | None) -> FederatedClaims:
    """Extract (subject, email, name, picture) from verified ID-token claims [H1]."""
    if not idinfo:
        raise FederatedAuthFailedError()

    # Google sends a bool; some older tokens carry the string "true".
    if idinfo.get("email_verified", False) not in (True, "true"):
        logger.info("Google ID token rejected: email not verified")
        raise FederatedAuthFailedError("Google account email is not verified")

    subject = idinfo.get("sub")
    email = idinfo.get("email")
    if not subject or not email:
        raise FederatedAuthFailedError("Google token is missing the email or subject claim")

    return FederatedClaims(
        subject=str(subject),
        email=email,
        name=idinfo.get("name") or None,
        picture=idinfo.get("picture") or None,
    )
