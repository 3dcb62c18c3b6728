"""
tests/test_identity.py -- Unit tests for auth/identity.py.

google-auth's verify_oauth2_token is patched so no certificates are fetched.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from auth.identity import GoogleIdentityVerifier, claims_from_idinfo
from core.errors import FederatedAuthFailedError

_VERIFY = "auth.identity.google_id_token.verify_oauth2_token"

IDINFO = {
    "iss": "https://accounts.google.com",
    "sub": "1234567890",
    "email": "bob@example.com",
    "email_verified": True,
    "name": "Bob",
    "picture": "https://img.example/bob.png",
}


class TestVerify:
    def test_returns_claims_and_checks_audience(self) -> None:
        verifier = GoogleIdentityVerifier("client-123.apps.googleusercontent.com")
        with patch(_VERIFY, return_value=dict(IDINFO)) as verify:
            claims = verifier.verify("id-token")
        assert claims.subject == "1234567890"
        assert claims.email == "bob@example.com"
        assert claims.picture == "https://img.example/bob.png"
        args = verify.call_args.args
        assert args[0] == "id-token"
        assert args[2] == "client-123.apps.googleusercontent.com"

    def test_invalid_signature_is_auth_failure(self) -> None:
        verifier = GoogleIdentityVerifier("client-123")
        with patch(_VERIFY, side_effect=ValueError("Could not verify token signature.")):
            with pytest.raises(FederatedAuthFailedError) as excinfo:
                verifier.verify("id-token")
        assert excinfo.value.status_code == 401

    def test_unconfigured_client_id_rejects_without_network(self) -> None:
        verifier = GoogleIdentityVerifier("")
        assert not verifier.enabled
        with patch(_VERIFY) as verify:
            with pytest.raises(FederatedAuthFailedError):
                verifier.verify("id-token")
        verify.assert_not_called()


class TestClaimsFromIdinfo:
    def test_unverified_email_rejected(self) -> None:
        with pytest.raises(FederatedAuthFailedError):
            claims_from_idinfo({**IDINFO, "email_verified": False})

    def test_string_true_accepted(self) -> None:
        assert claims_from_idinfo({**IDINFO, "email_verified": "true"}).email == "bob@example.com"

    def test_missing_subject_rejected(self) -> None:
        idinfo = dict(IDINFO)
        del idinfo["sub"]
        with pytest.raises(FederatedAuthFailedError):
            claims_from_idinfo(idinfo)

    def test_optional_name_and_picture(self) -> None:
        claims = claims_from_idinfo({"sub": "1", "email": "a@b.com", "email_verified": True})
        assert claims.name is None
        assert claims.picture is None


class TestSessions:
    def test_session_reused_within_thread(self) -> None:
        verifier = GoogleIdentityVerifier("client-123")
        assert verifier._get_session() is verifier._get_session()

    def test_each_thread_gets_its_own_session(self) -> None:
        verifier = GoogleIdentityVerifier("client-123")
        with ThreadPoolExecutor(max_workers=2) as pool:
            barrier = threading.Barrier(2)

            def session_id() -> int:
                barrier.wait(timeout=5)
                return id(verifier._get_session())

            ids = list(pool.map(lambda _: session_id(), range(2)))
        assert ids[0] != ids[1]

    def test_concurrent_verifications_overlap(self) -> None:
        """A slow certificate fetch in one thread does not block another."""
        verifier = GoogleIdentityVerifier("client-123")
        barrier = threading.Barrier(2)

        def slow_verify(token, request, audience):
            # both calls must be inside verify_oauth2_token at the same time
            barrier.wait(timeout=5)
            return dict(IDINFO)

        with patch(_VERIFY, side_effect=slow_verify):
            with ThreadPoolExecutor(max_workers=2) as pool:
                results = list(pool.map(verifier.verify, ["a", "b"]))
        assert [c.subject for c in results] == ["1234567890", "1234567890"]
