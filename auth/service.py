"""
auth/service.py -- AuthGateway: registration, password login, Google login.

Every operation either returns an AuthResult (the user plus a freshly issued
bearer token) or raises a core.errors.AppError subclass. The API layer maps
those errors to responses; nothing store-specific leaks past this module.

Security notes:
  [R1] The "email already registered?" lookup in register() is a fast path
       for a friendly error only. Two concurrent registrations can both pass
       it; the UNIQUE index on users.email decides, and its IntegrityError is
       turned into DuplicateFieldError.

  [C1] Password login goes through authenticate_user(), which equalizes
       timing between unknown emails and wrong passwords. Both outcomes raise
       the same InvalidCredentialsError.

  [F1] Google login binds by verified email. An existing account with that
       email is reused as-is, without comparing its stored google_id to the
       token's subject -- including accounts created by password
       registration. This is current behaviour, pinned by
       tests/test_auth_service.py::TestFederatedLogin::test_reuses_password_account_with_same_email.

Layer rule: no imports from api/ or cvs/.
"""

from __future__ import annotations

import logging
import re

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.identity import GoogleIdentityVerifier
from auth.models import AuthResult, User
from auth.store import UserStore, normalize_email, unique_violation_field
from auth.tokens import TokenService, authenticate_user, hash_password
from core.errors import (
    DuplicateEmailError,
    DuplicateFieldError,
    FieldError,
    InvalidCredentialsError,
    MissingFieldError,
    ServerError,
    ValidationFailedError,
)

logger = logging.getLogger("cvshare.auth")

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
_CONTACT_NUMBER_RULE = re.compile(r"^[0-9+\-()\s]{7,}$")

_MISSING_MESSAGES = {
    "username": "Username is required",
    "email": "Email is required",
    "password": "Password is required",
    "externalToken": "Google token is required",
}


def _missing(**values: str | None) -> list[FieldError]:
    return [FieldError(name, _MISSING_MESSAGES[name]) for name, value in values.items() if not value]


def validate_registration(
    username: str, email: str, password: str, contact_number: str | None
) -> list[FieldError]:
    """Return one FieldError per registration field that breaks the account rules."""
    errors: list[FieldError] = []
    if len(username.strip()) < 2:
        errors.append(FieldError("username", "Username must be at least 2 characters"))
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors.append(FieldError("email", "Please provide a valid email address"))
    if len(password) < 8:
        errors.append(FieldError("password", "Password must be at least 8 characters"))
    elif not _PASSWORD_RULE.match(password):
        errors.append(FieldError("password", "Password must contain uppercase, lowercase, and numbers"))
    if contact_number and not _CONTACT_NUMBER_RULE.match(contact_number.strip()):
        errors.append(FieldError("contactNumber", "Please provide a valid phone number"))
    return errors


class AuthGateway:
    """Orchestrates the three ways of obtaining a bearer token."""

    def __init__(self, store: UserStore, tokens: TokenService, identity: GoogleIdentityVerifier) -> None:
        self.store = store
        self.tokens = tokens
        self.identity = identity

    def _result(self, user: User) -> AuthResult:
        return AuthResult(user=user, token=self.tokens.issue(user.id))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        username: str | None,
        email: str | None,
        password: str | None,
        contact_number: str | None = None,
    ) -> AuthResult:
        missing = _missing(username=username, email=email, password=password)
        if missing:
            raise MissingFieldError(fields=missing)

        email = normalize_email(email)
        contact_number = contact_number.strip() if contact_number else None
        invalid = validate_registration(username, email, password, contact_number)
        if invalid:
            raise ValidationFailedError(fields=invalid)

        try:
            if self.store.get_by_email(email) is not None:  # fast path only [R1]
                raise DuplicateEmailError()

            user = User(
                username=username.strip(),
                email=email,
                hashed_password=hash_password(password),
                contact_number=contact_number,
            )
            user.id = self.store.create_user(user)
        except IntegrityError as exc:
            field = unique_violation_field(exc)
            logger.info("Registration lost a uniqueness race on %s", field)
            raise DuplicateFieldError(field) from exc
        except SQLAlchemyError as exc:
            logger.exception("Registration failed for %s", email)
            raise ServerError() from exc

        logger.info("Registered user id=%s", user.id)
        return self._result(user)

    # ------------------------------------------------------------------
    # Password login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> AuthResult:
        missing = _missing(email=email, password=password)
        if missing:
            raise MissingFieldError("Validation error", fields=missing)

        try:
            user = authenticate_user(self.store, normalize_email(email), password)
        except SQLAlchemyError as exc:
            logger.exception("Login lookup failed")
            raise ServerError() from exc

        if user is None:
            # Same error for unknown email and wrong password [C1]
            raise InvalidCredentialsError()
        logger.info("Password login for user id=%s", user.id)
        return self._result(user)

    # ------------------------------------------------------------------
    # Google login
    # ------------------------------------------------------------------

    def federated_login(self, external_token: str | None) -> AuthResult:
        missing = _missing(externalToken=external_token)
        if missing:
            raise MissingFieldError("Google token is required", fields=missing)

        claims = self.identity.verify(external_token)
        email = normalize_email(claims.email)

        try:
            user = self.store.get_by_email(email)  # reused unconditionally [F1]
            if user is None:
                user = User(
                    username=claims.name or email.split("@", 1)[0],
                    email=email,
                    # Never usable for password login: the subject id is not
                    # something the account holder types in.
                    hashed_password=hash_password(claims.subject),
                    contact_number="",
                    google_id=claims.subject,
                    avatar=claims.picture,
                )
                try:
                    user.id = self.store.create_user(user)
                    logger.info("Created user id=%s from Google login", user.id)
                except IntegrityError:
                    # A concurrent Google login for the same email won the insert.
                    user = self.store.get_by_email(email)
                    if user is None:
                        raise
        except IntegrityError as exc:
            raise DuplicateFieldError(unique_violation_field(exc)) from exc
        except SQLAlchemyError as exc:
            logger.exception("Google login failed for verified email")
            raise ServerError() from exc

        logger.info("Google login for user id=%s", user.id)
        return self._result(user)
