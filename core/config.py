"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for cvshare happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. google_client_id -> GOOGLE_CLIENT_ID).

  @model_validator(mode="after"): Resolves the JWT signing key after all
      fields are loaded from the environment.

Security notes:
  [S1] When no signing key is configured the service falls back to the
       constant FALLBACK_SECRET_KEY so tokens stay valid across restarts. Anyone
       who knows the constant can mint tokens, so this is logged as a WARNING
       here and again by the API lifespan at startup. Never run production on
       the fallback.

  [S2] A configured key shorter than 32 characters is rejected outright,
       under either name (SECRET_KEY or JWT_SECRET). HS256 signing relies on
       key entropy -- a short key weakens every token. Unlike an unset key, a
       short one is an explicit operator choice that would otherwise go
       unnoticed, so startup fails instead of running on it with a warning.
       Operators who really want the weak default can leave the key unset
       and get the [S1] fallback with its warning.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or cvs/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("cvshare.config")

FALLBACK_SECRET_KEY = "secret"  # noqa: S105 -- documented insecure default [S1]

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'cvshare.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured" [S1].
    # JWT_SECRET is accepted for deployments that still use the old name.
    secret_key: str = Field(default="", validation_alias=AliasChoices("secret_key", "jwt_secret"))
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_days: int = Field(default=30, gt=0)
    # Audience for Google ID-token verification. Empty disables federated login.
    google_client_id: str = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def resolve_secret_key(self) -> "Settings":
        """Apply the signing-key policy [S1] [S2]."""
        if not self.secret_key:
            self.secret_key = FALLBACK_SECRET_KEY
            logger.warning(
                "WARNING: SECRET_KEY is not set -- signing tokens with the built-in fallback key. "
                "Anyone can forge tokens. Set SECRET_KEY before running in production."
            )
        elif len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def uses_fallback_secret(self) -> bool:
        return self.secret_key == FALLBACK_SECRET_KEY


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
