"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for FollowGraph happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

get_settings() is called at process startup only (API lifespan, CLI). The
resulting Settings object is handed to components inside an AppContext
(core/context.py); components never call get_settings() themselves, so tests
can build a context with their own key and database.

Security notes:
  HMAC_KEY shorter than 32 chars is rejected outright. HS384 token signing
  relies on key entropy -- a short key weakens every session.

  In production mode (DEBUG not set or false), a missing HMAC_KEY is a hard
  startup failure. A random key in production would silently log every user
  out on each restart.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or social/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("followgraph.config")

# Two weeks: the operational bound on exposure from a leaked token, since
# stateless tokens cannot be revoked before they expire.
DEFAULT_SESSION_LENGTH_SECONDS = 14 * 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. Field names map to upper-cased
    environment variables (hmac_key -> HMAC_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///followgraph.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator below
    # either generates a dev key or raises, so callers never see "".
    hmac_key: str = ""
    session_length_seconds: int = DEFAULT_SESSION_LENGTH_SECONDS

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    @model_validator(mode="after")
    def validate_hmac_key(self) -> "Settings":
        """Enforce the HMAC_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if HMAC_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.hmac_key:
            if self.debug:
                self.hmac_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated HMAC_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "HMAC_KEY is required in production mode. "
                    "Set HMAC_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.hmac_key) < 32:
            raise ValueError("HMAC_KEY must be at least 32 characters.")
        if self.session_length_seconds <= 0:
            raise ValueError("SESSION_LENGTH_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
