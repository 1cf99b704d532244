"""
Runtime settings

All configuration is loaded from environment variables (optionally from a
.env file) into a single Settings object that is built once at startup and
handed to create_app(). Nothing else in the package reads os.environ.
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

DEV_FALLBACK_SECRET = "freemodule-dev-secret-do-not-use-in-production"

DEFAULT_RATE_LIMIT_STORAGE = "memory://"

ALLOWED_UPLOAD_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
)


class ConfigurationError(RuntimeError):
    """Raised when the process cannot start with the given configuration."""


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")


@dataclass
class Settings:
    environment: str = "development"

    # Token signing
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # Database
    database_url: str = "sqlite+aiosqlite:///./freemodule.db"
    db_ssl: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: float = 30.0

    # HTTP
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])

    # Uploads
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_upload_types: tuple = ALLOWED_UPLOAD_TYPES

    # Accounts
    allowed_email_domain: str = "ustp.edu.ph"
    bcrypt_rounds: int = 12

    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = DEFAULT_RATE_LIMIT_STORAGE
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def shared_rate_limit_storage(self) -> bool:
        return not self.rate_limit_storage_uri.startswith("memory://")

    @property
    def signing_secret(self) -> str:
        if not self.jwt_secret:
            raise ConfigurationError("JWT secret has not been resolved; call validate() first")
        return self.jwt_secret

    def validate(self) -> "Settings":
        """
        Check startup invariants.

        A missing signing secret is fatal unless running in development, where
        a fixed fallback is substituted and a warning is logged.
        """
        if not self.jwt_secret:
            if not self.is_development:
                raise ConfigurationError(
                    f"JWT_SECRET must be set when ENVIRONMENT={self.environment}"
                )
            logger.warning(
                "JWT_SECRET is not set - using the built-in development secret. "
                "Tokens signed with it are NOT secure."
            )
            self.jwt_secret = DEV_FALLBACK_SECRET
        if self.max_upload_bytes <= 0:
            raise ConfigurationError("MAX_UPLOAD_BYTES must be positive")
        return self


def load_settings(env_file: Optional[Path] = ENV_FILE) -> Settings:
    """Build Settings from the environment (and .env when present)."""
    if env_file is not None and env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)
        logger.info(f"Loaded environment from: {env_file}")

    cors = os.getenv("CORS_ORIGIN", "http://localhost:3000")
    settings = Settings(
        environment=os.getenv("ENVIRONMENT", "development").lower(),
        jwt_secret=os.getenv("JWT_SECRET") or None,
        jwt_expire_minutes=get_int_env("JWT_EXPIRE_MINUTES", 60),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./freemodule.db"),
        db_ssl=get_bool_env("DB_SSL", False),
        db_pool_size=get_int_env("DB_POOL_SIZE", 10),
        db_max_overflow=get_int_env("DB_MAX_OVERFLOW", 20),
        db_pool_timeout=float(get_int_env("DB_POOL_TIMEOUT", 30)),
        host=os.getenv("HOST", "0.0.0.0"),
        port=get_int_env("PORT", 5000),
        cors_origins=[origin.strip() for origin in cors.split(",") if origin.strip()],
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        max_upload_bytes=get_int_env("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
        allowed_email_domain=os.getenv("ALLOWED_EMAIL_DOMAIN", "ustp.edu.ph").lower().lstrip("@"),
        bcrypt_rounds=get_int_env("BCRYPT_ROUNDS", 12),
        rate_limit_enabled=get_bool_env("RATE_LIMIT_ENABLED", True),
        rate_limit_storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI") or DEFAULT_RATE_LIMIT_STORAGE,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    return settings.validate()


def rate_limit_storage_uri(env_file: Optional[Path] = ENV_FILE) -> str:
    """
    Counter storage for the process-wide rate limiter.

    The limiter is built at import time, before any Settings exist, so this is
    read on its own.
    """
    if env_file is not None and env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)
    return os.getenv("RATE_LIMIT_STORAGE_URI") or DEFAULT_RATE_LIMIT_STORAGE
