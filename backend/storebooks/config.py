# backend/storebooks/config.py
from __future__ import annotations
import os


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting is missing."""


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Flask session signing; no default outside of tests
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # HS256 key for access tokens
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Self-service sign-up creates client_user accounts only
    ALLOW_SELF_REGISTRATION = _env_flag("ALLOW_SELF_REGISTRATION")

    # Pass upstream error messages through to API responses
    EXPOSE_ERROR_DETAILS = False

    CORS_ALLOWED_ORIGINS = _env_list(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # bcrypt cost factor for new password hashes
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Access token lifetime
    JWT_EXPIRES_HOURS = 24

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))

    # S3-compatible object storage for supporting documents
    S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL")
    S3_ACCESS_KEY_ID = os.environ.get("S3_ACCESS_KEY_ID")
    S3_SECRET_ACCESS_KEY = os.environ.get("S3_SECRET_ACCESS_KEY")
    S3_REGION = os.environ.get("S3_REGION", "auto")
    S3_PUBLIC_URL = os.environ.get("S3_PUBLIC_URL")

    TESTING = False

    REQUIRED_SETTINGS = ("SECRET_KEY", "JWT_SECRET_KEY", "SQLALCHEMY_DATABASE_URI")


class DevelopmentConfig(Config):
    DEBUG = True
    EXPOSE_ERROR_DETAILS = True

    # SQLite DB stored in backend/instance/storebooks.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///storebooks.sqlite3")


class TestingConfig(Config):
    TESTING = True
    EXPOSE_ERROR_DETAILS = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ALLOW_SELF_REGISTRATION = False
    BCRYPT_ROUNDS = 4


class ProductionConfig(Config):
    pass


CONFIG_BY_NAME = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config_class(name: str | None = None):
    name = (name or os.environ.get("STOREBOOKS_ENV") or "development").lower()
    try:
        return CONFIG_BY_NAME[name]
    except KeyError:
        raise ConfigurationError(f"Unknown STOREBOOKS_ENV: {name}") from None


def validate_config(config) -> None:
    """
    Refuse to start without real credentials.

    Testing configs are exempt so fixtures can inject fakes explicitly.
    """
    if config.get("TESTING"):
        return
    missing = [key for key in config.get("REQUIRED_SETTINGS", ()) if not config.get(key)]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
