"""
Service Portfolio
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Default SQLite path for local dev when PostgreSQL is not running
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'portfolio_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,   # recycle connections every 5 min
    }

    # Persistence: "sheet" (remote spreadsheet API) or "sql" (local table)
    PERSISTENCE_BACKEND = os.getenv("PERSISTENCE_BACKEND", "sheet")
    SHEET_API_URL = os.getenv("SHEET_API_URL", "")
    WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
    GATEWAY_TIMEOUT = _int_env("GATEWAY_TIMEOUT", 30)

    # Dashboard / ranking defaults
    RANKING_PAGE_SIZE = _int_env("RANKING_PAGE_SIZE", 10)
    NEW_IDEAS_WINDOW_DAYS = _int_env("NEW_IDEAS_WINDOW_DAYS", 30)
    STAGNANT_WINDOW_DAYS = _int_env("STAGNANT_WINDOW_DAYS", 60)
    TOP_IDEAS_LIMIT = _int_env("TOP_IDEAS_LIMIT", 5)
    DEFAULT_BUSINESS_MODEL = os.getenv("DEFAULT_BUSINESS_MODEL", "Pacote de Serviço")

    API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "true")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Rate limiting (auth endpoints)
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10 per minute")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = (
        _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else _SQLITE_DEV
    )
    # Local table unless a sheet is wired up
    PERSISTENCE_BACKEND = os.getenv("PERSISTENCE_BACKEND", "sql")
    # Auth disabled by default in development for convenience
    API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "false")


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PERSISTENCE_BACKEND = "sql"
    SHEET_API_URL = ""
    WEBHOOK_URL = ""
    # Auth disabled in test environment
    API_AUTH_ENABLED = "false"
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    # Railway/Heroku use postgres:// but SQLAlchemy 2.0 requires postgresql://
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = (
        _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else _SQLITE_TEST
    )
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")
        if self.PERSISTENCE_BACKEND == "sheet" and not self.SHEET_API_URL:
            raise RuntimeError("SHEET_API_URL environment variable is required for the sheet backend")
        if self.PERSISTENCE_BACKEND == "sql" and not self._raw_db_url:
            raise RuntimeError("DATABASE_URL environment variable is required for the sql backend")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
