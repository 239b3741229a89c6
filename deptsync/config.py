"""
Department Dependency Sync
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Local fallback when no DATABASE_URL is configured
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'deptsync_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Regenerated on every start; production refuses to boot without SECRET_KEY
_DEV_SECRET = secrets.token_hex(32)


def _env_flag(name, default="true"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _database_url(fallback=None):
    # SQLAlchemy 2.0 only accepts the postgresql:// scheme
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else fallback


def _pool_options(**extra):
    options = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }
    options.update(extra)
    return options


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _pool_options()
    # Migrations own the schema when this is switched off
    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES")

    # Flask-Limiter storage backend
    REDIS_URL = os.getenv("REDIS_URL", "memory://")
    RECONCILE_RATE_LIMIT = os.getenv("RECONCILE_RATE_LIMIT", "60/minute")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Dependency engine
    BUDGET_SYNC_ENABLED = _env_flag("BUDGET_SYNC_ENABLED")
    DEFAULT_CALL_TIME = os.getenv("DEFAULT_CALL_TIME", "07:00")
    SYSTEM_USER_ID = os.getenv("SYSTEM_USER_ID", "system")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(_SQLITE_DEV)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    # In-memory SQLite runs on a StaticPool, which rejects pool sizing options
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    BUDGET_SYNC_ENABLED = True
    SYSTEM_USER_ID = "system-test"


class ProductionConfig(Config):
    """Production: PostgreSQL with a 30s statement timeout, explicit CORS origins."""

    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = _pool_options(
        connect_args={"options": "-c statement_timeout=30000"},
    )

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
