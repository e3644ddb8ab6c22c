"""Configuration for the Flask app."""

import os

from dotenv import load_dotenv
from sqlalchemy.engine import make_url

load_dotenv()

DB_POOL_TIMEOUT_SECONDS = int(os.environ.get("DB_POOL_TIMEOUT_SECONDS", 10))
DB_CONNECT_TIMEOUT_SECONDS = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", 10))
DB_STATEMENT_TIMEOUT_MS = int(os.environ.get("DB_STATEMENT_TIMEOUT_MS", 15000))
DB_LOCK_TIMEOUT_MS = int(os.environ.get("DB_LOCK_TIMEOUT_MS", 5000))


def engine_options(database_uri):
    """Build the SQLAlchemy engine options for a database URI.

    Connecting, running a statement and waiting on a row lock are all bounded
    so that a stuck database turns into an error instead of a hung request.
    The driver specific settings go through ``connect_args``.

    Parameters
    ----------
    database_uri : str
        The database URI, may be None when the database is not configured.

    Returns
    -------
    dict
        The value for SQLALCHEMY_ENGINE_OPTIONS.
    """
    backend = make_url(database_uri).get_backend_name() if database_uri else None

    if backend == "sqlite":
        # sqlite only waits on the database file lock; the in-memory pool takes no pool_timeout
        return {"connect_args": {"timeout": DB_LOCK_TIMEOUT_MS / 1000}}

    options = {
        "pool_pre_ping": True,
        "pool_timeout": DB_POOL_TIMEOUT_SECONDS,
    }
    if backend == "postgresql":
        options["connect_args"] = {
            "connect_timeout": DB_CONNECT_TIMEOUT_SECONDS,
            "options": (
                f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS} "
                f"-c lock_timeout={DB_LOCK_TIMEOUT_MS}"
            ),
        }
    elif backend == "mysql":
        statement_timeout = max(1, DB_STATEMENT_TIMEOUT_MS // 1000)
        options["connect_args"] = {
            "connect_timeout": DB_CONNECT_TIMEOUT_SECONDS,
            "read_timeout": statement_timeout,
            "write_timeout": statement_timeout,
            "init_command": (
                f"SET SESSION innodb_lock_wait_timeout={max(1, DB_LOCK_TIMEOUT_MS // 1000)}"
            ),
        }
    return options


class Config:
    """Base configuration class."""

    FLASK_ENV = os.environ.get("FLASK_ENV")

    # Secret key for signing cookies
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # SQLAlchemy settings
    SQLALCHEMY_DATABASE_URI = os.environ.get("SQLALCHEMY_DATABASE_URI")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)

    # Application settings
    APP_NAME = "Lead Magnet Generator"

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL")
    LOG_TO_STDOUT = os.environ.get("LOG_TO_STDOUT", "true").lower() in ["true", "on", "1"]

    # Sentry settings
    SENTRY_DSN = os.environ.get("SENTRY_DSN")
    SENTRY_ENVIRONMENT = os.environ.get("SENTRY_ENVIRONMENT", "development")

    # Razorpay settings
    RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET")
    RAZORPAY_WEBHOOK_SECRET = os.environ.get("RAZORPAY_WEBHOOK_SECRET")
    RAZORPAY_TIMEOUT_SECONDS = float(os.environ.get("RAZORPAY_TIMEOUT_SECONDS", 10))
    ENABLE_PAYMENTS_HEALTH_ENDPOINT = os.environ.get("ENABLE_PAYMENTS_HEALTH_ENDPOINT", "0") == "1"

    # Pricing and plan settings, amounts in the smallest currency unit
    UNLOCK_PRICE_AMOUNT = int(os.environ.get("UNLOCK_PRICE_AMOUNT", 900))
    UNLOCK_CURRENCY = os.environ.get("UNLOCK_CURRENCY", "INR")
    UNLOCK_DESCRIPTION = os.environ.get("UNLOCK_DESCRIPTION", "Campaign unlock")
    RENEWAL_WINDOW_DAYS = int(os.environ.get("RENEWAL_WINDOW_DAYS", 30))
    FREE_CAMPAIGN_LIMIT = int(os.environ.get("FREE_CAMPAIGN_LIMIT", 3))
    PREMIUM_CAMPAIGN_LIMIT = int(os.environ.get("PREMIUM_CAMPAIGN_LIMIT", 5))

    @classmethod
    def init_app(cls, app):
        """Initialize the configuration for the Flask app."""
        pass


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)
    SENTRY_DSN = None


class ProductionConfig(Config):
    """Production configuration."""

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)


# Dictionary to easily access different configurations
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
