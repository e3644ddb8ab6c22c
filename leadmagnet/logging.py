"""Logging setup for the payment service, driven by the Flask app config."""

import logging
import os
import sys
from logging.config import dictConfig

LOG_FORMAT = "%(levelname)-8s %(asctime)s %(name)s [%(filename)s:%(lineno)d] - %(message)s"

# chatty libraries kept at WARNING whatever the app level is
QUIET_LOGGERS = ("werkzeug", "urllib3", "sqlalchemy.engine")


def get_log_level(value=None) -> str:
    """Resolve a log level name, falling back to LOG_LEVEL and then INFO."""
    level_name = (value or os.getenv("LOG_LEVEL") or "INFO").upper()
    if isinstance(logging.getLevelName(level_name), int):
        return level_name
    return "INFO"


def build_logging_config(log_level: str, stream) -> dict:
    """Build the dictConfig for one level and one output stream."""
    loggers = {
        name: {"handlers": ["console"], "level": "WARNING", "propagate": False}
        for name in QUIET_LOGGERS
    }
    loggers["razorpay"] = {"handlers": ["console"], "level": log_level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT, "datefmt": "%H:%M:%S"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": stream,
            },
        },
        "root": {"handlers": ["console"], "level": log_level},
        "loggers": loggers,
    }


def configure_logging(app=None, log_level=None):
    """Configure logging for the application.

    Parameters
    ----------
    app : Flask
        The Flask application instance. LOG_LEVEL and LOG_TO_STDOUT are read
        from its config; without an app, logs go to stdout.
    log_level : str
        Overrides the configured log level.

    Returns
    -------
    dict
        The applied logging config.
    """
    config = app.config if app else {}
    log_level = get_log_level(log_level or config.get("LOG_LEVEL"))
    stream = sys.stdout if config.get("LOG_TO_STDOUT", True) else sys.stderr

    logging_config = build_logging_config(log_level, stream)
    dictConfig(logging_config)

    logging.info(f"Logging configured with level: {log_level}")
    return logging_config
