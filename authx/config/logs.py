"""
Logging setup - stdlib logging configured per environment.

- local: human-readable lines at DEBUG
- prod: one JSON object per line at INFO, rendered by structlog
- anything else: plain lines at INFO

Modules keep logging through logging.getLogger(__name__); structlog only
renders the records for the prod handler.
"""

import logging
import logging.config

import structlog

ENV_LOCAL = "local"
ENV_PROD = "prod"


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter turning stdlib records into one JSON object per line."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )


def build_logging_config(env: str, level: str | None = None) -> dict:
    """Build a dictConfig mapping for the given environment."""
    if env == ENV_LOCAL:
        formatter, default_level = "pretty", "DEBUG"
    elif env == ENV_PROD:
        formatter, default_level = "json", "INFO"
    else:
        formatter, default_level = "default", "INFO"

    level = (level or default_level).upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "pretty": {
                "format": "[%(asctime)s.%(msecs)03d] [%(levelname)s] %(message)s (%(name)s)",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": json_formatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            # psycopg_pool reports every failed connection attempt at WARNING
            "psycopg.pool": {"level": "ERROR"},
        },
    }


def setup_logging(env: str, level: str | None = None) -> None:
    """Configure root logging for the given environment."""
    logging.config.dictConfig(build_logging_config(env, level))
