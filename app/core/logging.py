import sys
from logging.config import dictConfig
from typing import Any

from app.core.config import settings


def build_logging_config(app_level: str = "DEBUG") -> dict[str, Any]:
    """Return a uvicorn-compatible dictConfig with the wizard loggers at *app_level*."""
    app_logger = {"handlers": ["app"], "level": app_level, "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stderr,
                "level": "INFO",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": sys.stdout,
                "level": "INFO",
            },
            "app": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
                "level": app_level,
            },
        },
        "loggers": {
            "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "app": dict(app_logger),
            "app.api": dict(app_logger),
            "app.generation_logic": dict(app_logger),
            "app.services": dict(app_logger),
            # The OpenAI SDK logs full request bodies (uploaded document text) at DEBUG
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "openai": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging() -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(settings.log_level.upper()))
