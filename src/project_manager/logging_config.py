"""Logging setup for the CLI and the MCP server.

Logs go to stderr: stdout carries CLI output and the MCP stdio transport.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "project_manager"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Level name for the package logger (unknown names mean INFO)
        log_file: Optional file that also receives the records (rotated at 1 MB)
    """
    resolved = getattr(logging, str(level).upper(), logging.INFO)

    handlers: dict = {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        }
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "filename": str(log_file),
            "maxBytes": 1_000_000,
            "backupCount": 3,
            "encoding": "utf-8",
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": handlers,
            "loggers": {
                LOGGER_NAME: {
                    "handlers": list(handlers),
                    "level": resolved,
                    "propagate": False,
                }
            },
        }
    )

    return logging.getLogger(LOGGER_NAME)
