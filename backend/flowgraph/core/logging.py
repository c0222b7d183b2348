# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Logging for Flowgraph.

All component loggers ("engine", "validation", "session", "api") are children
of the "flowgraph" logger, which owns the single stdout handler. Level and
format (json or text) come from Config.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

ROOT_LOGGER = "flowgraph"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_handler: Optional[logging.Handler] = None


class JSONFormatter(logging.Formatter):
    """One JSON object per record; extra= fields are lifted to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and value is not None:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(config=None) -> logging.Logger:
    """
    Apply level and format from config to the flowgraph logger.

    Safe to call repeatedly: the handler is created once and only its
    formatter and the logger level change.

    Args:
        config: Config to apply; the loaded config when omitted

    Returns:
        The "flowgraph" logger
    """
    global _handler
    if config is None:
        from flowgraph.core.config import get_config
        config = get_config()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, str(config.log_level).upper(), logging.INFO))

    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        root.addHandler(_handler)

    if config.log_format == "json":
        _handler.setFormatter(JSONFormatter())
    else:
        _handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return root


def get_logger(component: str, config=None) -> logging.Logger:
    """Logger for one Flowgraph component, e.g. get_logger("engine", config)."""
    configure_logging(config)
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")


def log_event(
    logger: logging.Logger,
    event: str,
    level: str = "INFO",
    **kwargs: Any
) -> None:
    """
    Log a named event with structured fields.

    Args:
        logger: Logger instance
        event: Event name, used as the message
        level: Log level name
        **kwargs: Fields passed as extra=
    """
    log_func = getattr(logger, level.lower())
    log_func(event, extra=kwargs)
