"""Structured logging setup for Cluster Export."""

import logging
import sys
from typing import Optional

import structlog

from cluster_export.config import Settings, settings


def configure_logging(config: Optional[Settings] = None, quiet: bool = False) -> None:
    """
    Configure structlog for the command-line tools.

    Args:
        config: Configuration object (uses global settings if None)
        quiet: Only show warnings and errors
    """
    config = config or settings
    level = logging.WARNING if quiet else getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
            if config.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
