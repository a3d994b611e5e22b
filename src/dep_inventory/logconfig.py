"""Logging setup for dep-inventory: structlog rendering through stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import os
import uuid
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from dep_inventory.config import InventoryConfig


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        DEP_INVENTORY_LOG_LEVEL   log level (default: INFO)
        DEP_INVENTORY_LOG_FORMAT  console | json (default: console)

    An explicit *level* overrides the environment.
    """
    log_level = (level or os.environ.get("DEP_INVENTORY_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("DEP_INVENTORY_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stderr keeps stdout free for the CLI's own output
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "dep_inventory": {"level": log_level},
                "asyncio": {"level": "WARNING"},
            },
        }
    )


def bind_run(config: InventoryConfig) -> str:
    """Attach a run id and the run's shape to every following log event.

    Returns the run id.
    """
    run_id = uuid.uuid4().hex[:8]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        run_id=run_id,
        applications=len(config.applications),
        keep_going=config.keep_going,
    )
    return run_id
