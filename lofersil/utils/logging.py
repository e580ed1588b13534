"""Structured logging configuration using structlog with file rotation.

structlog events are routed through the standard library so that the same
event reaches both stdout and the rotating ``lofersil.log`` file. Records
from third-party loggers (uvicorn, starlette) go through the same chain.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import structlog

LOG_FILE_NAME = "lofersil.log"


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _formatter(renderer, shared: list, render_exceptions: bool) -> structlog.stdlib.ProcessorFormatter:
    processors = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if render_exceptions:
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=processors,
    )


def setup_logging(
    debug: bool = False,
    log_dir: str = "logs",
    log_max_bytes: int = 10_000_000,
    log_backup_count: int = 5,
) -> None:
    """Configure structured logging for the application.

    Debug mode renders human-readable console lines, otherwise JSON. The
    log file is always JSON. Request-scoped values bound through
    ``structlog.contextvars`` (e.g. the request ID) are merged into every
    event.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    shared = _shared_processors()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Apps are rebuilt per test; old handlers would duplicate output
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.setFormatter(_formatter(console_renderer, shared, render_exceptions=not debug))
    root_logger.addHandler(stdout_handler)

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=log_max_bytes,
            backupCount=log_backup_count,
            encoding="utf-8",
        )
    except OSError:
        # Read-only filesystems keep stdout only
        return
    file_handler.setLevel(log_level)
    file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer(), shared, render_exceptions=True))
    root_logger.addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name)
