"""Logging configuration for the face scan matching engine.

structlog renders every record, including those emitted through the stdlib
``logging`` module by the model runtimes, through one root handler.
"""
import logging
import sys
from typing import Any, List, Optional, TextIO

import numpy as np
import structlog
from structlog.stdlib import ProcessorFormatter

from facescan.core.config import settings

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("insightface", "onnxruntime")


def numpy_to_builtin(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Replace numpy values in a log event with plain Python ones.

    Scalars become ints and floats. Arrays are summarised by shape and dtype,
    embeddings are far too long to be worth printing.
    """
    for key, value in event_dict.items():
        if isinstance(value, np.generic):
            event_dict[key] = value.item()
        elif isinstance(value, np.ndarray):
            event_dict[key] = f"ndarray(shape={value.shape}, dtype={value.dtype})"
    return event_dict


def _resolve_level(level: Optional[str]) -> int:
    name = (level or settings.LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level or settings.LOG_LEVEL}")
    return resolved


def setup_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structured logging.

    Calling it again replaces the previous configuration.

    Args:
        level: Root log level name; defaults to settings.LOG_LEVEL
        json_logs: Render JSON lines instead of the colored console format;
            defaults to True outside the development environment
        stream: Where records are written; defaults to stdout

    Raises:
        ValueError: If level is not a known logging level name
    """
    log_level = _resolve_level(level)
    if json_logs is None:
        json_logs = settings.ENVIRONMENT != "development"

    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        numpy_to_builtin,
    ]
    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None and sys.stdout.isatty())

    structlog.reset_defaults()
    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        processors=[ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, log_level))

    get_logger(__name__).debug(
        "Logging configured",
        environment=settings.ENVIRONMENT,
        level=logging.getLevelName(log_level),
        json_logs=json_logs
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance compatible with standard logging.

    Args:
        name: Name for the logger, typically __name__

    Returns:
        structlog.stdlib.BoundLogger: Configured logger instance
    """
    return structlog.get_logger(name)
