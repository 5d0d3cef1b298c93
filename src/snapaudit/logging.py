"""
Structured logging for snapaudit using structlog.

Records go through the stdlib ``logging`` module so that the console (always
stderr, keeping stdout free for the report) and an optional JSON log file
share one pipeline. ``audit_context`` tags every record of one audit run with
the server it targets and a short run id.
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _console_renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def _formatted(handler: logging.Handler, renderer) -> logging.Handler:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=_PRE_CHAIN)
    )
    return handler


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """
    Route structlog through the stdlib logging module.

    Args:
        level: One of LOG_LEVELS
        json_output: Render console records as JSON instead of key=value text
        log_file: Optional file that receives every record as JSON

    Calling it again replaces the previous handlers.
    """
    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=_PRE_CHAIN + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: List[logging.Handler] = [
        _formatted(logging.StreamHandler(sys.stderr), _console_renderer(json_output))
    ]
    if log_file:
        handlers.append(
            _formatted(logging.FileHandler(log_file), structlog.processors.JSONRenderer())
        )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True,
    )


def get_logger(name: str = "snapaudit") -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def audit_context(server: str, run_id: Optional[str] = None) -> Iterator[str]:
    """Tag every record logged inside the block with ``server`` and ``run_id``."""
    run_id = run_id or uuid.uuid4().hex[:8]
    with structlog.contextvars.bound_contextvars(server=server, run_id=run_id):
        yield run_id


@contextmanager
def log_operation(
    logger: structlog.stdlib.BoundLogger, operation: str, **kwargs
) -> Iterator[structlog.stdlib.BoundLogger]:
    """
    Log ``<operation>.started`` and then ``.completed`` or ``.failed``,
    with the elapsed time in milliseconds. Exceptions are re-raised.

    Usage:
        with log_operation(log, "inventory", platform="libvirt") as op_log:
            op_log.info("vm.scanned", vm_name=name)
    """
    op_log = logger.bind(operation=operation, **kwargs)
    op_log.info(f"{operation}.started")
    started = time.monotonic()

    def elapsed_ms() -> float:
        return round((time.monotonic() - started) * 1000, 2)

    try:
        yield op_log
    except Exception as e:
        op_log.error(
            f"{operation}.failed",
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=elapsed_ms(),
        )
        raise
    op_log.info(f"{operation}.completed", duration_ms=elapsed_ms())
