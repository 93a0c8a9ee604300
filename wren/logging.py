"""Structured logging for Wren.

structlog renders events; stdlib logging routes them. Two output formats:
- console: human-readable, colored on a TTY (default)
- json: one object per line, tracebacks as structured dicts

Workflow identifiers are carried through structlog contextvars, so every
event emitted while a service operation runs is tagged with the
``workflow_id``/``workflow_run_id`` pair without threading a logger through
the signal-processing code.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

_configured = False


def _event_processors(
    log_format: str,
) -> tuple[list[structlog.types.Processor], structlog.types.Processor]:
    """Return the pre-render chain and the final renderer for ``log_format``."""
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "json":
        chain.append(structlog.processors.dict_tracebacks)
        return chain, structlog.processors.JSONRenderer(sort_keys=True)
    chain.append(structlog.processors.format_exc_info)
    return chain, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _install_root_handler(formatter: logging.Formatter, level_name: str) -> None:
    # stderr keeps the CLI's JSON results on stdout machine-readable.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level_name.upper())


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
) -> None:
    """Configure structured logging for the engine.

    Idempotent; only the first call takes effect.

    Args:
        log_format: "json" or "console". Default via WREN_LOG_FORMAT env or "console".
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default via WREN_LOG_LEVEL env or "INFO".
    """
    global _configured
    if _configured:
        return

    chosen_format = (log_format or os.environ.get("WREN_LOG_FORMAT", "console")).lower()
    chosen_level = level or os.environ.get("WREN_LOG_LEVEL", "INFO")
    if chosen_level.upper() not in logging.getLevelNamesMapping():
        chosen_level = "INFO"

    chain, renderer = _event_processors(chosen_format)
    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _install_root_handler(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        ),
        chosen_level,
    )

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``component`` (e.g. "trim", "store")."""
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]


def workflow_log_context(workflow_id: str, workflow_run_id: str) -> AbstractContextManager[None]:
    """Bind workflow identifiers to every log event inside the ``with`` block."""
    return structlog.contextvars.bound_contextvars(
        workflow_id=workflow_id,
        workflow_run_id=workflow_run_id,
    )
