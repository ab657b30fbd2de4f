# ABOUTME: Structured logging with invocation IDs for coolifyme
# ABOUTME: Configures structlog for stderr output with secret redaction

"""
Structured logging with invocation IDs and secret redaction.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module configures structlog for the whole process. It provides:

1. STRUCTURED LOGGING: every event is a dict with consistent fields, rendered
   either as JSON lines or as coloured console text.

2. INVOCATION IDs: a short random identifier attached to every event emitted
   during one CLI invocation, so the request/response trace of a bulk run can
   be told apart from another run writing to the same log file.

3. REDACTION: a processor that masks tokens before anything is rendered.

=============================================================================
WHY STDERR?
=============================================================================

Command output (tables, JSON, exported data) goes to stdout and is often piped
into jq or another tool. Logs on the same stream would corrupt that output,
so the logger factory writes to stderr.

=============================================================================
LEVELS
=============================================================================

The configuration file speaks "debug | info | warn | error". structlog's
filtering logger wants stdlib numbers, so "warn" is mapped to
logging.WARNING here. Transport traces are emitted at debug level and only
appear with --debug or log_level: debug.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import IO, TYPE_CHECKING, Any

import structlog

from coolifyme.utils.redact import REDACTED, redact, redact_text

if TYPE_CHECKING:
    from collections.abc import MutableMapping


# =============================================================================
# INVOCATION ID MANAGEMENT
# =============================================================================

invocation_id: ContextVar[str] = ContextVar("invocation_id", default="")

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Event keys the redaction processor leaves alone
_STRUCTURAL_KEYS = frozenset(["level", "timestamp", "invocation_id", "logger"])


def get_invocation_id() -> str:
    """
    Get current invocation ID or generate a new one.

    Returns:
        8-character identifier, stable for the current context.
    """
    iid = invocation_id.get()
    if not iid:
        iid = str(uuid.uuid4())[:8]
        invocation_id.set(iid)
    return iid


def set_invocation_id(iid: str) -> None:
    """Set the invocation ID for the current context ("" regenerates lazily)."""
    invocation_id.set(iid)


def add_invocation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor adding ``invocation_id`` to every event."""
    event_dict["invocation_id"] = get_invocation_id()
    return event_dict


def redact_secrets(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """
    structlog processor masking secrets in every event field.

    Values already replaced with "[REDACTED]" (authorization headers from the
    transport) are kept as they are.
    """
    for key, value in list(event_dict.items()):
        if key in _STRUCTURAL_KEYS or value == REDACTED:
            continue
        if key == "event" and isinstance(value, str):
            event_dict[key] = redact_text(value)
            continue
        event_dict[key] = redact({key: value})[key]
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def level_number(level: str) -> int:
    """Translate a configured level name to a stdlib level number."""
    return LEVELS.get(level.strip().lower(), logging.INFO)


def configure_logging(
    level: str = "info",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> None:
    """
    Configure structured logging.

    Call once per invocation, after the effective config is known. Calling
    again reconfigures (tests and repeated CLI runs in one process rely on it).

    Args:
        level: One of debug, info, warn/warning, error. Unknown values mean info.
        json_output: Render JSON lines instead of console text.
        stream: Destination, stderr when omitted.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_invocation_id,
        redact_secrets,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        # Loggers are reconfigured between CLI invocations in the same process
        cache_logger_on_first_use=False,
    )
