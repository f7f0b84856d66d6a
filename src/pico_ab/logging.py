"""Logging utilities for pico-ab.

All pico-ab loggers live under the ``pico_ab`` namespace.  Use
``get_logger()`` to obtain a namespaced logger and ``configure_logging()``
to set the level and handler for the entire library.
"""

import logging
import sys
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .context import InvocationDecision

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
"""str: Default log format used by ``configure_logging``."""

DECISION_FORMAT = "[AB] canonical={} experiment={} treatment={} concrete={} bucket={}"
"""str: Template used by ``format_decision``."""


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the pico_ab namespace.

    Args:
        name: Logger name. If not prefixed with 'pico_ab', it will be added.

    Returns:
        A Logger instance under the ``pico_ab`` hierarchy.
    """
    if not name.startswith("pico_ab"):
        name = f"pico_ab.{name}"
    return logging.getLogger(name)


def configure_logging(level: int = logging.INFO, handler: Optional[logging.Handler] = None) -> None:
    """Configure logging for the pico_ab library.

    Calling this more than once only updates the level; a second handler is
    never installed.

    Args:
        level: Logging level (default: INFO)
        handler: Custom handler. If None, uses StreamHandler to stderr.
    """
    root_logger = logging.getLogger("pico_ab")
    root_logger.setLevel(level)

    if not root_logger.handlers:
        if handler is None:
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)


def format_decision(decision: "InvocationDecision") -> str:
    """Render an ``InvocationDecision`` as a single log line.

    Args:
        decision: The routing decision attached to a tool call.

    Returns:
        A ``[AB] canonical=... bucket=...`` string.
    """
    return DECISION_FORMAT.format(
        decision.canonical_name,
        decision.experiment,
        decision.treatment,
        decision.concrete_name,
        decision.bucket_key,
    )
