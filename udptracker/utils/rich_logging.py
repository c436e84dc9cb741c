"""Rich logging integration for the UDP tracker client.

Provides a Rich-based console handler and a plain formatter for log files.
"""

from __future__ import annotations

import copy
import logging
import re
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_MARKUP_PATTERN = re.compile(r"\[/?[^\]]+\]")


class CorrelationRichHandler(RichHandler):
    """RichHandler that prefixes records with the calling function name."""

    def __init__(
        self,
        *args: Any,
        console: Console | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize handler.

        Args:
            *args: Positional arguments for RichHandler
            console: Optional Rich Console instance
            **kwargs: Keyword arguments for RichHandler

        """
        if console is None:
            console = Console(file=sys.stderr, markup=True)
        kwargs.setdefault("markup", True)
        super().__init__(*args, console=console, **kwargs)

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record with its correlation ID and function name."""
        if not hasattr(record, "correlation_id"):
            from udptracker.utils.logging_config import correlation_id

            record.correlation_id = correlation_id.get() or "no-correlation-id"

        func_name = getattr(record, "funcName", None)
        if func_name:
            message = escape_markup(record.getMessage())
            # Other handlers share the record
            record = copy.copy(record)
            record.msg = f"[#ff69b4]{func_name}[/#ff69b4] {message}"
            record.args = ()
        super().emit(record)


def escape_markup(text: str) -> str:
    """Escape square brackets so Rich does not treat them as markup."""
    return text.replace("[", r"\[")


def strip_rich_markup(text: str) -> str:
    """Strip Rich markup from text for file logging.

    Args:
        text: Text with Rich markup

    Returns:
        Text without Rich markup

    """
    return _MARKUP_PATTERN.sub("", text)


class FileFormatter(logging.Formatter):
    """Formatter for file output that strips Rich markup."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, stripping Rich markup for file output."""
        return strip_rich_markup(super().format(record))


def create_rich_handler(
    console: Console | None = None,
    level: int | str = logging.INFO,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> logging.Handler:
    """Create a RichHandler with correlation ID support.

    Args:
        console: Optional Rich Console instance
        level: Log level
        show_path: Whether to show file paths in log output
        rich_tracebacks: Whether to use rich tracebacks

    Returns:
        Configured RichHandler instance

    """
    return CorrelationRichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
    )
