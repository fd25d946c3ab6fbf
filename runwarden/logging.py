# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Logging configuration for runner diagnostics.

Diagnostics go through loguru and are silent unless RUNNER_DEBUG=1.
User-facing runner messages are echoed directly and never pass through here.
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from loguru import Record


COLORS = {
    "muted": "#88A896",  # Timestamps, extra fields
    "pending": "#4A5C54",  # Separators
    "blue": "#5B9BD5",  # Info
    "gold": "#FFC857",  # Warnings
    "rust": "#A33D2E",  # Errors
    "cream": "#EFF8E2",  # Message text
}


def _log_format(record: "Record") -> str:
    """Build the loguru format string for one record.

    Args:
        record: Loguru record containing level, message and extra fields.

    Returns:
        Format string with loguru color tags, prefixed with `[runner]`.
    """
    level_colors = {
        "DEBUG": f"<fg {COLORS['muted']}>",
        "INFO": f"<fg {COLORS['blue']}>",
        "WARNING": f"<fg {COLORS['gold']}>",
        "ERROR": f"<fg {COLORS['rust']}>",
        "CRITICAL": f"<fg {COLORS['rust']}><bold>",
    }
    color = level_colors.get(record["level"].name, f"<fg {COLORS['cream']}>")
    close = "</>"

    fmt = (
        f"<fg {COLORS['pending']}>[runner]{close} "
        f"<fg {COLORS['muted']}>{{time:HH:mm:ss}}{close} "
        f"{color}{{level: <7}}{close}"
        f"<fg {COLORS['cream']}>{{message}}{close}"
    )

    extra = record["extra"]
    if extra:
        extra_str = " ".join(f"{k}={v!r}" for k, v in extra.items())
        # Escape braces to prevent loguru format string injection
        extra_str = extra_str.replace("{", "{{").replace("}", "}}")
        fmt += f" <fg {COLORS['muted']}>│ {extra_str}{close}"

    fmt += "\n"

    if record["exception"]:
        fmt += "{exception}\n"

    return fmt


def configure_logging(level: str = "WARNING") -> None:
    """Configure loguru with the runner's stderr sink.

    Removes the default handler so that nothing below `level` reaches the
    terminal the child process is writing to.

    Args:
        level: Minimum log level to display (e.g., "DEBUG", "WARNING").
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_log_format,
        colorize=None,
    )
