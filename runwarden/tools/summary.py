# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Formatting helpers for runner messages and the completion summary."""

from collections.abc import Sequence

from runwarden.config import SummaryStyle
from runwarden.core.types import ExecutionResult


def format_duration(duration_ms: int | float) -> str:
    """Pretty-print a millisecond duration (e.g. 850ms, 12.3s, 4m 5s, 1h 30m)."""
    if duration_ms < 1000:
        return f"{int(duration_ms)}ms"
    seconds = duration_ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    remaining_seconds = round(seconds % 60)
    if minutes < 60:
        if remaining_seconds == 0:
            return f"{minutes}m"
        return f"{minutes}m {remaining_seconds}s"
    hours = minutes // 60
    remaining_minutes = minutes % 60
    if remaining_minutes == 0:
        return f"{hours}h"
    return f"{hours}h {remaining_minutes}m"


def format_display_command(command_args: Sequence[str]) -> str:
    """Join command tokens for display, quoting tokens that contain spaces."""
    return " ".join(f'"{token}"' if " " in token else token for token in command_args)


def format_completion_summary(
    result: ExecutionResult,
    command_label: str,
    style: SummaryStyle = "compact",
) -> str:
    """Render the one-line summary printed after every child exits.

    Args:
        result: Exit code, elapsed time and timeout flag of the child.
        command_label: Display form of the command (used by the verbose style).
        style: compact (default), minimal or verbose.

    Returns:
        The summary line, prefixed with `[runner]`.
    """
    duration = format_duration(result.elapsed_ms)
    if style == "minimal":
        parts = [str(result.exit_code), duration]
        if result.timed_out:
            parts.append("timeout")
        return f"[runner] {' · '.join(parts)}"
    if style == "verbose":
        timeout_part = "; timed out" if result.timed_out else ""
        return (
            f"[runner] Finished {command_label} "
            f"(exit {result.exit_code}, elapsed {duration}{timeout_part})."
        )
    timeout_part = " (timeout)" if result.timed_out else ""
    return f"[runner] exit {result.exit_code} in {duration}{timeout_part}"
