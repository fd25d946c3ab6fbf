# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Reject `sleep` calls that would stall the runner."""

import re
from collections.abc import Sequence

from runwarden.core.constants import MAX_SLEEP_SECONDS
from runwarden.core.types import Declined, Fatal, Outcome, SleepGuard


_DURATION = re.compile(r"^(\d+(?:\.\d+)?)([smhd]?)$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24}


def is_sleep_binary(token: str) -> bool:
    return token == "sleep" or token.endswith("/sleep")


def parse_sleep_duration_seconds(token: str) -> float | None:
    """Parse `45`, `0.5m`, `2H` style durations; None for anything else."""
    match = _DURATION.match(token)
    if not match:
        return None
    return float(match.group(1)) * _UNIT_SECONDS[match.group(2).lower()]


def check_sleep(
    normalized_tokens: Sequence[str],
    guard: SleepGuard | None = None,
) -> Outcome:
    """Gate a `sleep` call without running it.

    Returns:
        Fatal when any duration exceeds the ceiling, Declined otherwise so
        the command continues to normal execution.
    """
    if guard is None:
        guard = SleepGuard(limit_seconds=MAX_SLEEP_SECONDS)
    if len(normalized_tokens) < 2 or not is_sleep_binary(normalized_tokens[0]):
        return Declined()

    for token in normalized_tokens[1:]:
        seconds = parse_sleep_duration_seconds(token)
        if seconds is not None and seconds > guard.limit_seconds:
            return Fatal(messages=(
                f"[runner] sleep {token} exceeds the {guard.limit_seconds:g}s limit; "
                "split the wait or lower the value.",
            ))
    return Declined()
