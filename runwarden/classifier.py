# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Timeout-tier classification over raw command tokens.

Pure functions only: nothing in this module touches the filesystem or
spawns processes. `classify` strips wrapper prefixes (sudo, env, nohup,
inline KEY=VALUE assignments) and picks the first matching tier:

    1. integration test suite or integration spec path -> TEST_EXTENDED
    2. lint binary or lint* script                     -> LINT_EXTENDED
    3. build / full-suite / browser test keyword       -> LONG_RUN
    4. test, lint, check, docker, playwright keyword   -> TEST_EXTENDED
       (unless the call focuses a single test)
    5. anything else                                   -> DEFAULT
"""

import re
from collections.abc import Iterable, Sequence

from runwarden.core.constants import (
    EXTENDED_SCRIPT_KEYWORDS,
    INTEGRATION_SUITE,
    INTEGRATION_TEST_DIR,
    LINT_BINARIES,
    LONG_SCRIPT_KEYWORDS,
    PACKAGE_MANAGERS,
    SINGLE_TEST_FLAGS,
    SINGLE_TEST_SCRIPTS,
    TEST_BINARIES,
    TEST_RUNNER_SCRIPT,
    WRAPPER_COMMANDS,
    TimeoutTier,
)
from runwarden.core.types import CommandInvocation


_ENV_ASSIGNMENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*=")
_INTEGRATION_VALUE_FLAGS = ("--run", "--include")


def is_env_assignment(token: str) -> bool:
    """Check whether a token is an inline environment variable assignment."""
    return bool(_ENV_ASSIGNMENT.match(token))


def binary_name(token: str) -> str:
    """Return the last path component of a command token."""
    return re.split(r"[/\\]", token)[-1]


def strip_wrappers_and_assignments(args: Sequence[str]) -> list[str]:
    """Remove leading assignments and wrapper binaries so heuristics see the real command.

    Wrappers may themselves carry assignments (`env FOO=1 pnpm test`), so
    assignments are stripped again after every wrapper.

    Args:
        args: Command tokens as received.

    Returns:
        Tokens starting at the real command.
    """
    tokens = list(args)
    while tokens and is_env_assignment(tokens[0]):
        tokens.pop(0)

    while tokens and tokens[0] in WRAPPER_COMMANDS:
        tokens.pop(0)
        while tokens and is_env_assignment(tokens[0]):
            tokens.pop(0)

    return tokens


def matches_script_keyword(script: str, keywords: Iterable[str]) -> bool:
    """Match a script name exactly or as a `keyword:` namespaced sub-script."""
    lowered = script.lower()
    return any(lowered == keyword or lowered.startswith(f"{keyword}:") for keyword in keywords)


def _should_extend_for_script(script: str) -> bool:
    if script in SINGLE_TEST_SCRIPTS:
        return False
    return matches_script_keyword(script, EXTENDED_SCRIPT_KEYWORDS)


def _is_extended_token(token: str) -> bool:
    return _should_extend_for_script(token) or token.lower() in TEST_BINARIES


def _matches_long_keyword(token: str) -> bool:
    return matches_script_keyword(token, LONG_SCRIPT_KEYWORDS)


def _token_references_integration_test(token: str) -> bool:
    normalized = token.replace("\\", "/")
    if INTEGRATION_TEST_DIR in normalized:
        return True
    for flag in _INTEGRATION_VALUE_FLAGS:
        if normalized.startswith(f"{flag}="):
            return INTEGRATION_TEST_DIR in normalized.split("=", 1)[1]
    return False


def references_integration_spec(tokens: Sequence[str]) -> bool:
    """Scan every token (and `--run <value>` style pairs) for integration specs."""
    for index, token in enumerate(tokens):
        if token in _INTEGRATION_VALUE_FLAGS and index + 1 < len(tokens):
            if _token_references_integration_test(tokens[index + 1]):
                return True
        if _token_references_integration_test(token):
            return True
    return False


def is_test_runner_suite_invocation(tokens: Sequence[str], suite: str) -> bool:
    """Detect `<runner> scripts/test-runner.ts <suite>` calls regardless of wrappers."""
    wanted = suite.lower()
    for index, token in enumerate(tokens):
        normalized = token.lstrip("./\\")
        if normalized == TEST_RUNNER_SCRIPT or normalized.endswith(f"/{TEST_RUNNER_SCRIPT}"):
            if index + 1 < len(tokens) and tokens[index + 1].lower() == wanted:
                return True
    return False


def should_use_lint_timeout(tokens: Sequence[str]) -> bool:
    """Give lint binaries and `run lint*` scripts the dedicated lint tier."""
    if not tokens:
        return False
    first, rest = tokens[0], tokens[1:]

    if first in PACKAGE_MANAGERS and rest:
        subcommand = rest[0]
        if subcommand == "run":
            return len(rest) > 1 and rest[1].startswith("lint")
        if subcommand == "exec" and len(rest) > 1 and rest[1].lower() in LINT_BINARIES:
            return True

    return first.lower() in LINT_BINARIES


def should_use_long_timeout(tokens: Sequence[str]) -> bool:
    """Grant the long-run tier to builds, full suites and browser test configs."""
    if not tokens:
        return False
    first, rest = tokens[0], tokens[1:]

    if first in PACKAGE_MANAGERS:
        if not rest:
            return False
        subcommand = rest[0]
        if subcommand == "run":
            if len(rest) > 1 and _matches_long_keyword(rest[1]):
                return True
        elif _matches_long_keyword(subcommand):
            return True
        return any(_matches_long_keyword(token) for token in rest[1:])

    return _matches_long_keyword(first) or any(_matches_long_keyword(token) for token in rest)


def should_extend_timeout(tokens: Sequence[str]) -> bool:
    """Check for test/lint/check/docker/playwright keywords anywhere in the call."""
    if not tokens:
        return False
    first, rest = tokens[0], tokens[1:]

    if first in PACKAGE_MANAGERS:
        if not rest:
            return False
        subcommand = rest[0]
        if subcommand == "run":
            return len(rest) > 1 and _should_extend_for_script(rest[1])
        if subcommand == "exec":
            # The tool name or its flags may appear anywhere after exec
            return any(_is_extended_token(token) for token in rest[1:])
        if _should_extend_for_script(subcommand):
            return True

    return _is_extended_token(first) or any(_is_extended_token(token) for token in rest)


def is_single_test_invocation(tokens: Sequence[str]) -> bool:
    """Detect calls that focus one spec so they keep the default tier."""
    if not tokens:
        return False
    if any(token in SINGLE_TEST_FLAGS for token in tokens):
        return True
    first, rest = tokens[0], tokens[1:]
    return first in PACKAGE_MANAGERS and bool(rest) and rest[0] in SINGLE_TEST_SCRIPTS


def determine_timeout_tier(tokens: Sequence[str]) -> TimeoutTier:
    """Pick the timeout tier for already-normalized tokens (first match wins)."""
    if is_test_runner_suite_invocation(tokens, INTEGRATION_SUITE):
        return TimeoutTier.TEST_EXTENDED
    if references_integration_spec(tokens):
        return TimeoutTier.TEST_EXTENDED
    if should_use_lint_timeout(tokens):
        return TimeoutTier.LINT_EXTENDED
    if should_use_long_timeout(tokens):
        return TimeoutTier.LONG_RUN
    if should_extend_timeout(tokens) and not is_single_test_invocation(tokens):
        return TimeoutTier.TEST_EXTENDED
    return TimeoutTier.DEFAULT


def classify(raw_args: Sequence[str]) -> CommandInvocation:
    """Classify a raw argument vector.

    Args:
        raw_args: Command tokens as received by the runner.

    Returns:
        The invocation with its normalized tokens and timeout tier.
    """
    normalized = strip_wrappers_and_assignments(raw_args)
    return CommandInvocation(
        raw_args=tuple(raw_args),
        normalized_tokens=tuple(normalized),
        tier=determine_timeout_tier(normalized),
    )
