# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Constants used across the runwarden codebase."""

from enum import StrEnum


class TimeoutTier(StrEnum):
    """Named timeout ceilings assigned to a command invocation."""

    DEFAULT = "default"
    TEST_EXTENDED = "test_extended"
    LONG_RUN = "long_run"
    LINT_EXTENDED = "lint_extended"

    @property
    def timeout_ms(self) -> int:
        """Deadline in milliseconds for this tier."""
        return TIER_TIMEOUTS_MS[self]


TIER_TIMEOUTS_MS: dict[TimeoutTier, int] = {
    TimeoutTier.DEFAULT: 5 * 60 * 1000,
    TimeoutTier.TEST_EXTENDED: 20 * 60 * 1000,
    # Build and full-suite commands routinely spike past 20 minutes
    TimeoutTier.LONG_RUN: 25 * 60 * 1000,
    TimeoutTier.LINT_EXTENDED: 30 * 60 * 1000,
}

# Runs at least this long get a "prefer tmux" note in the summary
LONG_RUN_REPORT_THRESHOLD_MS = 60 * 1000

# Delay between SIGTERM and SIGKILL once a deadline expires
KILL_GRACE_SECONDS = 5.0

MAX_SLEEP_SECONDS = 30

EXIT_FAILURE = 1
EXIT_TIMEOUT = 124
SIGNAL_EXIT_BASE = 128

# Prefixes stripped before the real command is inspected
WRAPPER_COMMANDS: frozenset[str] = frozenset({
    "sudo",
    "/usr/bin/sudo",
    "env",
    "/usr/bin/env",
    "command",
    "/bin/command",
    "nohup",
    "/usr/bin/nohup",
})

# Package managers whose `run <script>` / `exec <bin>` forms are unwrapped
PACKAGE_MANAGERS: frozenset[str] = frozenset({"pnpm", "npm", "yarn", "bun"})

LONG_SCRIPT_KEYWORDS: tuple[str, ...] = (
    "build",
    "test:all",
    "test:browser",
    "vitest.browser",
    "vitest.browser.config.ts",
)
EXTENDED_SCRIPT_KEYWORDS: tuple[str, ...] = (
    "lint",
    "test",
    "playwright",
    "check",
    "docker",
)
SINGLE_TEST_SCRIPTS: frozenset[str] = frozenset({"test:file"})
SINGLE_TEST_FLAGS: frozenset[str] = frozenset({"--run"})
TEST_BINARIES: frozenset[str] = frozenset({"vitest", "playwright", "jest"})
LINT_BINARIES: frozenset[str] = frozenset({"eslint", "biome", "oxlint", "knip"})

TEST_RUNNER_SCRIPT = "scripts/test-runner.ts"
INTEGRATION_SUITE = "integration"
INTEGRATION_TEST_DIR = "tests/integration/"

# find actions whose side effects cannot be replayed from a -print0 probe
UNSAFE_FIND_ACTIONS: frozenset[str] = frozenset({"-exec", "-execdir", "-ok", "-okdir"})

TRASH_CLI_CANDIDATES: tuple[str, ...] = ("trash-put", "trash")
DEFAULT_HOMEBREW_PREFIX = "/opt/homebrew"
LEGACY_TRASH_CLI_DIR = "/usr/local/opt/trash/bin"
