# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Shared value objects for a single guarded invocation.

Contains the parsed command, the interception plans produced by the
planners, the outcome variants returned up through the pipeline, and the
execution/trash results consumed by the driver. Every model is frozen;
nothing here outlives the invocation that created it.
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from runwarden.core.constants import EXIT_FAILURE, TimeoutTier


class CommandInvocation(BaseModel):
    """Command tokens as received plus their normalized form.

    Attributes:
        raw_args: Tokens exactly as passed to the runner.
        normalized_tokens: Tokens with inline KEY=VALUE assignments and
            wrapper binaries (sudo, env, nohup, ...) stripped.
        tier: Timeout tier assigned by the classifier.
    """

    model_config = ConfigDict(frozen=True)

    raw_args: tuple[str, ...]
    normalized_tokens: tuple[str, ...]
    tier: TimeoutTier = TimeoutTier.DEFAULT

    @property
    def binary(self) -> str | None:
        """First real command token, or None when only prefixes were given."""
        return self.normalized_tokens[0] if self.normalized_tokens else None


class ExecutionContext(BaseModel):
    """Context threaded through interception, policy and execution.

    Attributes:
        command_args: Raw command tokens (assignments included).
        workspace_dir: Directory the runner was started in. Never mutated.
        timeout_ms: Deadline for the child, or None to run without one.
    """

    model_config = ConfigDict(frozen=True)

    command_args: tuple[str, ...]
    workspace_dir: str
    timeout_ms: int | None = None


class ExecutionResult(BaseModel):
    """Terminal state of a spawned child process."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    elapsed_ms: int
    timed_out: bool = False


class TrashMoveResult(BaseModel):
    """Outcome of relocating a batch of paths to the trash.

    Attributes:
        missing: Inputs absent on disk (only collected when missing
            targets are not allowed).
        errors: Per-path relocation failures, already formatted for display.
    """

    model_config = ConfigDict(frozen=True)

    missing: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.missing and not self.errors


class FindDeletePlan(BaseModel):
    """Paths a `find ... -delete` would remove, canonicalized and deduplicated."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["find"] = "find"
    paths: tuple[str, ...] = ()


class RmPlan(BaseModel):
    """Targets of a plain `rm` invocation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rm"] = "rm"
    targets: tuple[str, ...]
    force: bool = False


class GitRmPlan(BaseModel):
    """Work-tree deletion plus the `git rm --cached` replay that stages it.

    Attributes:
        paths: Pathspecs to relocate and then unstage from the index.
        staging_options: Flags replayed onto the `git rm --cached` call.
        allow_missing: True when -f/--force/--ignore-unmatch was given.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["git_rm"] = "git_rm"
    paths: tuple[str, ...]
    staging_options: tuple[str, ...] = ()
    allow_missing: bool = False


class SleepGuard(BaseModel):
    """Ceiling applied to every duration passed to `sleep`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["sleep"] = "sleep"
    limit_seconds: float


class Handled(BaseModel):
    """A planner fully owned the call; the runner exits with `exit_code`."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["handled"] = "handled"
    exit_code: int = 0
    messages: tuple[str, ...] = ()


class Declined(BaseModel):
    """The pattern is absent (or must reach the real binary untouched)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["declined"] = "declined"


class Fatal(BaseModel):
    """Refusal or failure; nothing further runs and the runner exits non-zero."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["fatal"] = "fatal"
    exit_code: int = Field(default=EXIT_FAILURE, ge=1)
    messages: tuple[str, ...] = ()


type Outcome = Handled | Declined | Fatal
