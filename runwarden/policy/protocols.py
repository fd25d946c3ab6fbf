# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Interface for git policy oracles consulted before a git command runs.

The gate only depends on `GitPolicy.evaluate`; the classification of
subcommands is owned entirely by the implementation. `DefaultGitPolicy`
in runwarden.policy.default is used unless another policy is supplied.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


if TYPE_CHECKING:
    from runwarden.policy.analysis import GitExecutionContext


class GitPolicyEvaluation(BaseModel):
    """Verdict for one git invocation.

    Attributes:
        requires_commit_helper: Direct add/commit must go through the helper.
        requires_explicit_consent: Guarded operation; needs the consent override.
        is_destructive: Can overwrite or discard work; needs the consent override.
        reason: Short human-readable explanation, if any.
    """

    model_config = ConfigDict(frozen=True)

    requires_commit_helper: bool = False
    requires_explicit_consent: bool = False
    is_destructive: bool = False
    reason: str | None = None


@runtime_checkable
class GitPolicy(Protocol):
    """Protocol for classifying git invocations."""

    def evaluate(self, context: GitExecutionContext) -> GitPolicyEvaluation:
        """Classify the git call described by `context`.

        Args:
            context: Analysis of the command (subcommand may be None).

        Returns:
            The policy verdict. Non-git commands must yield an all-False verdict.
        """
        ...
