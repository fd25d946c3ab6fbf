# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Ordered interception pipeline: tmux -> find -> rm -> sleep -> git rm.

The first planner that returns anything other than Declined owns the call;
outcomes are never combined.
"""

from collections.abc import Awaitable, Callable

import typer
from pydantic import BaseModel, ConfigDict

from runwarden.classifier import binary_name
from runwarden.core.types import (
    CommandInvocation,
    Declined,
    ExecutionContext,
    Handled,
    Outcome,
)
from runwarden.interception.find_delete import handle_find
from runwarden.interception.git_rm import handle_git_rm
from runwarden.interception.rm import handle_rm
from runwarden.interception.sleep import check_sleep
from runwarden.policy.analysis import GitExecutionContext, analyze_git_execution
from runwarden.tools.supervisor import ProcessSupervisor
from runwarden.tools.trash import TrashMover


type Interceptor = Callable[[ExecutionContext, CommandInvocation], Awaitable[Outcome]]


class InterceptionResult(BaseModel):
    """Outcome of the pipeline plus the git analysis for the policy gate."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    git_context: GitExecutionContext | None = None

    @property
    def handled(self) -> bool:
        return not isinstance(self.outcome, Declined)


class InterceptionPipeline:
    """Runs each planner in priority order against one invocation.

    Args:
        mover: Trash engine shared by every delete-related planner.
        supervisor: Used by the tmux passthrough to run without a deadline.
    """

    def __init__(self, mover: TrashMover, supervisor: ProcessSupervisor) -> None:
        self.mover = mover
        self.supervisor = supervisor
        self._interceptors: tuple[Interceptor, ...] = (
            self._handle_tmux,
            self._handle_find,
            self._handle_rm,
            self._handle_sleep,
        )

    async def _handle_tmux(self, context: ExecutionContext, invocation: CommandInvocation) -> Outcome:
        if invocation.binary is None or binary_name(invocation.binary) != "tmux":
            return Declined()
        typer.echo(
            "[runner] Detected tmux invocation; executing command without runner timeout guardrails.",
            err=True,
        )
        result = await self.supervisor.run_without_timeout(context)
        return Handled(exit_code=result.exit_code)

    async def _handle_find(self, context: ExecutionContext, invocation: CommandInvocation) -> Outcome:
        return await handle_find(context.command_args, context.workspace_dir, self.mover)

    async def _handle_rm(self, context: ExecutionContext, invocation: CommandInvocation) -> Outcome:
        return await handle_rm(context.command_args, context.workspace_dir, self.mover)

    async def _handle_sleep(self, context: ExecutionContext, invocation: CommandInvocation) -> Outcome:
        return check_sleep(invocation.normalized_tokens)

    async def resolve(self, context: ExecutionContext, invocation: CommandInvocation) -> InterceptionResult:
        """Give each planner a chance to fully handle the command.

        Args:
            context: Command, workspace and deadline.
            invocation: Classified tokens of the same command.

        Returns:
            The owning planner's outcome, or Declined together with the git
            analysis the policy gate needs.
        """
        for interceptor in self._interceptors:
            outcome = await interceptor(context, invocation)
            if not isinstance(outcome, Declined):
                return InterceptionResult(outcome=outcome)

        git_context = analyze_git_execution(context.command_args, context.workspace_dir)
        outcome = await handle_git_rm(git_context, self.mover)
        return InterceptionResult(outcome=outcome, git_context=git_context)
