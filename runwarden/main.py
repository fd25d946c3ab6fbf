# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""runwarden CLI: guard every command before it reaches the real shell."""

import asyncio
import os
from collections.abc import Sequence

import typer
from loguru import logger

from runwarden.classifier import classify
from runwarden.config import RunnerSettings
from runwarden.core.constants import EXIT_FAILURE, EXIT_TIMEOUT, TimeoutTier
from runwarden.core.exceptions import RunwardenError
from runwarden.core.types import ExecutionContext, Fatal, Handled, Outcome
from runwarden.interception import InterceptionPipeline
from runwarden.logging import configure_logging
from runwarden.policy import DefaultGitPolicy, GitPolicy, check_git_policy
from runwarden.tools.summary import format_duration
from runwarden.tools.supervisor import ProcessSupervisor
from runwarden.tools.trash import TrashMover


HELP_TEXT = (
    "Run a command with automatic timeouts, git policy checks and trash-safe deletes.\n\n"
    f"Defaults: {format_duration(TimeoutTier.DEFAULT.timeout_ms)} timeout for most commands, "
    f"{format_duration(TimeoutTier.TEST_EXTENDED.timeout_ms)} when lint/test suites are detected, "
    f"{format_duration(TimeoutTier.LONG_RUN.timeout_ms)} for builds and full suites, "
    f"{format_duration(TimeoutTier.LINT_EXTENDED.timeout_ms)} for lint binaries."
)

app = typer.Typer(add_completion=False)


def _finish(outcome: Outcome) -> int:
    """Echo an outcome's messages and return its exit code."""
    if isinstance(outcome, Fatal | Handled):
        for message in outcome.messages:
            typer.echo(message, err=True)
        return outcome.exit_code
    return 0


async def run_guarded(
    command_args: Sequence[str],
    settings: RunnerSettings,
    *,
    workspace_dir: str | None = None,
    policy: GitPolicy | None = None,
    supervisor: ProcessSupervisor | None = None,
    mover: TrashMover | None = None,
) -> int:
    """Classify, intercept, gate and finally execute one command.

    Args:
        command_args: The command to run, including inline assignments.
        settings: Runner settings.
        workspace_dir: Directory to run in (defaults to the current directory).
        policy: Git policy oracle (defaults to DefaultGitPolicy).
        supervisor: Process supervisor (defaults to one built from settings).
        mover: Trash engine (defaults to one built from settings).

    Returns:
        Exit code for the runner: the child's code, 124 on timeout, 1 on refusal.

    Raises:
        RunwardenError: On usage or launch failures.
    """
    invocation = classify(command_args)
    context = ExecutionContext(
        command_args=invocation.raw_args,
        workspace_dir=workspace_dir or os.getcwd(),
        timeout_ms=invocation.tier.timeout_ms,
    )
    logger.debug(
        "Classified command",
        tier=invocation.tier.value,
        timeout=format_duration(invocation.tier.timeout_ms),
    )

    supervisor = supervisor or ProcessSupervisor(settings)
    pipeline = InterceptionPipeline(mover or TrashMover(settings), supervisor)
    interception = await pipeline.resolve(context, invocation)
    if interception.handled:
        return _finish(interception.outcome)
    assert interception.git_context is not None

    gate = check_git_policy(interception.git_context, policy or DefaultGitPolicy(), settings)
    if isinstance(gate, Fatal):
        return _finish(gate)

    result = await supervisor.run(context)
    return EXIT_TIMEOUT if result.timed_out else result.exit_code


@app.command(
    help=HELP_TEXT,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    },
)
def run(
    ctx: typer.Context,
    command: list[str] | None = typer.Argument(None, help="Command to execute, with its arguments."),
    timeout: str | None = typer.Option(None, "--timeout", hidden=True),
) -> None:
    """Run a command under the runner's guardrails.

    Raises:
        typer.Exit: Always, with the runner's exit code.
    """
    if timeout is not None:
        typer.echo("[runner] --timeout is no longer supported; rely on the automatic timeouts.", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    command_args = [*(command or []), *ctx.args]
    if not command_args:
        typer.echo("[runner] Missing command to execute.", err=True)
        typer.echo(ctx.get_usage(), err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    settings = RunnerSettings()
    configure_logging(settings.log_level)

    try:
        exit_code = asyncio.run(run_guarded(command_args, settings))
    except RunwardenError as e:
        typer.echo(f"[runner] {e}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from None
    except Exception as e:
        logger.opt(exception=e).debug("Unexpected failure")
        typer.echo(f"[runner] Unexpected failure: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from None

    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
