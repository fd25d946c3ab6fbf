# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Execution supervisor: spawn the real command under a deadline.

The child inherits stdin; stdout/stderr are piped through so the runner can
append its completion summary. When the deadline fires the child gets
SIGTERM, then SIGKILL if it is still alive after the grace window. SIGINT
and SIGTERM received by the runner are forwarded to the child for as long
as it runs.
"""
from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import sys
import time
from collections.abc import Callable, Mapping, Sequence
from typing import IO

import typer
from loguru import logger

from runwarden.classifier import is_env_assignment
from runwarden.config import RunnerSettings
from runwarden.core.constants import (
    KILL_GRACE_SECONDS,
    LONG_RUN_REPORT_THRESHOLD_MS,
    SIGNAL_EXIT_BASE,
)
from runwarden.core.exceptions import LaunchError, UsageError
from runwarden.core.types import ExecutionContext, ExecutionResult
from runwarden.tools.summary import (
    format_completion_summary,
    format_display_command,
    format_duration,
)


FORWARDED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)

# Upper bound on waiting for piped output after the child has exited;
# a detached grandchild may keep the pipe open indefinitely.
_DRAIN_TIMEOUT = 2.0
_CHUNK_SIZE = 64 * 1024


def build_execution_params(
    command_args: Sequence[str],
    base_env: Mapping[str, str] | None = None,
) -> tuple[str, list[str], dict[str, str]]:
    """Split leading KEY=VALUE tokens into the child's environment.

    Args:
        command_args: Raw command tokens.
        base_env: Environment to extend (defaults to os.environ).

    Returns:
        Tuple of (executable, arguments, environment).

    Raises:
        UsageError: If no command remains after the assignments.
    """
    env = dict(os.environ if base_env is None else base_env)
    args: list[str] = []
    for token in command_args:
        if not args and is_env_assignment(token):
            key, _, value = token.partition("=")
            env[key] = value
            continue
        args.append(token)

    if not args or not args[0]:
        raise UsageError("Missing command to execute.")
    return args[0], args[1:], env


def exit_code_from_returncode(returncode: int) -> int:
    """Map asyncio's negative signal return codes to the 128+N convention."""
    if returncode < 0:
        return SIGNAL_EXIT_BASE + (-returncode)
    return returncode


def _write_chunk(stream: IO[str], chunk: bytes) -> None:
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        buffer.write(chunk)
    else:
        stream.write(chunk.decode(errors="replace"))
    stream.flush()


async def _pump(reader: asyncio.StreamReader, stream_getter: Callable[[], IO[str]]) -> None:
    """Copy a child stream to one of our own until EOF."""
    while True:
        chunk = await reader.read(_CHUNK_SIZE)
        if not chunk:
            break
        _write_chunk(stream_getter(), chunk)


class ProcessSupervisor:
    """Runs one child process per invocation and reports its outcome.

    Attributes:
        settings: Runner settings (summary style, tmux detection).
        kill_grace_seconds: Delay between SIGTERM and SIGKILL on timeout.
        long_run_threshold_ms: Runs at least this long get a tmux hint.
    """

    def __init__(
        self,
        settings: RunnerSettings,
        *,
        kill_grace_seconds: float = KILL_GRACE_SECONDS,
        long_run_threshold_ms: int = LONG_RUN_REPORT_THRESHOLD_MS,
    ) -> None:
        self.settings = settings
        self.kill_grace_seconds = kill_grace_seconds
        self.long_run_threshold_ms = long_run_threshold_ms

    def _register_signal_forwarding(
        self, process: asyncio.subprocess.Process
    ) -> Callable[[], None]:
        """Forward termination signals to the child; returns the unregister hook."""
        loop = asyncio.get_running_loop()

        def forward(sig: signal.Signals) -> None:
            if process.returncode is None:
                logger.debug("Forwarding signal to child", signal=sig.name, pid=process.pid)
                with contextlib.suppress(ProcessLookupError):
                    process.send_signal(sig)

        registered: list[signal.Signals] = []
        for sig in FORWARDED_SIGNALS:
            try:
                loop.add_signal_handler(sig, forward, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                continue
            registered.append(sig)

        def unregister() -> None:
            for sig in registered:
                loop.remove_signal_handler(sig)

        return unregister

    async def _spawn(
        self, context: ExecutionContext, *, pipe_output: bool
    ) -> asyncio.subprocess.Process:
        command, args, env = build_execution_params(context.command_args)
        stream = asyncio.subprocess.PIPE if pipe_output else None
        try:
            return await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=context.workspace_dir,
                env=env,
                stdout=stream,
                stderr=stream,
            )
        except OSError as e:
            raise LaunchError(f"Failed to launch command: {e.strerror or e}") from e

    async def _wait_with_deadline(
        self, process: asyncio.subprocess.Process, timeout_ms: int | None
    ) -> bool:
        """Race the child's exit against the deadline.

        Returns:
            True if the deadline fired first and the child was terminated.
        """
        wait_task = asyncio.create_task(process.wait())
        try:
            timeout = None if timeout_ms is None else timeout_ms / 1000
            done, _ = await asyncio.wait({wait_task}, timeout=timeout)
            if wait_task in done:
                return False

            logger.debug(
                "Command exceeded deadline; sending SIGTERM",
                timeout=format_duration(timeout_ms or 0),
                pid=process.pid,
            )
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
            done, _ = await asyncio.wait({wait_task}, timeout=self.kill_grace_seconds)
            if wait_task not in done:
                logger.debug("Child ignored SIGTERM; sending SIGKILL", pid=process.pid)
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await wait_task
            return True
        finally:
            if not wait_task.done():
                wait_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await wait_task

    async def _supervise(
        self, context: ExecutionContext, *, pipe_output: bool
    ) -> ExecutionResult:
        command_label = format_display_command(context.command_args)
        start = time.monotonic()
        process = await self._spawn(context, pipe_output=pipe_output)

        if pipe_output and self.settings.in_tmux_session:
            typer.echo(
                f"[runner] Watching {command_label} (pid {process.pid}). "
                "Wait for the closing sentinel before moving on.",
                err=True,
            )

        unregister = self._register_signal_forwarding(process)
        pumps: list[asyncio.Task[None]] = []
        if pipe_output:
            assert process.stdout is not None and process.stderr is not None
            pumps = [
                asyncio.create_task(_pump(process.stdout, lambda: sys.stdout)),
                asyncio.create_task(_pump(process.stderr, lambda: sys.stderr)),
            ]

        try:
            timed_out = await self._wait_with_deadline(process, context.timeout_ms)
        finally:
            unregister()
            if pumps:
                _, pending = await asyncio.wait(pumps, timeout=_DRAIN_TIMEOUT)
                for task in pending:
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        assert process.returncode is not None
        return ExecutionResult(
            exit_code=exit_code_from_returncode(process.returncode),
            elapsed_ms=int((time.monotonic() - start) * 1000),
            timed_out=timed_out,
        )

    def _report(
        self,
        context: ExecutionContext,
        result: ExecutionResult,
        *,
        hint_long_runs: bool = True,
    ) -> None:
        if result.timed_out:
            typer.echo(
                f"[runner] Command terminated after {format_duration(context.timeout_ms or 0)}. "
                "Re-run inside tmux for long-lived work.",
                err=True,
            )
        elif hint_long_runs and result.elapsed_ms >= self.long_run_threshold_ms:
            typer.echo(
                f"[runner] Completed in {format_duration(result.elapsed_ms)}. "
                "For long-running tasks, prefer tmux directly.",
                err=True,
            )
        typer.echo(
            format_completion_summary(
                result,
                format_display_command(context.command_args),
                self.settings.summary_style,
            ),
            err=True,
        )

    async def run(self, context: ExecutionContext) -> ExecutionResult:
        """Run the command with piped output and the context's deadline.

        Args:
            context: Command, workspace and deadline for the child.

        Returns:
            The child's exit code, elapsed time and whether it timed out.

        Raises:
            UsageError: If the command is empty after assignments.
            LaunchError: If the child cannot be spawned.
        """
        result = await self._supervise(context, pipe_output=True)
        self._report(context, result)
        return result

    async def run_without_timeout(self, context: ExecutionContext) -> ExecutionResult:
        """Run the command with inherited stdio and no deadline (tmux sessions)."""
        result = await self._supervise(
            context.model_copy(update={"timeout_ms": None}), pipe_output=False
        )
        self._report(context, result, hint_long_runs=False)
        return result
