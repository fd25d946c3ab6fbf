# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Tests for the CLI driver."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from runwarden.config import RunnerSettings
from runwarden.core.constants import TIER_TIMEOUTS_MS, TimeoutTier
from runwarden.core.exceptions import LaunchError
from runwarden.main import app, run_guarded
from runwarden.tools.supervisor import ProcessSupervisor


runner = CliRunner()

_CLI_ENV = {"RUNNER_TMUX": "0", "RUNNER_DEBUG": "0", "RUNNER_THE_USER_GAVE_ME_CONSENT": "0"}


@pytest.fixture(autouse=True)
def reset_logger() -> Generator[None, None, None]:
    yield
    logger.remove()


class TestCli:
    """Tests for argument handling at the CLI surface."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Defaults:" in result.output

    def test_timeout_flag_rejected(self) -> None:
        result = runner.invoke(app, ["--timeout", "5", "ls"], env=_CLI_ENV)
        assert result.exit_code == 1
        assert "--timeout is no longer supported" in result.output

    def test_missing_command(self) -> None:
        result = runner.invoke(app, [], env=_CLI_ENV)
        assert result.exit_code == 1
        assert "[runner] Missing command to execute." in result.output

    def test_child_exit_code_and_output(self) -> None:
        result = runner.invoke(app, ["sh", "-c", "echo hello; exit 3"], env=_CLI_ENV)
        assert result.exit_code == 3
        assert "hello" in result.output
        assert "[runner] exit 3 in" in result.output

    def test_child_flags_are_not_parsed(self) -> None:
        result = runner.invoke(app, ["echo", "--help"], env=_CLI_ENV)
        assert result.exit_code == 0
        assert "--help" in result.output
        assert "Defaults:" not in result.output

    def test_launch_failure(self) -> None:
        result = runner.invoke(app, ["runwarden-no-such-binary-xyz"], env=_CLI_ENV)
        assert result.exit_code == 1
        assert "[runner] Failed to launch command" in result.output

    def test_refusal(self) -> None:
        result = runner.invoke(app, ["sleep", "45"], env=_CLI_ENV)
        assert result.exit_code == 1
        assert "exceeds the 30s limit" in result.output


class TestRunGuarded:
    """Tests for the end-to-end control flow."""

    async def test_sleep_within_limit_runs(self, settings: RunnerSettings, workspace: Path) -> None:
        assert await run_guarded(["sleep", "0.1"], settings, workspace_dir=str(workspace)) == 0

    async def test_sleep_over_limit_refused(
        self, settings: RunnerSettings, workspace: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert await run_guarded(["sleep", "45"], settings, workspace_dir=str(workspace)) == 1
        assert "sleep 45 exceeds the 30s limit" in capsys.readouterr().err

    async def test_commit_refused_before_execution(
        self, settings: RunnerSettings, workspace: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = await run_guarded(["git", "commit", "-m", "msg"], settings, workspace_dir=str(workspace))

        assert code == 1
        err = capsys.readouterr().err
        assert "Direct git add/commit is disabled." in err
        assert "[runner] exit" not in err

    async def test_rm_goes_to_trash(
        self, settings: RunnerSettings, workspace: Path, trash_dir: Path
    ) -> None:
        (workspace / "a.txt").write_text("a")

        assert await run_guarded(["rm", "a.txt"], settings, workspace_dir=str(workspace)) == 0
        assert (trash_dir / "a.txt").exists()

    async def test_child_exit_code(self, settings: RunnerSettings, workspace: Path) -> None:
        assert await run_guarded(["sh", "-c", "exit 5"], settings, workspace_dir=str(workspace)) == 5

    async def test_timeout_exit_code(
        self,
        settings: RunnerSettings,
        workspace: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setitem(TIER_TIMEOUTS_MS, TimeoutTier.DEFAULT, 200)
        supervisor = ProcessSupervisor(settings, kill_grace_seconds=0.2)

        code = await run_guarded(
            ["sleep", "5"], settings, workspace_dir=str(workspace), supervisor=supervisor
        )

        assert code == 124

    async def test_launch_error_propagates(self, settings: RunnerSettings, workspace: Path) -> None:
        with pytest.raises(LaunchError):
            await run_guarded(["runwarden-no-such-binary-xyz"], settings, workspace_dir=str(workspace))

    async def test_consent_allows_gated_git(
        self,
        settings_factory: Callable[..., RunnerSettings],
        git_repo: Path,
    ) -> None:
        settings = settings_factory(consent=True)
        code = await run_guarded(["git", "checkout", "main"], settings, workspace_dir=str(git_repo))
        assert code == 0

    async def test_non_git_command_passes_gate_and_runs(
        self, settings: RunnerSettings, workspace: Path, capfd: pytest.CaptureFixture[str]
    ) -> None:
        code = await run_guarded(["sh", "-c", "echo gated-ok"], settings, workspace_dir=str(workspace))

        assert code == 0
        assert "gated-ok" in capfd.readouterr().out
