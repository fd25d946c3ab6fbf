# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Shared fixtures and helpers for all tests.

Every fixture builds RunnerSettings explicitly so the developer's own
HOME, PATH, TMUX and RUNNER_* variables never leak into a test.
"""
import os
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from runwarden.config import RunnerSettings
from runwarden.tools.trash import TrashMover


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Fake home directory with a macOS-style .Trash."""
    home = tmp_path / "home"
    (home / ".Trash").mkdir(parents=True)
    return home


@pytest.fixture
def trash_dir(home_dir: Path) -> Path:
    return home_dir / ".Trash"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory the runner operates in."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Directory used as the only search-path entry (empty by default)."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def settings_factory(home_dir: Path, bin_dir: Path, tmp_path: Path) -> Callable[..., RunnerSettings]:
    """Factory for RunnerSettings isolated from the real environment."""
    def _create(**overrides: Any) -> RunnerSettings:
        values: dict[str, Any] = {
            "debug": False,
            "summary_style": "compact",
            "consent": False,
            "tmux_flag": "0",
            "tmux_env": None,
            "home": str(home_dir),
            "search_path": str(bin_dir),
            "homebrew_prefix": str(tmp_path / "homebrew"),
        }
        values.update(overrides)
        return RunnerSettings(**values)
    return _create


@pytest.fixture
def settings(settings_factory: Callable[..., RunnerSettings]) -> RunnerSettings:
    return settings_factory()


@pytest.fixture
def mover(settings: RunnerSettings) -> TrashMover:
    """Trash engine with no external utility available (manual relocation only)."""
    return TrashMover(settings)


@pytest.fixture
def make_executable(bin_dir: Path) -> Callable[[str, str], Path]:
    """Write a small shell script into bin_dir and mark it executable."""
    def _create(name: str, body: str) -> Path:
        script = bin_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(0o755)
        return script
    return _create


def _get_isolated_git_env() -> dict[str, str]:
    """Environment for git operations that ignores the user's git config."""
    return {
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
        "HOME": os.environ.get("HOME", "/tmp"),
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@test.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@test.com",
        "GIT_CONFIG_GLOBAL": "/dev/null",
        "GIT_CONFIG_SYSTEM": "/dev/null",
        "GIT_TEMPLATE_DIR": "",
    }


@pytest.fixture
def git_repo(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Turn the workspace into a git repo with two committed files."""
    git_env = _get_isolated_git_env()
    for key, value in git_env.items():
        monkeypatch.setenv(key, value)

    subprocess.run(
        ["git", "init", "--initial-branch=main"],
        cwd=workspace,
        capture_output=True,
        check=True,
        env=git_env,
    )
    (workspace / "foo.txt").write_text("foo")
    (workspace / "bar.txt").write_text("bar")
    subprocess.run(["git", "add", "."], cwd=workspace, check=True, env=git_env)
    subprocess.run(
        ["git", "commit", "-m", "Initial commit"],
        cwd=workspace,
        check=True,
        env=git_env,
        capture_output=True,
    )
    yield workspace


@pytest.fixture
def ls_files() -> Callable[[Path], list[str]]:
    """Callable returning the paths currently tracked in a repo's index."""
    def _ls(repo: Path) -> list[str]:
        output = subprocess.run(
            ["git", "ls-files"],
            cwd=repo,
            capture_output=True,
            check=True,
            text=True,
        ).stdout
        return [line for line in output.splitlines() if line]
    return _ls
