# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Trash-safe deletion: relocate paths to a recoverable store instead of unlinking."""

import asyncio
import errno
import os
import shutil
import time
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from runwarden.config import RunnerSettings
from runwarden.core.constants import LEGACY_TRASH_CLI_DIR, TRASH_CLI_CANDIDATES
from runwarden.core.types import TrashMoveResult


def resolve_path(base_dir: str | Path, raw_path: str) -> str:
    """Resolve `raw_path` against `base_dir` unless it is already absolute."""
    if raw_path.startswith("/"):
        return raw_path
    return os.path.normpath(os.path.join(base_dir, raw_path))


def build_trash_target(trash_dir: Path, absolute_path: str) -> Path:
    """Pick a collision-free destination for `absolute_path` inside `trash_dir`.

    The plain basename is used when free; otherwise a millisecond timestamp
    is appended, then an incrementing suffix, until the name is unused.
    """
    base_name = os.path.basename(absolute_path.rstrip("/")) or "root"
    timestamp = int(time.time() * 1000)
    attempt = 0
    candidate = trash_dir / base_name
    while os.path.lexists(candidate):
        suffix = f"-{attempt}" if attempt > 0 else ""
        candidate = trash_dir / f"{base_name}-{timestamp}{suffix}"
        attempt += 1
    return candidate


def relocate(source: str, target: Path) -> None:
    """Move `source` to `target`, copying then removing across devices.

    Raises:
        OSError: If the rename fails for any reason other than EXDEV, or
            the cross-device copy/removal fails.
    """
    try:
        os.rename(source, target)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    if os.path.isdir(source) and not os.path.islink(source):
        shutil.copytree(source, target, symlinks=True)
        shutil.rmtree(source)
    else:
        shutil.copy2(source, target, follow_symlinks=False)
        os.unlink(source)


def format_trash_error(error: BaseException) -> str:
    """Normalize trash/rename errors into a readable string."""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error) or type(error).__name__


class TrashMover:
    """Relocates files and directories to the user's trash.

    Strategy, in order:
        1. An external trash utility (trash-put / trash), invoked once for
           the whole batch.
        2. Manual relocation into the per-user trash directory, path by
           path, with a cross-device copy-and-remove fallback.

    The utility lookup is probed at most once per instance and the result,
    including "none found", is kept for the instance's lifetime.
    """

    def __init__(self, settings: RunnerSettings) -> None:
        self._settings = settings
        self._trash_cli: str | None = None
        self._trash_cli_probed = False

    def _candidate_commands(self) -> list[str]:
        """Candidate utility paths across the search path and the Homebrew dirs."""
        search_dirs: list[str] = []
        for segment in self._settings.search_path.split(os.pathsep):
            if segment and segment not in search_dirs:
                search_dirs.append(segment)
        for extra in (
            os.path.join(self._settings.homebrew_prefix, "opt", "trash", "bin"),
            LEGACY_TRASH_CLI_DIR,
        ):
            if extra not in search_dirs:
                search_dirs.append(extra)

        candidates: list[str] = []
        for name in TRASH_CLI_CANDIDATES:
            for directory in search_dirs:
                candidate = os.path.join(directory, name)
                if candidate not in candidates:
                    candidates.append(candidate)
        return candidates

    async def _probe(self, candidate: str) -> bool:
        """Run `<candidate> --help`; exit 0 or 1 proves the binary runs."""
        try:
            proc = await asyncio.create_subprocess_exec(
                candidate,
                "--help",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug("trash-cli probe failed", candidate=candidate, error=format_trash_error(e))
            return False
        return await proc.wait() in (0, 1)

    async def find_trash_cli(self) -> str | None:
        """Locate a usable trash utility, probing only on the first call."""
        if self._trash_cli_probed:
            return self._trash_cli

        for candidate in self._candidate_commands():
            if not os.access(candidate, os.X_OK):
                continue
            if await self._probe(candidate):
                self._trash_cli = candidate
                break

        self._trash_cli_probed = True
        logger.debug("trash-cli lookup finished", command=self._trash_cli)
        return self._trash_cli

    def trash_directory(self) -> Path | None:
        """Return the per-user trash directory, or None when none exists."""
        if not self._settings.home:
            return None
        home = Path(self._settings.home)
        for candidate in (home / ".Trash", home / ".local" / "share" / "Trash" / "files"):
            if candidate.is_dir():
                return candidate
        return None

    async def _run_trash_cli(self, command: str, absolute_paths: Sequence[str]) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *absolute_paths,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            logger.debug("trash-cli invocation failed", command=command, error=format_trash_error(e))
            return False

        if proc.returncode == 0:
            return True
        stderr_text = stderr.decode(errors="replace").strip()
        if stderr_text:
            logger.debug("trash-cli error", command=command, stderr=stderr_text)
        return False

    async def move_to_trash(
        self,
        paths: Sequence[str],
        base_dir: str | Path,
        *,
        allow_missing: bool = False,
    ) -> TrashMoveResult:
        """Move `paths` to the trash instead of deleting them in place.

        Args:
            paths: Raw paths as given by the caller; relative ones resolve
                against `base_dir`.
            base_dir: Directory relative paths are resolved against.
            allow_missing: If True, absent paths are silently skipped.

        Returns:
            Missing inputs (when not allowed) and per-path relocation errors.
            Partial failure never aborts the rest of the batch.
        """
        missing: list[str] = []
        existing: list[tuple[str, str]] = []

        for raw_path in paths:
            absolute = resolve_path(base_dir, raw_path)
            if not os.path.lexists(absolute):
                if not allow_missing:
                    missing.append(raw_path)
                continue
            existing.append((raw_path, absolute))

        if not existing:
            return TrashMoveResult(missing=tuple(missing))

        trash_cli = await self.find_trash_cli()
        if trash_cli and await self._run_trash_cli(trash_cli, [absolute for _, absolute in existing]):
            return TrashMoveResult(missing=tuple(missing))

        trash_dir = self.trash_directory()
        if trash_dir is None:
            return TrashMoveResult(
                missing=tuple(missing),
                errors=("Unable to locate a Trash directory (HOME/.Trash or HOME/.local/share/Trash/files).",),
            )

        errors: list[str] = []
        for raw_path, absolute in existing:
            try:
                relocate(absolute, build_trash_target(trash_dir, absolute))
            except OSError as e:
                errors.append(f"Failed to move {raw_path} to Trash: {format_trash_error(e)}")

        logger.debug(
            "Relocated paths to trash",
            trash_dir=str(trash_dir),
            moved=len(existing) - len(errors),
            failed=len(errors),
        )
        return TrashMoveResult(missing=tuple(missing), errors=tuple(errors))
