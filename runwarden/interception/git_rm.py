# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Make `git rm` recoverable: trash the files, then replay `git rm --cached`."""

import asyncio
from collections.abc import Sequence

from loguru import logger

from runwarden.core.exceptions import RunwardenError, TrashError
from runwarden.core.types import Declined, Fatal, GitRmPlan, Handled, Outcome
from runwarden.policy.analysis import GitExecutionContext
from runwarden.tools.trash import TrashMover, format_trash_error


# git does nothing to the work tree for these; let it run untouched
_DECLINE_FLAGS = frozenset({"--cached", "--dry-run", "-n"})
_ALLOW_MISSING_FLAGS = frozenset({"--ignore-unmatch", "--force", "-f"})
_OPTIONS_EXPECTING_VALUE = frozenset({"--pathspec-from-file"})


def parse_git_rm_arguments(argv: Sequence[str], rm_index: int) -> GitRmPlan | None:
    """Build a plan from the tokens following the `rm` subcommand.

    Args:
        argv: Tokens from the git binary onward.
        rm_index: Position of the `rm` subcommand within `argv`.

    Returns:
        None for --cached/--dry-run/-n calls and calls without paths.
    """
    staging_options: list[str] = []
    paths: list[str] = []
    allow_missing = False
    treat_as_path = False

    index = rm_index + 1
    while index < len(argv):
        token = argv[index]
        index += 1
        if not treat_as_path and token == "--":
            treat_as_path = True
            continue
        if treat_as_path or not token.startswith("-") or len(token) == 1:
            if token:
                paths.append(token)
            continue

        if token in _DECLINE_FLAGS:
            return None
        if token in _ALLOW_MISSING_FLAGS:
            allow_missing = True
            staging_options.append(token)
            continue
        if token in _OPTIONS_EXPECTING_VALUE:
            if index < len(argv) and argv[index]:
                staging_options.extend((token, argv[index]))
                index += 1
            continue
        if token.startswith("--"):
            staging_options.append(token)
            continue

        # Split short clusters so a stray -n still vetoes (e.g. -rn)
        retained: list[str] = []
        for flag in token[1:]:
            if flag == "n":
                return None
            if flag == "f":
                allow_missing = True
                continue
            retained.append(flag)
        if retained:
            staging_options.append(f"-{''.join(retained)}")

    if not paths:
        return None
    return GitRmPlan(
        paths=tuple(paths),
        staging_options=tuple(staging_options),
        allow_missing=allow_missing,
    )


async def stage_git_rm(work_dir: str, plan: GitRmPlan) -> None:
    """Replay the removal against the index only.

    Raises:
        TrashError: If `git rm --cached` cannot be spawned or exits non-zero.
    """
    if not plan.paths:
        return
    args = ["git", "rm", "--cached", "--quiet", *plan.staging_options, "--", *plan.paths]
    logger.debug("Replaying git rm against the index", args=args, work_dir=work_dir)
    try:
        proc = await asyncio.create_subprocess_exec(*args, cwd=work_dir)
    except OSError as e:
        raise TrashError(f"git rm --cached could not be started: {format_trash_error(e)}") from e
    exit_code = await proc.wait()
    if exit_code != 0:
        raise TrashError(f"git rm --cached exited with status {exit_code}.")


async def handle_git_rm(git_context: GitExecutionContext, mover: TrashMover) -> Outcome:
    """Trash the paths of a `git rm` and stage the deletion."""
    if git_context.subcommand != "rm" or git_context.invocation is None or git_context.command is None:
        return Declined()

    plan = parse_git_rm_arguments(git_context.invocation.argv, git_context.command.index)
    if plan is None:
        return Declined()

    try:
        result = await mover.move_to_trash(
            plan.paths, git_context.work_dir, allow_missing=plan.allow_missing
        )
        if result.missing:
            return Fatal(messages=tuple(f"git rm: {path}: No such file or directory" for path in result.missing))
        if result.errors:
            return Fatal(messages=result.errors)
        await stage_git_rm(git_context.work_dir, plan)
    except (OSError, RunwardenError) as e:
        return Fatal(messages=(format_trash_error(e),))
    return Handled()
