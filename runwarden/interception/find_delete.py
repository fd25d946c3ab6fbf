# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Translate `find ... -delete` into a reviewed batch of trash moves.

The predicate is re-run with `-delete` replaced by `-print0` and every
NUL-separated match is canonicalized against the workspace. Matches nested
under another match are dropped, since trashing the parent moves them too.
"""

import asyncio
import os
from collections.abc import Collection, Sequence

from runwarden.classifier import binary_name
from runwarden.core.constants import UNSAFE_FIND_ACTIONS
from runwarden.core.exceptions import RunwardenError
from runwarden.core.types import Declined, Fatal, FindDeletePlan, Handled, Outcome
from runwarden.tools.trash import TrashMover, format_trash_error


UNSAFE_FIND_MESSAGE = (
    "Runner cannot safely translate find invocations that combine -delete with -exec/-ok. "
    "Run the command manually after reviewing the paths."
)
WORKSPACE_ROOT_MESSAGE = (
    "Refusing to trash the current workspace via find -delete. Narrow your find predicate."
)


def is_find_binary(token: str) -> bool:
    return binary_name(token) == "find"


def _has_ancestor_in(path: str, candidates: Collection[str]) -> bool:
    """Whether a parent directory of `path` is itself scheduled (trashing it covers `path`)."""
    parent = os.path.dirname(path)
    while parent and parent != path:
        if parent in candidates:
            return True
        path, parent = parent, os.path.dirname(parent)
    return False


async def build_find_delete_plan(
    find_args: Sequence[str], workspace_dir: str
) -> FindDeletePlan | Fatal | None:
    """Probe the find predicate and collect what `-delete` would remove.

    Args:
        find_args: Tokens from the find binary onward.
        workspace_dir: Directory the probe runs in and paths resolve against.

    Returns:
        None when `-delete` is absent, Fatal when the call cannot be safely
        simulated (or the probe itself fails), otherwise the plan.
    """
    if "-delete" not in find_args:
        return None
    if any(token in UNSAFE_FIND_ACTIONS for token in find_args):
        return Fatal(messages=(UNSAFE_FIND_MESSAGE,))

    probe_args = [token for token in find_args if token != "-delete"]
    probe_args.append("-print0")

    try:
        proc = await asyncio.create_subprocess_exec(
            *probe_args,
            cwd=workspace_dir,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
    except OSError as e:
        return Fatal(messages=(f"find: {format_trash_error(e)}",))

    if proc.returncode != 0:
        stderr_text = stderr.decode(errors="replace").strip()
        stdout_text = stdout.decode(errors="replace").replace("\0", "\n").strip()
        output = stderr_text or stdout_text
        return Fatal(
            exit_code=proc.returncode if proc.returncode and proc.returncode > 0 else 1,
            messages=(output,) if output else (),
        )

    workspace_canonical = os.path.normpath(workspace_dir)
    unique: dict[str, None] = {}
    for match in stdout.decode(errors="surrogateescape").split("\0"):
        if not match:
            continue
        absolute = match if os.path.isabs(match) else os.path.join(workspace_dir, match)
        canonical = os.path.normpath(absolute)
        if canonical == workspace_canonical:
            return Fatal(messages=(WORKSPACE_ROOT_MESSAGE,))
        unique.setdefault(canonical, None)

    return FindDeletePlan(paths=tuple(path for path in unique if not _has_ancestor_in(path, unique)))


def extract_find_invocation(command_args: Sequence[str]) -> list[str] | None:
    """Return the tokens from the first `find` binary onward, wherever it appears.

    Prefixes such as `nice -n 10` or `timeout 60` are not known wrappers, so the
    whole command is scanned rather than only its first real token.
    """
    for index, token in enumerate(command_args):
        if is_find_binary(token):
            return list(command_args[index:])
    return None


async def handle_find(command_args: Sequence[str], workspace_dir: str, mover: TrashMover) -> Outcome:
    """Relocate everything `find ... -delete` would have removed."""
    find_args = extract_find_invocation(command_args)
    if find_args is None:
        return Declined()

    plan = await build_find_delete_plan(find_args, workspace_dir)
    if plan is None:
        return Declined()
    if isinstance(plan, Fatal):
        return plan
    if not plan.paths:
        return Handled()

    try:
        result = await mover.move_to_trash(plan.paths, workspace_dir, allow_missing=False)
    except (OSError, RunwardenError) as e:
        return Fatal(messages=(format_trash_error(e),))

    if result.missing:
        return Fatal(messages=tuple(f"find: {path}: No such file or directory" for path in result.missing))
    if result.errors:
        return Fatal(messages=result.errors)
    return Handled()
