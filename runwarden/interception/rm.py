# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Route plain `rm` through the trash instead of unlinking."""

from collections.abc import Sequence

from runwarden.classifier import is_env_assignment
from runwarden.core.constants import WRAPPER_COMMANDS
from runwarden.core.exceptions import RunwardenError
from runwarden.core.types import Declined, Fatal, Handled, Outcome, RmPlan
from runwarden.tools.trash import TrashMover, format_trash_error


_INTERACTIVE_SHORT_FLAGS = frozenset("iI")
_PASSTHROUGH_LONG_FLAGS = frozenset({"--help", "--version"})


def is_rm_binary(token: str) -> bool:
    return token in ("rm", "rm.exe") or token.endswith(("/rm", "\\rm.exe"))


def extract_rm_invocation(command_args: Sequence[str]) -> list[str] | None:
    """Return the tokens from the `rm` binary onward, or None if this is not rm."""
    index = 0
    while index < len(command_args):
        token = command_args[index]
        if is_env_assignment(token) or token in WRAPPER_COMMANDS:
            index += 1
            continue
        break

    if index >= len(command_args) or not is_rm_binary(command_args[index]):
        return None
    return list(command_args[index:])


def parse_rm_arguments(argv: Sequence[str]) -> RmPlan | None:
    """Build a plan from `rm` arguments (argv[0] is the binary).

    Declines (returns None) for interactive, --help and --version calls so
    they reach the real binary, and when there are no targets.
    """
    targets: list[str] = []
    force = False
    treat_as_target = False

    for token in argv[1:]:
        if not treat_as_target and token == "--":
            treat_as_target = True
            continue
        if not treat_as_target and token.startswith("-") and len(token) > 1:
            if token.startswith("--"):
                name = token.split("=", 1)[0]
                if name in _PASSTHROUGH_LONG_FLAGS or name == "--interactive":
                    return None
                if name == "--force":
                    force = True
                continue
            cluster = set(token[1:])
            if cluster & _INTERACTIVE_SHORT_FLAGS:
                return None
            if "f" in cluster:
                force = True
            continue
        targets.append(token)

    if not targets:
        return None
    return RmPlan(targets=tuple(targets), force=force)


async def handle_rm(command_args: Sequence[str], workspace_dir: str, mover: TrashMover) -> Outcome:
    """Move `rm` targets to the trash; missing targets fail unless -f was given."""
    argv = extract_rm_invocation(command_args)
    if argv is None:
        return Declined()
    plan = parse_rm_arguments(argv)
    if plan is None:
        return Declined()

    try:
        result = await mover.move_to_trash(plan.targets, workspace_dir, allow_missing=plan.force)
    except (OSError, RunwardenError) as e:
        return Fatal(messages=(format_trash_error(e),))

    messages = [f"rm: {path}: No such file or directory" for path in result.missing]
    messages.extend(result.errors)
    if messages:
        return Fatal(messages=tuple(messages))
    return Handled()
