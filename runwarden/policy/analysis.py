# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Locate git invocations and their subcommand within a raw command."""

import os
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from runwarden.classifier import binary_name, strip_wrappers_and_assignments


GIT_BINARIES: frozenset[str] = frozenset({"git", "git.exe"})

# Global options that consume the following token as their value
GIT_OPTIONS_WITH_VALUE: frozenset[str] = frozenset({
    "-C",
    "-c",
    "--git-dir",
    "--work-tree",
    "--namespace",
    "--super-prefix",
})


class GitInvocation(BaseModel):
    """A git call found inside a command.

    Attributes:
        index: Position of the git binary token in the raw command.
        argv: Tokens from the git binary to the end of the command.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    argv: tuple[str, ...]


class GitCommandInfo(BaseModel):
    """The git subcommand and its position within `GitInvocation.argv`."""

    model_config = ConfigDict(frozen=True)

    name: str
    index: int

    def arguments(self, invocation: GitInvocation) -> tuple[str, ...]:
        """Tokens after the subcommand."""
        return invocation.argv[self.index + 1 :]


class GitExecutionContext(BaseModel):
    """Everything the policy gate needs to know about a (possibly git) command.

    Attributes:
        command_args: The raw command as received.
        work_dir: Directory git will operate in (workspace adjusted by -C).
        invocation: The git call, or None when the command is not git.
        command: The git subcommand, or None when absent.
    """

    model_config = ConfigDict(frozen=True)

    command_args: tuple[str, ...]
    work_dir: str
    invocation: GitInvocation | None = None
    command: GitCommandInfo | None = None

    @property
    def subcommand(self) -> str | None:
        return self.command.name if self.command else None

    @property
    def subcommand_args(self) -> tuple[str, ...]:
        if self.command is None or self.invocation is None:
            return ()
        return self.command.arguments(self.invocation)


def analyze_git_execution(command_args: Sequence[str], workspace_dir: str) -> GitExecutionContext:
    """Find the git binary and subcommand, skipping wrappers and global options.

    Args:
        command_args: Raw command tokens.
        workspace_dir: Directory the runner was started in.

    Returns:
        Context describing the git call; `invocation` is None for non-git commands.
    """
    tokens = strip_wrappers_and_assignments(command_args)
    if not tokens or binary_name(tokens[0]) not in GIT_BINARIES:
        return GitExecutionContext(command_args=tuple(command_args), work_dir=workspace_dir)

    offset = len(command_args) - len(tokens)
    invocation = GitInvocation(index=offset, argv=tuple(tokens))
    work_dir = workspace_dir
    command: GitCommandInfo | None = None

    index = 1
    while index < len(tokens):
        token = tokens[index]
        if token == "--":
            index += 1
            continue
        if token in GIT_OPTIONS_WITH_VALUE:
            value = tokens[index + 1] if index + 1 < len(tokens) else None
            if token == "-C" and value:
                work_dir = os.path.normpath(os.path.join(work_dir, value))
            index += 2
            continue
        if token.startswith("-"):
            index += 1
            continue
        command = GitCommandInfo(name=token, index=index)
        break

    return GitExecutionContext(
        command_args=tuple(command_args),
        work_dir=work_dir,
        invocation=invocation,
        command=command,
    )
