# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Default git subcommand taxonomy.

- commit helper: add, commit
- destructive: history rewrites and working-tree discards (reset --hard,
  checkout -- <path>, restore, clean -f, force pushes, branch -D,
  stash drop/clear, filter-branch, update-ref -d, reflog expire/delete)
- guarded: operations that move HEAD or publish work (rebase, merge,
  cherry-pick, revert, am, switch, checkout <ref>, push, worktree remove,
  tag -d)
"""

from collections.abc import Callable, Sequence

from runwarden.policy.analysis import GitExecutionContext
from runwarden.policy.protocols import GitPolicy, GitPolicyEvaluation


COMMIT_HELPER_SUBCOMMANDS: frozenset[str] = frozenset({"add", "commit"})
ALWAYS_GUARDED_SUBCOMMANDS: frozenset[str] = frozenset({
    "rebase",
    "merge",
    "cherry-pick",
    "revert",
    "am",
    "switch",
})
ALWAYS_DESTRUCTIVE_SUBCOMMANDS: frozenset[str] = frozenset({"filter-branch", "filter-repo"})

_ALLOW = GitPolicyEvaluation()


def _short_flags(args: Sequence[str]) -> set[str]:
    """Letters from every short-flag cluster before `--` (`-fdx` -> {f, d, x})."""
    letters: set[str] = set()
    for arg in args:
        if arg == "--":
            break
        if arg.startswith("-") and not arg.startswith("--") and len(arg) > 1:
            letters.update(arg[1:])
    return letters


def _long_flags(args: Sequence[str]) -> set[str]:
    """Long options before `--`, with any `=value` removed."""
    flags: set[str] = set()
    for arg in args:
        if arg == "--":
            break
        if arg.startswith("--"):
            flags.add(arg.split("=", 1)[0])
    return flags


def _destructive(reason: str) -> GitPolicyEvaluation:
    return GitPolicyEvaluation(is_destructive=True, reason=reason)


def _guarded(reason: str) -> GitPolicyEvaluation:
    return GitPolicyEvaluation(requires_explicit_consent=True, reason=reason)


def _evaluate_reset(args: Sequence[str]) -> GitPolicyEvaluation:
    if _long_flags(args) & {"--hard", "--merge", "--keep"}:
        return _destructive("git reset --hard discards uncommitted work")
    return _ALLOW


def _evaluate_checkout(args: Sequence[str]) -> GitPolicyEvaluation:
    if not args:
        return _ALLOW
    if "--" in args or "." in args or "f" in _short_flags(args) or "--force" in _long_flags(args):
        return _destructive("git checkout can discard working tree changes")
    return _guarded("git checkout moves HEAD")


def _evaluate_restore(args: Sequence[str]) -> GitPolicyEvaluation:
    long_flags = _long_flags(args)
    short_flags = _short_flags(args)
    staged = "--staged" in long_flags or "S" in short_flags
    worktree = "--worktree" in long_flags or "W" in short_flags
    if staged and not worktree:
        return _ALLOW
    return _destructive("git restore discards working tree changes")


def _evaluate_clean(args: Sequence[str]) -> GitPolicyEvaluation:
    if "f" in _short_flags(args) or "--force" in _long_flags(args):
        return _destructive("git clean -f deletes untracked files")
    return _ALLOW


def _evaluate_push(args: Sequence[str]) -> GitPolicyEvaluation:
    long_flags = _long_flags(args)
    short_flags = _short_flags(args)
    forced_refspec = any(arg.startswith(("+", ":")) for arg in args if not arg.startswith("-"))
    if (
        long_flags & {"--force", "--force-with-lease", "--mirror", "--delete", "--prune"}
        or short_flags & {"f", "d"}
        or forced_refspec
    ):
        return _destructive("git push can rewrite or delete remote history")
    return _guarded("git push publishes commits")


def _evaluate_branch(args: Sequence[str]) -> GitPolicyEvaluation:
    long_flags = _long_flags(args)
    short_flags = _short_flags(args)
    deleting = "d" in short_flags or "--delete" in long_flags
    forced = "f" in short_flags or "--force" in long_flags
    if "D" in short_flags or (deleting and forced):
        return _destructive("git branch -D force-deletes unmerged branches")
    return _ALLOW


def _evaluate_stash(args: Sequence[str]) -> GitPolicyEvaluation:
    if args and args[0] in ("drop", "clear"):
        return _destructive(f"git stash {args[0]} destroys stash entries")
    return _ALLOW


def _evaluate_update_ref(args: Sequence[str]) -> GitPolicyEvaluation:
    if "d" in _short_flags(args):
        return _destructive("git update-ref -d deletes a ref")
    return _ALLOW


def _evaluate_reflog(args: Sequence[str]) -> GitPolicyEvaluation:
    if args and args[0] in ("expire", "delete"):
        return _destructive("git reflog expire/delete drops recovery points")
    return _ALLOW


def _evaluate_worktree(args: Sequence[str]) -> GitPolicyEvaluation:
    if args and args[0] == "remove":
        return _guarded("git worktree remove deletes a worktree")
    return _ALLOW


def _evaluate_tag(args: Sequence[str]) -> GitPolicyEvaluation:
    if "d" in _short_flags(args) or "--delete" in _long_flags(args):
        return _guarded("git tag -d deletes a tag")
    return _ALLOW


_EVALUATORS: dict[str, Callable[[Sequence[str]], GitPolicyEvaluation]] = {
    "reset": _evaluate_reset,
    "checkout": _evaluate_checkout,
    "restore": _evaluate_restore,
    "clean": _evaluate_clean,
    "push": _evaluate_push,
    "branch": _evaluate_branch,
    "stash": _evaluate_stash,
    "update-ref": _evaluate_update_ref,
    "reflog": _evaluate_reflog,
    "worktree": _evaluate_worktree,
    "tag": _evaluate_tag,
}


class DefaultGitPolicy(GitPolicy):
    """Built-in policy used when no other GitPolicy is supplied."""

    def evaluate(self, context: GitExecutionContext) -> GitPolicyEvaluation:
        """Classify the git subcommand in `context`; non-git commands are allowed."""
        name = context.subcommand
        if name is None:
            return _ALLOW
        if name in COMMIT_HELPER_SUBCOMMANDS:
            return GitPolicyEvaluation(
                requires_commit_helper=True,
                reason=f"git {name} must go through the commit helper",
            )
        if name in ALWAYS_DESTRUCTIVE_SUBCOMMANDS:
            return _destructive(f"git {name} rewrites history")
        if name in ALWAYS_GUARDED_SUBCOMMANDS:
            return _guarded(f"git {name} rewrites or moves HEAD")
        evaluator = _EVALUATORS.get(name)
        if evaluator is None:
            return _ALLOW
        return evaluator(context.subcommand_args)
