# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Tests for the built-in git subcommand taxonomy."""

import pytest

from runwarden.policy import DefaultGitPolicy, GitPolicy
from runwarden.policy.analysis import analyze_git_execution
from runwarden.policy.protocols import GitPolicyEvaluation


def _evaluate(*args: str) -> GitPolicyEvaluation:
    return DefaultGitPolicy().evaluate(analyze_git_execution(["git", *args], "/work"))


def test_default_policy_satisfies_protocol() -> None:
    assert isinstance(DefaultGitPolicy(), GitPolicy)


def test_non_git_command_allowed() -> None:
    evaluation = DefaultGitPolicy().evaluate(analyze_git_execution(["ls"], "/work"))
    assert evaluation == GitPolicyEvaluation()


@pytest.mark.parametrize("subcommand", ["add", "commit"])
def test_commit_helper_required(subcommand: str) -> None:
    evaluation = _evaluate(subcommand, "-m", "msg")
    assert evaluation.requires_commit_helper is True
    assert evaluation.is_destructive is False


@pytest.mark.parametrize(
    "args",
    [
        pytest.param(("reset", "--hard"), id="reset_hard"),
        pytest.param(("reset", "--keep", "HEAD~1"), id="reset_keep"),
        pytest.param(("checkout", "--", "file.txt"), id="checkout_paths"),
        pytest.param(("checkout", "."), id="checkout_dot"),
        pytest.param(("checkout", "-f", "main"), id="checkout_force"),
        pytest.param(("restore", "file.txt"), id="restore_worktree"),
        pytest.param(("restore", "--staged", "--worktree", "f"), id="restore_both"),
        pytest.param(("clean", "-fdx"), id="clean_force"),
        pytest.param(("push", "--force"), id="push_force"),
        pytest.param(("push", "--force-with-lease=main"), id="push_lease"),
        pytest.param(("push", "origin", "+main"), id="push_plus_refspec"),
        pytest.param(("push", "origin", ":old"), id="push_delete_refspec"),
        pytest.param(("push", "-d", "origin", "old"), id="push_delete_short"),
        pytest.param(("branch", "-D", "feature"), id="branch_force_delete"),
        pytest.param(("branch", "--delete", "--force", "feature"), id="branch_delete_force_long"),
        pytest.param(("stash", "drop"), id="stash_drop"),
        pytest.param(("stash", "clear"), id="stash_clear"),
        pytest.param(("filter-branch", "--all"), id="filter_branch"),
        pytest.param(("update-ref", "-d", "refs/heads/x"), id="update_ref_delete"),
        pytest.param(("reflog", "expire", "--all"), id="reflog_expire"),
    ],
)
def test_destructive(args: tuple[str, ...]) -> None:
    evaluation = _evaluate(*args)
    assert evaluation.is_destructive is True
    assert evaluation.reason


@pytest.mark.parametrize(
    "args",
    [
        pytest.param(("rebase", "main"), id="rebase"),
        pytest.param(("merge", "feature"), id="merge"),
        pytest.param(("cherry-pick", "abc123"), id="cherry_pick"),
        pytest.param(("switch", "main"), id="switch"),
        pytest.param(("checkout", "main"), id="checkout_ref"),
        pytest.param(("push", "origin", "main"), id="push"),
        pytest.param(("worktree", "remove", "../wt"), id="worktree_remove"),
        pytest.param(("tag", "-d", "v1"), id="tag_delete"),
    ],
)
def test_guarded(args: tuple[str, ...]) -> None:
    evaluation = _evaluate(*args)
    assert evaluation.requires_explicit_consent is True
    assert evaluation.is_destructive is False


@pytest.mark.parametrize(
    "args",
    [
        pytest.param(("status",), id="status"),
        pytest.param(("log", "--oneline"), id="log"),
        pytest.param(("diff",), id="diff"),
        pytest.param(("checkout",), id="checkout_bare"),
        pytest.param(("reset", "HEAD", "file.txt"), id="reset_soft"),
        pytest.param(("restore", "--staged", "file.txt"), id="restore_staged"),
        pytest.param(("clean", "-n"), id="clean_dry_run"),
        pytest.param(("branch", "-d", "merged"), id="branch_safe_delete"),
        pytest.param(("stash", "list"), id="stash_list"),
        pytest.param(("worktree", "list"), id="worktree_list"),
        pytest.param(("tag", "v1"), id="tag_create"),
        pytest.param(("rm", "file.txt"), id="rm"),
    ],
)
def test_allowed(args: tuple[str, ...]) -> None:
    assert _evaluate(*args) == GitPolicyEvaluation()
