# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Enforce git policy verdicts before the supervisor runs a command."""

from loguru import logger

from runwarden.config import RunnerSettings
from runwarden.core.types import Declined, Fatal, Outcome
from runwarden.policy.analysis import GitExecutionContext
from runwarden.policy.protocols import GitPolicy, GitPolicyEvaluation


CONSENT_ENV_VAR = "RUNNER_THE_USER_GAVE_ME_CONSENT"


def enforce_git_policies(
    context: GitExecutionContext,
    evaluation: GitPolicyEvaluation,
    settings: RunnerSettings,
) -> Outcome:
    """Turn a policy verdict into an outcome.

    Checks, in order: rebase without consent, direct add/commit, then
    destructive or guarded operations without consent.

    Args:
        context: Analysis of the command being gated.
        evaluation: Verdict returned by the git policy.
        settings: Runner settings (consent override, commit helper).

    Returns:
        Declined() when the command may proceed, Fatal(1, ...) otherwise.
    """
    subcommand = context.subcommand or ""

    if subcommand == "rebase" and not settings.consent:
        return Fatal(messages=(
            'git rebase requires the user to explicitly type "rebase" in chat. '
            f"Once they do, rerun with {CONSENT_ENV_VAR}=1 in the same command "
            f"(e.g. {CONSENT_ENV_VAR}=1 runwarden git rebase --continue).",
        ))

    if evaluation.requires_commit_helper:
        return Fatal(messages=(
            "Direct git add/commit is disabled. "
            f'Use {settings.commit_helper} "<type>(<scope>): describe change" <files...> instead.',
        ))

    if evaluation.requires_explicit_consent or evaluation.is_destructive:
        if settings.consent:
            logger.debug(
                "Proceeding with gated git command because consent was given",
                kind="destructive" if evaluation.is_destructive else "guarded",
                subcommand=subcommand,
            )
            return Declined()
        if evaluation.is_destructive:
            message = (
                f"git {subcommand} can overwrite or discard work. Confirm with the user first, "
                f"then re-run with {CONSENT_ENV_VAR}=1 if they approve."
            )
        else:
            message = (
                f"Using git {subcommand} requires consent. Set {CONSENT_ENV_VAR}=1 after verifying "
                "with the user, or ask them explicitly before proceeding."
            )
        if evaluation.reason:
            message = f"{message} ({evaluation.reason})"
        return Fatal(messages=(message,))

    return Declined()


def check_git_policy(
    context: GitExecutionContext,
    policy: GitPolicy,
    settings: RunnerSettings,
) -> Outcome:
    """Evaluate `context` with `policy` and enforce the verdict."""
    return enforce_git_policies(context, policy.evaluate(context), settings)
