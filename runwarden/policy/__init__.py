# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Git policy gate consulted for commands no planner intercepted.

Exports:
    GitPolicy: Protocol every policy oracle implements.
    DefaultGitPolicy: Built-in subcommand taxonomy.
    analyze_git_execution: Locate the git subcommand in a raw command.
    check_git_policy: Evaluate and enforce a policy verdict.
"""

from runwarden.policy.analysis import GitExecutionContext as GitExecutionContext
from runwarden.policy.analysis import analyze_git_execution as analyze_git_execution
from runwarden.policy.default import DefaultGitPolicy as DefaultGitPolicy
from runwarden.policy.gate import check_git_policy as check_git_policy
from runwarden.policy.gate import enforce_git_policies as enforce_git_policies
from runwarden.policy.protocols import GitPolicy as GitPolicy
from runwarden.policy.protocols import GitPolicyEvaluation as GitPolicyEvaluation
