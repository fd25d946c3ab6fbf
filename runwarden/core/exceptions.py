# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Custom exceptions for runwarden."""


class RunwardenError(Exception):
    """Base exception for all runwarden errors."""

    pass


class UsageError(RunwardenError):
    """Raised when the runner is invoked with malformed or unsupported arguments."""

    pass


class TrashError(RunwardenError):
    """Raised when a trash relocation or staging replay cannot complete."""

    pass


class LaunchError(RunwardenError):
    """Raised when the child process cannot be spawned."""

    pass
