# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""runwarden: a guarded command-execution supervisor."""

from runwarden.classifier import classify
from runwarden.main import app, run_guarded


__version__ = "0.1.0"

__all__ = [
    "app",
    "classify",
    "run_guarded",
    "__version__",
]
