# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Interception planners for dangerous command patterns.

Exports:
    InterceptionPipeline: Runs the planners in priority order.
    InterceptionResult: Pipeline outcome plus git analysis.
"""

from runwarden.interception.pipeline import InterceptionPipeline as InterceptionPipeline
from runwarden.interception.pipeline import InterceptionResult as InterceptionResult
