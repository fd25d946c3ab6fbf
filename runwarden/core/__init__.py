# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from runwarden.core.constants import TimeoutTier as TimeoutTier
from runwarden.core.exceptions import (
    LaunchError as LaunchError,
    RunwardenError as RunwardenError,
    TrashError as TrashError,
    UsageError as UsageError,
)
