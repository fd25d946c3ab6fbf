# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Process and filesystem tools used by the runner.

Exports:
    ProcessSupervisor: Spawns the real command under a deadline.
    TrashMover: Relocates paths to the trash instead of unlinking them.
"""

from runwarden.tools.supervisor import ProcessSupervisor as ProcessSupervisor
from runwarden.tools.trash import TrashMover as TrashMover
