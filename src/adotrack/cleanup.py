# SPDX-License-Identifier: MIT

import atexit

from adotrack.repository.configuration import CONFIGURATION_REPO
from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.repository.organization import ORGANIZATION_REPO
from adotrack.runtime import close_runtime


def flush_and_close() -> None:
    # Time entries, the timer session and the sync log write through on every
    # change; only these settings-style stores are deferred to exit.
    CONFIGURATION_REPO.flush()
    ORGANIZATION_REPO.flush()
    ID_MAP_REPO.flush()
    close_runtime()


def register_cleanup() -> None:
    atexit.register(flush_and_close)
