# SPDX-License-Identifier: MIT

from adotrack import configuration
from adotrack.model.organization import Organization
from adotrack.time import now_utc


def get_organization_template() -> Organization:
    now = now_utc()
    return {
        "id": None,
        "name": "",
        "url": "",
        "project": "",
        "pat_env_var": configuration.DEFAULT_PAT_ENV_VAR,
        "is_default": False,
        "created": now,
        "updated": now,
    }
