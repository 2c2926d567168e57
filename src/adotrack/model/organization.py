# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum

from adotrack.model.entity_id import EntityId


class Organization(TypedDict):
    id: Optional[EntityId]
    name: str
    url: str  # e.g., https://dev.azure.com/myorg
    project: str
    pat_env_var: str  # Environment variable holding the personal access token
    is_default: bool
    created: pendulum.DateTime
    updated: pendulum.DateTime
