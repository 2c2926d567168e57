# SPDX-License-Identifier: MIT

from typing import Optional, cast

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.entity_id import EntityId
from adotrack.model.organization import Organization
from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.view.views.header import header


def organizations_view(
    organization_name: Optional[str], organizations: list[Organization]
) -> None:
    header(organization_name, "organizations")

    organizations_table = Table(box=box.SIMPLE)
    organizations_table.add_column("id")
    organizations_table.add_column("default")
    organizations_table.add_column("name")
    organizations_table.add_column("url")
    organizations_table.add_column("project")
    organizations_table.add_column("pat env var")

    for organization in organizations:
        organizations_table.add_row(
            str(
                ID_MAP_REPO.associate_id(
                    "organizations", cast(EntityId, organization["id"])
                )
            ),
            "*" if organization["is_default"] else "",
            organization["name"],
            organization["url"],
            organization["project"],
            organization["pat_env_var"],
        )

    console = Console()
    console.print(organizations_table)
