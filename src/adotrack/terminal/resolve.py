# SPDX-License-Identifier: MIT

from typing import Optional

import typer

from adotrack.model.entity_id import EntityId
from adotrack.model.organization import Organization
from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.repository.organization import ORGANIZATION_REPO
from adotrack.terminal.parse import parse_id_list


def resolve_organization(synthetic_id: Optional[int]) -> Organization:
    """
    The organization behind a synthetic id from `org list`, or the default
    organization when no id is given. Exits with an error when neither resolves.
    """
    if synthetic_id is None:
        organization = ORGANIZATION_REPO.get_default_organization()
        if organization is None:
            typer.echo(
                "No organization configured. Add one with: adotrack org add", err=True
            )
            raise typer.Exit(1)
        return organization

    try:
        real_id = ID_MAP_REPO.get_real_id("organizations", synthetic_id)
    except KeyError:
        typer.echo(
            f"Unknown organization id {synthetic_id}. Run adotrack org list first.",
            err=True,
        )
        raise typer.Exit(1)

    organization = ORGANIZATION_REPO.find_organization(real_id)
    if organization is None:
        typer.echo(f"Organization {synthetic_id} no longer exists.", err=True)
        raise typer.Exit(1)
    return organization


def default_organization_name() -> Optional[str]:
    organization = ORGANIZATION_REPO.get_default_organization()
    return organization["name"] if organization is not None else None


def resolve_time_entry_ids(id_param: str) -> list[EntityId]:
    """Map synthetic ids like "1,3-5" from `entry list` to entry ids."""
    real_ids: list[EntityId] = []
    for synthetic_id in parse_id_list(id_param):
        try:
            real_ids.append(ID_MAP_REPO.get_real_id("time_entries", synthetic_id))
        except KeyError:
            typer.echo(
                f"Unknown time entry id {synthetic_id}. Run adotrack entry list first.",
                err=True,
            )
            raise typer.Exit(1)
    return real_ids
