# SPDX-License-Identifier: MIT

from typing import Annotated, Optional, cast

import typer

from adotrack import configuration
from adotrack.model.entity_id import EntityId
from adotrack.repository.organization import ORGANIZATION_REPO
from adotrack.runtime import get_runtime
from adotrack.template.organization import get_organization_template
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.resolve import default_organization_name, resolve_organization
from adotrack.terminal.validate import validate_url
from adotrack.view.views.organization import organizations_view

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)


@app.command("add, a", no_args_is_help=True)
def add(
    name: str,
    url: Annotated[
        str,
        typer.Option(
            "--url",
            "-u",
            help="e.g. https://dev.azure.com/myorg",
            callback=validate_url,
        ),
    ],
    project: Annotated[str, typer.Option("--project", "-p")],
    pat_env_var: Annotated[
        str,
        typer.Option(
            "--pat-env-var",
            help="Environment variable that holds the personal access token",
        ),
    ] = configuration.DEFAULT_PAT_ENV_VAR,
    default: Annotated[
        bool, typer.Option("--default", help="Make this the default organization")
    ] = False,
) -> None:
    """Add an Azure DevOps organization and project."""
    organization = get_organization_template()
    organization["name"] = name
    organization["url"] = url
    organization["project"] = project
    organization["pat_env_var"] = pat_env_var
    organization["is_default"] = default

    ORGANIZATION_REPO.save_new_organization(organization)
    organizations_view(default_organization_name(), ORGANIZATION_REPO.get_all_organizations())


@app.command("list, ls")
def list_organizations() -> None:
    """List configured organizations. * marks the default."""
    organizations_view(default_organization_name(), ORGANIZATION_REPO.get_all_organizations())


@app.command("remove, rm", no_args_is_help=True)
def remove(id: int) -> None:
    """Remove an organization. Its time entries are kept."""
    organization = resolve_organization(id)
    ORGANIZATION_REPO.remove_organization(cast(EntityId, organization["id"]))
    typer.echo(f"Removed {organization['name']}.")


@app.command("default, d", no_args_is_help=True)
def default(id: int) -> None:
    """Make an organization the default."""
    organization = resolve_organization(id)
    ORGANIZATION_REPO.set_default_organization(cast(EntityId, organization["id"]))
    organizations_view(default_organization_name(), ORGANIZATION_REPO.get_all_organizations())


@app.command("test, t")
def test(
    id: Annotated[
        Optional[int], typer.Argument(help="Organization id; the default if omitted")
    ] = None,
) -> None:
    """Check the URL and personal access token of an organization."""
    organization = resolve_organization(id)
    runtime = get_runtime()

    ok, message = runtime.client.test_connection(organization)
    if not ok:
        typer.echo(message, err=True)
        raise typer.Exit(1)
    typer.echo(f"{organization['name']}: {message}")
