# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer

from adotrack.client.azure_devops import ApiError
from adotrack.runtime import get_runtime
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.resolve import resolve_organization
from adotrack.view.views.work_item import single_work_item_view, work_items_view

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)

OrgOption = Annotated[
    Optional[int],
    typer.Option("--org", "-o", help="Organization id from org list"),
]


@app.command("search, s", no_args_is_help=True)
def search(
    text: Annotated[str, typer.Argument(help="Title text, or an id like 123 or #123")],
    org: OrgOption = None,
) -> None:
    """Search trackable work items by title or id."""
    organization = resolve_organization(org)
    runtime = get_runtime()

    try:
        work_items = runtime.directory.search(organization, text)
    except ApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    work_items_view(organization["name"], f"search: {text}", work_items)


@app.command("mine, m")
def mine(org: OrgOption = None) -> None:
    """List open work items assigned to you."""
    organization = resolve_organization(org)
    runtime = get_runtime()

    try:
        work_items = runtime.directory.list_assigned_to_current_user(organization)
    except ApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    work_items_view(organization["name"], "assigned to me", work_items)


@app.command("show, sh", no_args_is_help=True)
def show(work_item_id: int, org: OrgOption = None) -> None:
    """Show a work item, including closed ones."""
    organization = resolve_organization(org)
    runtime = get_runtime()

    try:
        work_item = runtime.client.get_work_item(organization, work_item_id)
    except ApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    if work_item is None:
        typer.echo(f"Work item #{work_item_id} not found.", err=True)
        raise typer.Exit(1)

    single_work_item_view(organization["name"], work_item)
