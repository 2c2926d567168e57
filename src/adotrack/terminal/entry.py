# SPDX-License-Identifier: MIT

from concurrent.futures import ThreadPoolExecutor
from typing import Annotated, Optional

import typer

from adotrack.client.azure_devops import ApiError
from adotrack.model.entity_id import EntityId
from adotrack.runtime import get_runtime
from adotrack.service.time_entry import (
    TimeEntryValidationError,
    can_delete_time_entry,
    create_manual_time_entry,
)
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.parse import parse_datetime
from adotrack.terminal.resolve import (
    default_organization_name,
    resolve_organization,
    resolve_time_entry_ids,
)
from adotrack.view.views.sync_log import sync_logs_view, sync_result_view
from adotrack.view.views.time_entry import (
    single_time_entry_view,
    time_entries_view,
)

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)


@app.command("list, ls")
def list_entries(
    unsynced: Annotated[
        bool,
        typer.Option("--unsynced", "-u", help="Only entries not yet synced"),
    ] = False,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Maximum number of entries to show"),
    ] = 50,
) -> None:
    """List recorded time entries, newest first."""
    runtime = get_runtime()

    if unsynced:
        time_entries = sorted(
            runtime.ledger.list_unsynced(),
            key=lambda time_entry: time_entry["start"],
            reverse=True,
        )
        report_name = "unsynced entries"
    else:
        time_entries = runtime.ledger.get_all_time_entries()
        report_name = "entries"

    time_entries_view(default_organization_name(), report_name, time_entries[:limit])


@app.command("add, a", no_args_is_help=True)
def add(
    work_item_id: Annotated[int, typer.Argument(help="Azure DevOps work item id")],
    start: Annotated[
        str,
        typer.Option(
            "--start",
            "-s",
            help="YYYY-MM-DD HH:mm, HH:mm, today or yesterday",
        ),
    ],
    end: Annotated[
        Optional[str],
        typer.Option("--end", "-e", help="End time, same formats as --start"),
    ] = None,
    minutes: Annotated[
        Optional[int],
        typer.Option("--minutes", "-m", help="Duration in minutes instead of --end"),
    ] = None,
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d"),
    ] = None,
    org: Annotated[
        Optional[int],
        typer.Option("--org", "-o", help="Organization id from org list"),
    ] = None,
) -> None:
    """Record time that was not captured by the timer."""
    organization = resolve_organization(org)
    runtime = get_runtime()

    try:
        work_item = runtime.directory.get_by_id(organization, work_item_id)
    except ApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    if work_item is None:
        typer.echo(
            f"Work item #{work_item_id} was not found or cannot be tracked.", err=True
        )
        raise typer.Exit(1)

    parsed_start = parse_datetime(start)
    assert parsed_start is not None
    try:
        time_entry = create_manual_time_entry(
            work_item,
            organization["name"],
            parsed_start,
            end=parse_datetime(end),
            minutes=minutes,
            description=description,
        )
    except TimeEntryValidationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    id = runtime.ledger.append(time_entry)
    new_time_entry = runtime.ledger.get_time_entry(id)
    assert new_time_entry is not None

    single_time_entry_view(organization["name"], new_time_entry)


@app.command("delete, d", no_args_is_help=True)
def delete(
    id: Annotated[str, typer.Argument(help="Entry ids from entry list, e.g. 1,3-5")],
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Also delete entries already synced to Azure DevOps",
        ),
    ] = False,
) -> None:
    """Delete time entries. Synced entries are only removed locally."""
    runtime = get_runtime()
    real_ids = resolve_time_entry_ids(id)

    time_entries = runtime.ledger.get_time_entries(real_ids)
    blocked = [
        time_entry
        for time_entry in time_entries
        if not can_delete_time_entry(time_entry, force)
    ]
    if blocked:
        typer.echo(
            f"{len(blocked)} of these entries are already synced to Azure DevOps. "
            "Deleting them does not reduce CompletedWork there; pass --force to "
            "delete them anyway.",
            err=True,
        )
        raise typer.Exit(1)

    removed = 0
    for time_entry in time_entries:
        if runtime.ledger.remove(time_entry["id"]):  # type: ignore[arg-type]
            removed += 1
    typer.echo(f"Deleted {removed} time entries.")


@app.command("sync, sy")
def sync(
    id: Annotated[
        Optional[str],
        typer.Argument(help="Entry ids from entry list; all unsynced entries if omitted"),
    ] = None,
) -> None:
    """Add unsynced minutes to CompletedWork in Azure DevOps."""
    runtime = get_runtime()
    entry_ids: Optional[list[EntityId]] = (
        resolve_time_entry_ids(id) if id is not None else None
    )

    # Sync runs off the main thread so Ctrl+C can let the current work item finish
    runtime.reconciler.reset_cancellation()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="adotrack-sync") as executor:
        future = executor.submit(runtime.reconciler.sync, entry_ids)
        try:
            result = future.result()
        except KeyboardInterrupt:
            typer.echo("Cancelling after the current work item...", err=True)
            runtime.reconciler.cancel()
            result = future.result()

    sync_result_view(default_organization_name(), result)
    if result["failed"] > 0:
        raise typer.Exit(1)


@app.command("log, lg")
def log(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Number of sync attempts to show"),
    ] = 20,
) -> None:
    """Show recent sync attempts."""
    runtime = get_runtime()
    sync_logs_view(default_organization_name(), runtime.sync_logs.get_recent(limit))
