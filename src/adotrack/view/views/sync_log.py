# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.sync import SyncLog, SyncResult
from adotrack.time import datetime_to_display_local_datetime_str
from adotrack.view.views.header import header


def sync_logs_view(organization_name: Optional[str], sync_logs: list[SyncLog]) -> None:
    """Display recent sync attempts, newest first."""
    header(organization_name, "sync log")

    sync_logs_table = Table(box=box.SIMPLE)
    sync_logs_table.add_column("when")
    sync_logs_table.add_column("status")
    sync_logs_table.add_column("work item")
    sync_logs_table.add_column("hours", justify="right")
    sync_logs_table.add_column("error")

    for sync_log in sync_logs:
        status = (
            "[green]success[/green]"
            if sync_log["status"] == "success"
            else "[red]failed[/red]"
        )
        sync_logs_table.add_row(
            datetime_to_display_local_datetime_str(sync_log["synced_at"]),
            status,
            f"#{sync_log['work_item_id']} {sync_log['work_item_title']}",
            f"{sync_log['hours_synced']:.2f}",
            sync_log["error_message"] or "",
        )

    console = Console()
    console.print(sync_logs_table)


def sync_result_view(organization_name: Optional[str], result: SyncResult) -> None:
    header(organization_name, "sync")

    console = Console()
    if result["success"] == 0 and result["failed"] == 0 and result["skipped"] == 0:
        console.print(" Nothing to sync.")
        return

    console.print(
        f" [green]{result['success']} synced[/green],"
        f" [red]{result['failed']} failed[/red],"
        f" [grey50]{result['skipped']} skipped[/grey50]"
    )
    if result["failed"] > 0:
        console.print(" See [bold]adotrack entry log[/bold] for details.")
