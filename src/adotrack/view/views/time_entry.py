# SPDX-License-Identifier: MIT

from typing import Optional, cast

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.entity_id import EntityId
from adotrack.model.time_entry import TimeEntry
from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.time import (
    datetime_to_display_local_datetime_str,
    datetime_to_display_local_datetime_str_optional,
    minutes_to_display_str,
)
from adotrack.view.views.header import header


def synced_marker(time_entry: TimeEntry) -> str:
    if time_entry["synced_to_ado"]:
        return "[green]✓[/green]"
    return "[yellow]·[/yellow]"


def time_entries_view(
    organization_name: Optional[str],
    report_name: str,
    time_entries: list[TimeEntry],
    columns: list[str] = [
        "id",
        "synced",
        "work_item",
        "start",
        "duration",
        "organization",
        "description",
    ],
) -> None:
    """Display list of time entries in a table."""
    header(organization_name, report_name)

    time_entries_table = Table(box=box.SIMPLE)
    for column in columns:
        time_entries_table.add_column(column)

    total_minutes = 0
    for time_entry in time_entries:
        total_minutes += time_entry["duration_minutes"]
        row = []
        for column in columns:
            column_value = ""
            if column == "id":
                column_value = str(
                    ID_MAP_REPO.associate_id(
                        "time_entries", cast(EntityId, time_entry["id"])
                    )
                )
            elif column == "synced":
                column_value = synced_marker(time_entry)
            elif column == "work_item":
                column_value = (
                    f"#{time_entry['work_item_id']} {time_entry['work_item_title']}"
                )
            elif column == "start":
                column_value = datetime_to_display_local_datetime_str(
                    time_entry["start"]
                )
            elif column == "duration":
                column_value = minutes_to_display_str(time_entry["duration_minutes"])
            elif column == "organization":
                column_value = time_entry["organization_name"]
            elif column == "description":
                column_value = time_entry["description"] or ""
            row.append(column_value)
        time_entries_table.add_row(*row)

    console = Console()
    console.print(time_entries_table)
    if len(time_entries) > 0:
        console.print(f" total: [bold]{minutes_to_display_str(total_minutes)}[/bold]")


def single_time_entry_view(
    organization_name: Optional[str], time_entry: TimeEntry
) -> None:
    """Display detailed view of a single time entry."""
    header(organization_name, "time entry")

    time_entry_table = Table(box=box.SIMPLE)
    time_entry_table.add_column("property")
    time_entry_table.add_column("value")

    time_entry_table.add_row(
        "id",
        str(
            ID_MAP_REPO.associate_id("time_entries", cast(EntityId, time_entry["id"]))
        ),
    )
    time_entry_table.add_row(
        "work item", f"#{time_entry['work_item_id']} {time_entry['work_item_title']}"
    )
    time_entry_table.add_row("type", time_entry["work_item_type"])
    time_entry_table.add_row("project", time_entry["project_name"])
    time_entry_table.add_row("organization", time_entry["organization_name"])
    time_entry_table.add_row(
        "start", datetime_to_display_local_datetime_str(time_entry["start"])
    )
    time_entry_table.add_row(
        "end", datetime_to_display_local_datetime_str(time_entry["end"])
    )
    time_entry_table.add_row(
        "duration", minutes_to_display_str(time_entry["duration_minutes"])
    )
    time_entry_table.add_row("description", time_entry["description"] or "")
    time_entry_table.add_row("synced", synced_marker(time_entry))
    time_entry_table.add_row(
        "synced at",
        datetime_to_display_local_datetime_str_optional(time_entry["synced_at"]) or "",
    )

    console = Console()
    console.print(time_entry_table)
