# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.work_item import WorkItem
from adotrack.view.views.header import header


def format_hours(hours: Optional[float]) -> str:
    if hours is None:
        return ""
    return f"{hours:g}h"


def work_items_view(
    organization_name: Optional[str],
    report_name: str,
    work_items: list[WorkItem],
) -> None:
    """Display list of work items in a table."""
    header(organization_name, report_name)

    work_items_table = Table(box=box.SIMPLE)
    work_items_table.add_column("id")
    work_items_table.add_column("type")
    work_items_table.add_column("state")
    work_items_table.add_column("title")
    work_items_table.add_column("completed", justify="right")
    work_items_table.add_column("remaining", justify="right")

    for work_item in work_items:
        work_items_table.add_row(
            str(work_item["id"]),
            work_item["type"],
            work_item["state"],
            work_item["title"],
            format_hours(work_item["completed_work"]),
            format_hours(work_item["remaining_work"]),
        )

    console = Console()
    console.print(work_items_table)


def single_work_item_view(organization_name: Optional[str], work_item: WorkItem) -> None:
    header(organization_name, "work item")

    work_item_table = Table(box=box.SIMPLE)
    work_item_table.add_column("property")
    work_item_table.add_column("value")

    work_item_table.add_row("id", str(work_item["id"]))
    work_item_table.add_row("title", work_item["title"])
    work_item_table.add_row("type", work_item["type"])
    work_item_table.add_row("state", work_item["state"])
    work_item_table.add_row("project", work_item["project_name"])
    work_item_table.add_row("assigned to", work_item["assigned_to"] or "")
    work_item_table.add_row("completed", format_hours(work_item["completed_work"]))
    work_item_table.add_row("remaining", format_hours(work_item["remaining_work"]))
    work_item_table.add_row(
        "original estimate", format_hours(work_item["original_estimate"])
    )
    work_item_table.add_row("area", work_item["area_path"] or "")
    work_item_table.add_row("iteration", work_item["iteration_path"] or "")
    work_item_table.add_row("url", work_item["url"])

    console = Console()
    console.print(work_item_table)
