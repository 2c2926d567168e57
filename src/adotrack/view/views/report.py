# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.report import DailySummary
from adotrack.time import minutes_to_display_str
from adotrack.view.views.header import header


def daily_report_view(
    organization_name: Optional[str], summaries: list[DailySummary]
) -> None:
    """Display one block per day with totals by work item and by project."""
    header(organization_name, "daily report")

    console = Console()
    grand_total = 0
    for summary in summaries:
        grand_total += summary["total_minutes"]
        date_str = summary["date"].format("ddd YYYY-MM-DD")
        console.print(
            f"\n [bold]{date_str}[/bold]"
            f"  {minutes_to_display_str(summary['total_minutes'])}"
        )
        if summary["total_minutes"] == 0:
            continue

        day_table = Table(box=box.SIMPLE)
        day_table.add_column("work item")
        day_table.add_column("time", justify="right")
        for work_item_id, total in summary["by_work_item"].items():
            day_table.add_row(
                f"#{work_item_id} {total['title']}",
                minutes_to_display_str(total["minutes"]),
            )
        console.print(day_table)

        projects = ", ".join(
            f"{project} {minutes_to_display_str(minutes)}"
            for project, minutes in summary["by_project"].items()
        )
        console.print(f" [grey50]projects: {projects}[/grey50]")

    if len(summaries) > 1:
        console.print(f"\n total: [bold]{minutes_to_display_str(grand_total)}[/bold]")
