# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from adotrack.model.time_entry import TimeEntry
from adotrack.model.timer_session import TimerState, TimerStatus
from adotrack.time import (
    datetime_to_display_local_datetime_str_optional,
    minutes_to_display_str,
    seconds_to_clock_str,
)
from adotrack.view.views.header import header

STATUS_COLORS = {
    TimerStatus.IDLE: "grey50",
    TimerStatus.RUNNING: "green",
    TimerStatus.PAUSED: "yellow",
}


def timer_table(state: TimerState, elapsed_seconds: Optional[int] = None) -> Table:
    """Build the timer table. elapsed_seconds overrides the state's value for live ticks."""
    color = STATUS_COLORS[state["status"]]
    seconds = state["elapsed_seconds"] if elapsed_seconds is None else elapsed_seconds

    timer = Table(box=box.SIMPLE)
    timer.add_column("property")
    timer.add_column("value")

    timer.add_row("status", f"[{color}]{state['status']}[/{color}]")
    work_item = state["work_item"]
    if work_item is not None:
        timer.add_row("work item", f"#{work_item['id']} {work_item['title']}")
        timer.add_row("type", work_item["type"])
        timer.add_row("project", work_item["project_name"])
    timer.add_row(
        "started", datetime_to_display_local_datetime_str_optional(state["start"]) or ""
    )
    timer.add_row("elapsed", f"[bold]{seconds_to_clock_str(seconds)}[/bold]")
    return timer


def timer_view(organization_name: Optional[str], state: TimerState) -> None:
    header(organization_name, "timer")

    console = Console()
    console.print(timer_table(state))


def stopped_timer_view(
    organization_name: Optional[str], time_entry: Optional[TimeEntry]
) -> None:
    header(organization_name, "timer stopped")

    console = Console()
    if time_entry is None:
        console.print(" [grey50]Session was under a minute and was discarded.[/grey50]")
        return

    console.print(
        f" Recorded [bold]{minutes_to_display_str(time_entry['duration_minutes'])}[/bold]"
        f" on #{time_entry['work_item_id']} {time_entry['work_item_title']}."
    )
