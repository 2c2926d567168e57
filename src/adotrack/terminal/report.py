# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import pendulum
import typer

from adotrack.runtime import get_runtime
from adotrack.service.report import get_daily_summaries
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.parse import parse_date
from adotrack.terminal.resolve import default_organization_name
from adotrack.view.views.report import daily_report_view

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)


@app.command("daily, d")
def daily(
    start: Annotated[
        Optional[str],
        typer.Option(
            "--start",
            "-s",
            help="First day: YYYY-MM-DD, today, yesterday or an offset like -7",
        ),
    ] = None,
    end: Annotated[
        Optional[str],
        typer.Option("--end", "-e", help="Last day, same formats as --start"),
    ] = None,
) -> None:
    """Summarize tracked time per day. Defaults to today."""
    start_date = parse_date(start) or pendulum.today("local").date()
    end_date = parse_date(end) or start_date
    if end_date < start_date:
        typer.echo("--end must not be before --start.", err=True)
        raise typer.Exit(1)

    runtime = get_runtime()
    summaries = get_daily_summaries(
        runtime.ledger.get_all_time_entries(), start_date, end_date
    )
    daily_report_view(default_organization_name(), summaries)
