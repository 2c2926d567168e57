# SPDX-License-Identifier: MIT

from typing import Annotated

import typer

from adotrack.repository.id_map import ID_MAP_REPO
from adotrack.terminal import (
    configuration,
    entry,
    organization,
    report,
    timer,
    work_item,
)
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.view import state as view_state

app = typer.Typer(
    cls=TimerAwareTyperGroup,
    help="adotrack - Track time on Azure DevOps work items",
    no_args_is_help=True,
)
app.add_typer(timer.app, name="timer, ti", help="Start, pause, resume and stop the timer")
app.add_typer(entry.app, name="entry, e", help="Recorded time entries and sync")
app.add_typer(work_item.app, name="work-item, w", help="Find work items to track")
app.add_typer(report.app, name="report, r", help="Time summaries")
app.add_typer(organization.app, name="org, o", help="Azure DevOps organizations")
app.add_typer(configuration.app, name="config, c", help="Settings")


@app.callback()
def main_callback(
    no_header: Annotated[
        bool,
        typer.Option(
            "--no-header",
            "-nh",
            help="Suppress header output in reports",
        ),
    ] = False,
    clear_ids: Annotated[
        bool,
        typer.Option(
            "--clear-ids/--no-clear-ids",
            help="Clear ID map",
        ),
    ] = False,
) -> None:
    """
    adotrack - Track time on Azure DevOps work items

    Global options that apply to all commands.
    """
    if no_header:
        view_state.set_show_header(False)
    if clear_ids:
        ID_MAP_REPO.clear_ids()


def run() -> None:
    app()
