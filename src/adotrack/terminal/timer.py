# SPDX-License-Identifier: MIT

import threading
from typing import Annotated, Optional

import typer
from rich.live import Live

from adotrack.client.azure_devops import ApiError
from adotrack.model.timer_session import TimerStatus
from adotrack.runtime import get_runtime
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.resolve import default_organization_name, resolve_organization
from adotrack.view.views.header import header
from adotrack.view.views.timer import stopped_timer_view, timer_table, timer_view

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)


@app.command("start, s", no_args_is_help=True)
def start(
    work_item_id: Annotated[int, typer.Argument(help="Azure DevOps work item id")],
    org: Annotated[
        Optional[int],
        typer.Option("--org", "-o", help="Organization id from org list"),
    ] = None,
) -> None:
    """Start tracking time on a work item."""
    organization = resolve_organization(org)
    runtime = get_runtime()

    current = runtime.timer.current_work_item
    if current is not None:
        typer.echo(
            f"Timer already tracking #{current['id']} {current['title']}. Stop it first.",
            err=True,
        )
        raise typer.Exit(1)

    try:
        work_item = runtime.directory.get_by_id(organization, work_item_id)
    except ApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)
    if work_item is None:
        typer.echo(
            f"Work item #{work_item_id} was not found or cannot be tracked "
            "(closed, or not a task, bug, story, feature or backlog item).",
            err=True,
        )
        raise typer.Exit(1)

    runtime.timer.start(work_item)
    timer_view(organization["name"], runtime.timer.get_state())


@app.command("pause, p")
def pause() -> None:
    """Pause the running timer."""
    runtime = get_runtime()
    if not runtime.timer.pause():
        typer.echo(f"Cannot pause: timer is {runtime.timer.status}.", err=True)
        raise typer.Exit(1)
    timer_view(default_organization_name(), runtime.timer.get_state())


@app.command("resume, r")
def resume() -> None:
    """Resume a paused timer."""
    runtime = get_runtime()
    if not runtime.timer.resume():
        typer.echo(f"Cannot resume: timer is {runtime.timer.status}.", err=True)
        raise typer.Exit(1)
    timer_view(default_organization_name(), runtime.timer.get_state())


@app.command("stop, x")
def stop() -> None:
    """Stop the timer and record the time as an unsynced entry."""
    runtime = get_runtime()
    if not runtime.timer.is_running:
        typer.echo("No timer is running.", err=True)
        raise typer.Exit(1)

    try:
        time_entry = runtime.timer.stop()
    except OSError as e:
        typer.echo(
            f"Could not save the time entry ({e}). The timer is still running.",
            err=True,
        )
        raise typer.Exit(1)
    stopped_timer_view(default_organization_name(), time_entry)


@app.command("status, st")
def status() -> None:
    """Show the current timer."""
    runtime = get_runtime()
    timer_view(default_organization_name(), runtime.timer.get_state())


@app.command("watch, w")
def watch() -> None:
    """Show a live timer until interrupted with Ctrl+C."""
    runtime = get_runtime(tick_interval=1.0)
    timer = runtime.timer
    if not timer.is_running:
        typer.echo("No timer is running.", err=True)
        raise typer.Exit(1)

    if timer.is_paused:
        timer_view(default_organization_name(), timer.get_state())
        return

    header(default_organization_name(), "timer")
    done = threading.Event()
    with Live(timer_table(timer.get_state()), auto_refresh=False) as live:

        def on_tick(elapsed_seconds: int) -> None:
            live.update(timer_table(timer.get_state(), elapsed_seconds), refresh=True)

        unsubscribe = timer.subscribe_tick(on_tick)
        try:
            while not done.wait(0.5):
                # timer pause/stop may run in another shell
                if timer.refresh() and timer.status is not TimerStatus.RUNNING:
                    live.update(timer_table(timer.get_state()), refresh=True)
                    done.set()
        except KeyboardInterrupt:
            pass
        finally:
            unsubscribe()

    if done.is_set():
        typer.echo(f"Timer is now {timer.status}.")
