# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from adotrack import configuration
from adotrack.repository.configuration import CONFIGURATION_REPO
from adotrack.terminal.custom_typer import TimerAwareTyperGroup
from adotrack.terminal.validate import validate_log_level, validate_positive

app = typer.Typer(cls=TimerAwareTyperGroup, no_args_is_help=True)


def configuration_table(
    config: configuration.Configuration, title: Optional[str] = None
) -> Table:
    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("data_path", str(configuration.DATA_PATH))
    table.add_row("request_timeout_seconds", f"{config['request_timeout_seconds']:g}")
    table.add_row("sync_log_limit", str(config["sync_log_limit"]))
    table.add_row("time_rounding_minutes", str(config["time_rounding_minutes"]))
    table.add_row("work_item_cache_seconds", str(config["work_item_cache_seconds"]))
    table.add_row("log_level", config["log_level"])
    table.add_row("log_file", str(configuration.LOG_FILE_PATH))
    return table


@app.command("view, v")
def view() -> None:
    """Display current configuration settings."""
    config = CONFIGURATION_REPO.get_config()

    console = Console()
    console.print(configuration_table(config))

    yaml_library_type = "untested"
    try:
        from yaml import CDumper as Dumper  # noqa: F401
        from yaml import CLoader as Loader  # noqa: F401

        yaml_library_type = "C"
    except ImportError:
        yaml_library_type = "Python"

    console.print()
    console.print(f"YAML Library Type: {yaml_library_type}")


@app.command("set, s")
def set(
    data_path: Annotated[
        Optional[str],
        typer.Option(
            "--data-path",
            help="Directory for entries, organizations and the sync log",
        ),
    ] = None,
    remove_data_path: Annotated[
        bool,
        typer.Option(
            "--remove-data-path",
            help="Go back to the platform data directory",
        ),
    ] = False,
    request_timeout_seconds: Annotated[
        Optional[float],
        typer.Option(
            "--request-timeout",
            help="Seconds before an Azure DevOps request gives up",
        ),
    ] = None,
    sync_log_limit: Annotated[
        Optional[int],
        typer.Option(
            "--sync-log-limit",
            help="Number of sync attempts to keep",
            callback=validate_positive,
        ),
    ] = None,
    time_rounding_minutes: Annotated[
        Optional[int],
        typer.Option(
            "--time-rounding",
            help="Round stopped sessions to this many minutes",
            callback=validate_positive,
        ),
    ] = None,
    work_item_cache_seconds: Annotated[
        Optional[int],
        typer.Option(
            "--work-item-cache",
            help="Seconds a fetched work item is reused for display",
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="DEBUG, INFO, WARNING or ERROR for the log file",
            callback=validate_log_level,
        ),
    ] = None,
) -> None:
    """
    Update configuration settings.
    """
    if request_timeout_seconds is not None and request_timeout_seconds <= 0:
        raise typer.BadParameter("--request-timeout must be positive")

    CONFIGURATION_REPO.update_config(
        data_path=data_path,
        remove_data_path=remove_data_path,
        request_timeout_seconds=request_timeout_seconds,
        sync_log_limit=sync_log_limit,
        time_rounding_minutes=time_rounding_minutes,
        work_item_cache_seconds=work_item_cache_seconds,
        log_level=log_level,
    )

    config = CONFIGURATION_REPO.get_config()

    console = Console()
    console.print("[green]Configuration updated successfully![/green]\n")
    console.print(configuration_table(config, title="Updated Configuration"))
    if data_path is not None or remove_data_path:
        console.print(
            "\n[yellow]The new data path takes effect on the next command.[/yellow]"
        )
