# SPDX-License-Identifier: MIT

import re
from typing import Optional

import click
import typer
import typer.core
from rich.console import Console
from rich.padding import Padding
from yaml import YAMLError

from adotrack.repository.timer_session import TimerSessionRepository
from adotrack.time import milliseconds_between, now_utc, seconds_to_clock_str

console = Console()


def _show_active_timer(ctx: click.Context) -> None:
    """Show the in-flight timer above help text, once per command chain"""
    if hasattr(ctx, "_timer_shown") and ctx._timer_shown:
        return

    current: Optional[click.Context] = ctx
    while current is not None:
        current._timer_shown = True  # type: ignore[attr-defined]
        current = current.parent

    try:
        session = TimerSessionRepository().load()
    except (OSError, ValueError, YAMLError):
        # Help must render even before the data directory exists
        return
    if session is None or session["start"] is None or session["work_item"] is None:
        return

    now = now_utc()
    elapsed_ms = (
        milliseconds_between(session["start"], now) - session["accumulated_paused_ms"]
    )
    if session["is_paused"] and session["pause_started_at"] is not None:
        elapsed_ms -= milliseconds_between(session["pause_started_at"], now)
    state = "paused" if session["is_paused"] else "running"

    console.print()
    console.print(
        Padding(
            f"[bold plum1]#{session['work_item']['id']} {session['work_item']['title']}"
            f" ({state} {seconds_to_clock_str(elapsed_ms // 1000)})[/bold plum1]",
            (0, 0, 0, 1),
        )
    )


class AliasedTyperGroup(typer.core.TyperGroup):
    """Custom TyperGroup that supports comma-separated command aliases"""

    _CMD_SPLIT_P = re.compile(r" ?, ?")

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        """Override to resolve aliases to the full command name"""
        cmd_name = self._group_cmd_name(cmd_name)
        return super().get_command(ctx, cmd_name)

    def _group_cmd_name(self, default_name: str) -> str:
        """Find the full command name if default_name is an alias"""
        for cmd in self.commands.values():
            name = cmd.name
            if name and default_name in self._CMD_SPLIT_P.split(name):
                return name
        return default_name

    def add_command(self, cmd: click.Command, name: Optional[str] = None) -> None:
        """Override to prevent duplicate commands from being added"""
        if name is None:
            name = cmd.name

        existing_name = self._group_cmd_name(name or "")
        if existing_name in self.commands and existing_name != name:
            return

        super().add_command(cmd, name)


class TimerAwareTyperGroup(AliasedTyperGroup):
    """Custom TyperGroup that displays the active timer in help text and supports aliases"""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return commands in desired order (not insertion order due to Typer internals)"""
        desired_order = [
            "timer, ti",
            "entry, e",
            "work-item, w",
            "report, r",
            "org, o",
            "config, c",
        ]

        result = []
        for cmd_name in desired_order:
            if cmd_name in self.commands:
                result.append(cmd_name)

        for cmd_name in self.commands.keys():
            if cmd_name not in result:
                result.append(cmd_name)

        return result

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        """Override to show the active timer in subcommand help as well"""
        cmd = super().get_command(ctx, cmd_name)

        if cmd is not None and not getattr(cmd, "_timer_aware", False):
            original_format_help = cmd.format_help

            def timer_aware_format_help(
                help_ctx: click.Context, formatter: click.formatting.HelpFormatter
            ) -> None:
                _show_active_timer(help_ctx)
                original_format_help(help_ctx, formatter)

            cmd.format_help = timer_aware_format_help  # type: ignore
            cmd._timer_aware = True  # type: ignore[attr-defined]

        return cmd

    def format_help(
        self, ctx: click.Context, formatter: click.formatting.HelpFormatter
    ) -> None:
        _show_active_timer(ctx)
        super().format_help(ctx, formatter)
