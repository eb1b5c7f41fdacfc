"""CLI entry point for logscope."""

from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003 - typer needs this at runtime for argument parsing
from typing import Annotated

import typer

from logscope.config import load_config
from logscope.errors import ConfigurationError
from logscope.utils import parse_time

app = typer.Typer(add_completion=False)


@app.callback()
def _root() -> None:
    """Streaming log viewer."""


@app.command()
def view(
    file: Annotated[Path, typer.Argument(help="Log file to view", exists=True, dir_okay=False, readable=True)],
    pattern: Annotated[
        str | None,
        typer.Option("--pattern", "-p", help="Highlight regex with named groups, e.g. (?P<red>ERROR)"),
    ] = None,
    follow: Annotated[
        bool | None,
        typer.Option("--follow/--no-follow", help="Keep the view pinned to the newest event"),
    ] = None,
    wrap: Annotated[bool | None, typer.Option("--wrap/--no-wrap", help="Soft-wrap long events")] = None,
    tail: Annotated[bool, typer.Option("--tail", "-t", help="Keep reading as the file grows")] = False,
    anchor: Annotated[
        str | None,
        typer.Option("--anchor", help="Right edge of the rate sparkline: 5m, 2024-01-15T10:30, 'yesterday 7:58'"),
    ] = None,
    log_file: Annotated[Path | None, typer.Option("--log-file", help="Write debug logs to this file")] = None,
) -> None:
    """View a log file in a scrollable, searchable viewport."""
    from logscope.app import LogScopeApp  # noqa: PLC0415

    if log_file is not None:
        logging.basicConfig(
            filename=log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    config = load_config()
    updates: dict[str, object] = {}
    if pattern is not None:
        updates["highlight_pattern"] = pattern
    if follow is not None:
        updates["following"] = follow
    if wrap is not None:
        updates["wrap"] = wrap
    if updates:
        config = config.model_copy(update=updates)

    anchor_time = None
    if anchor is not None:
        try:
            anchor_time = parse_time(anchor)
        except ValueError as e:
            typer.echo(f"Error: {e}")
            raise typer.Exit(1)  # noqa: B904

    try:
        tui = LogScopeApp(file, config=config, tail=tail, anchor=anchor_time)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)  # noqa: B904
    tui.run()


def main() -> None:
    """Entry point for the CLI."""
    app()
