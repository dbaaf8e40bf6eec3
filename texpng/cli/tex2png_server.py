#!/usr/bin/env python3
"""
tex2png render service executable

Runs the render service in the foreground, or stops the running one.

Commands:
    start - Start the service (no-op if it is already running)
    stop  - Signal the running service to shut down

Examples:\n

    tex2png-server start                  # Built-in macros only

    tex2png-server start macros.json      # Merge macros from a JSON file

    tex2png-server stop                   # Stop the running service
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from texpng.contexts.rendering import EngineInitError, MacroConfigError
from texpng.contexts.serving import (
    HOST,
    PORT,
    ServiceAlreadyRunningError,
    ServiceStartError,
    StopOutcome,
    StopResult,
    start_server,
    stop_server,
)
from texpng.contexts.serving.logger import _log_error, setup_serving_logger
from texpng.utils.logger import LOGS_PATH, setup_console_logger
from texpng.utils.timestamp import now

USAGE = "Usage: tex2png-server [start [macrosFile]|stop]"


def format_stop_result(result: StopResult) -> str:
    """Human-readable line for a stop request."""
    if result.outcome == StopOutcome.SIGNALED:
        return f"Sent stop signal to server (PID {result.pid})"
    if result.outcome == StopOutcome.NOT_OURS:
        return f"PID {result.pid} is not a server this user can stop; record left in place"
    if result.pid is not None:
        return f"Server not running (PID {result.pid})"
    return "Server is not running"


app = typer.Typer(
    help="Run or stop the tex2png render service",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Print usage and fail when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(USAGE)
        raise typer.Exit(code=1)


@app.command("start")
def start_command(
    macros_file: Annotated[
        Optional[Path],
        typer.Argument(help="JSON file of extra macros: {name: [template, argumentCount]}"),
    ] = None,
):
    """
    Start the render service in the foreground.

    Exits 0 if a service is already running or after a clean shutdown;
    exits 1 if the macro file, the engine, or the port cannot be set up.
    """
    setup_serving_logger(LOGS_PATH / f"serve_{now()}", host=HOST, port=PORT)

    try:
        start_server(macros_file=macros_file)
    except (
        MacroConfigError,
        EngineInitError,
        ServiceAlreadyRunningError,
        ServiceStartError,
    ) as e:
        _log_error(str(e))
        raise typer.Exit(code=1)

    raise typer.Exit(code=0)


@app.command("stop")
def stop_command():
    """Signal the running render service to shut down."""
    setup_console_logger()

    typer.echo(format_stop_result(stop_server()))


if __name__ == "__main__":
    app()
