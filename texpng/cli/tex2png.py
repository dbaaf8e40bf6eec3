#!/usr/bin/env python3
"""
tex2png client

Renders a TeX math file to PNG through the local render service, starting
the service in the background on first use.

Examples:\n

    tex2png formula.tex                                # -> output.png

    tex2png formula.tex eq.png "#ffffff" 40            # Output, color, font size

    tex2png formula.tex eq.png "#ffffff" 40 macros.json

    tex2png stop                                       # Stop the render service
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests
import typer
from typing_extensions import Annotated

from texpng.cli.client import (
    ServerStartError,
    check_server_running,
    launch_server,
    request_render,
)
from texpng.cli.tex2png_server import format_stop_result
from texpng.contexts.rendering import DEFAULT_OUTPUT_FILE
from texpng.contexts.serving import stop_server
from texpng.utils.logger import setup_console_logger

USAGE = """Usage:
  tex2png stop                                          - Stop the server
  tex2png <input> [output] [color] [fontSize] [macros]  - Render formula
  tex2png help                                          - Show this help"""

MAX_RENDER_ARGS = 5


@dataclass
class Invocation:
    """
    Parsed command line.

    Attributes:
        command: "help", "stop" or "render"
        input_file: Math source file (render only)
        out_file: Output PNG path as given, or None for the service default
        color: Glyph color, or None for the service default
        font_size: Font size, or None for the service default
        macros_file: Macro file for a newly started service
    """

    command: str
    input_file: Optional[str] = None
    out_file: Optional[str] = None
    color: Optional[str] = None
    font_size: Optional[float] = None
    macros_file: Optional[str] = None


def parse_invocation(args: Optional[List[str]]) -> Invocation:
    """
    Parse the positional argument list.

    Accepts `help`, `stop`, or `[render] <input> [output] [color] [fontSize]
    [macros]`. No arguments means help.

    Raises:
        ValueError: On a missing input, too many arguments, or a
            non-numeric font size
    """
    args = list(args or [])
    if not args or args[0] == "help":
        return Invocation("help")
    if args[0] == "stop":
        return Invocation("stop")

    if args[0] == "render":
        args = args[1:]
        if not args:
            raise ValueError("render requires an input file")
    if len(args) > MAX_RENDER_ARGS:
        raise ValueError(f"Too many arguments ({len(args)} given, at most {MAX_RENDER_ARGS})")

    args += [None] * (MAX_RENDER_ARGS - len(args))
    input_file, out_file, color, font_size, macros_file = args

    if font_size is not None:
        try:
            font_size = float(font_size)
        except ValueError:
            raise ValueError(f"Invalid font size: {font_size}")

    return Invocation(
        "render",
        input_file=input_file,
        out_file=out_file or None,
        color=color or None,
        font_size=font_size,
        macros_file=macros_file or None,
    )


app = typer.Typer(
    help="Render a TeX math file to PNG",
    add_completion=False,
)


def _render(invocation: Invocation) -> None:
    input_file = Path(invocation.input_file).resolve()
    if not input_file.exists():
        typer.secho(f"Input file not found: {input_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    macros_file = Path(invocation.macros_file).resolve() if invocation.macros_file else None

    if not check_server_running():
        typer.echo("Starting server...")
        try:
            launch_server(macros_file)
        except (ServerStartError, OSError) as e:
            typer.secho(f"Failed to start server: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
    elif macros_file is not None:
        typer.secho(
            "Server already running; macros file ignored (run `tex2png stop` to reload macros)",
            fg=typer.colors.YELLOW,
            err=True,
        )

    out_name = invocation.out_file or DEFAULT_OUTPUT_FILE
    # The service may run in another directory; send it an absolute path
    out_file = Path(out_name).resolve()

    try:
        response = request_render(
            input_file,
            out_file=out_file,
            color=invocation.color,
            font_size=invocation.font_size,
        )
    except requests.RequestException as e:
        typer.secho(f"Connection error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if response.success:
        typer.secho(f"Rendered to {out_name}", fg=typer.colors.GREEN)
        raise typer.Exit(code=0)

    if response.error is not None:
        typer.secho(f"Error: {response.error}", fg=typer.colors.RED, err=True)
    else:
        typer.secho(f"Server error: {response.status_code}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def main(
    args: Annotated[
        Optional[List[str]],
        typer.Argument(
            help="help | stop | [render] <input> [output] [color] [fontSize] [macros]",
            show_default=False,
        ),
    ] = None,
):
    """
    Render a TeX math file to PNG, or stop the render service.

    Examples:\n

        $ tex2png formula.tex                          # Render to output.png

        $ tex2png formula.tex eq.png "#000000" 30      # Custom output, color, size

        $ tex2png stop                                 # Stop the render service
    """
    setup_console_logger()

    try:
        invocation = parse_invocation(args)
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        typer.echo(USAGE, err=True)
        raise typer.Exit(code=1)

    if invocation.command == "help":
        typer.echo(USAGE)
        raise typer.Exit(code=0)

    if invocation.command == "stop":
        typer.echo(format_stop_result(stop_server()))
        raise typer.Exit(code=0)

    _render(invocation)


if __name__ == "__main__":
    app()
