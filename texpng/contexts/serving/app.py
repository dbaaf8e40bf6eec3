"""
Render service HTTP application.

    GET  /status  -> 200 "OK"
    POST /render  -> 200 {"success": true, "file": outFile}
                     400 {"error": ...} for bad input
                     500 {"error": ...} for rendering failures

A failing request never takes the service down: every error becomes a JSON
error response.
"""

import asyncio
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from texpng import __version__
from texpng.contexts.rendering import (
    DEFAULT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_OUTPUT_FILE,
    MathEngine,
    render_math_file,
    svg_to_png,
)
from texpng.contexts.rendering.renderer import Rasterizer
from texpng.contexts.serving.logger import log_request_failure


class RenderRequest(BaseModel):
    """
    Body of POST /render.

    inputFile is optional at the schema level so its absence is reported as
    a 400 naming the field rather than a generic validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    input_file: Optional[str] = Field(default=None, alias="inputFile")
    out_file: str = Field(default=DEFAULT_OUTPUT_FILE, alias="outFile")
    color: str = DEFAULT_COLOR
    font_size: float = Field(default=DEFAULT_FONT_SIZE, alias="fontSize")


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build a {"error": message} response and log it."""
    log_request_failure(status_code, message)
    return JSONResponse(status_code=status_code, content={"error": message})


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def create_app(engine: MathEngine, rasterize: Rasterizer = svg_to_png) -> FastAPI:
    """
    Build the render service application around one engine.

    The engine and rasterizer are held on app.state rather than in module
    globals, so tests can build isolated apps with fakes.

    Args:
        engine: Initialized MathEngine shared by all requests
        rasterize: SVG -> PNG function (default: cairosvg-backed svg_to_png)

    Returns:
        FastAPI application
    """
    app = FastAPI(title="tex2png render service", version=__version__)
    app.state.engine = engine
    app.state.rasterize = rasterize

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, _format_validation_error(exc))

    @app.get("/status", response_class=PlainTextResponse)
    async def status():
        return "OK"

    @app.post("/render")
    async def render(body: RenderRequest, request: Request):
        if not body.input_file:
            return error_response(400, "inputFile is required")

        try:
            content = Path(body.input_file).read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            return error_response(400, f"Error reading input file: {e}")

        try:
            await asyncio.to_thread(
                render_math_file,
                request.app.state.engine,
                content,
                Path(body.out_file),
                color=body.color,
                font_size=body.font_size,
                rasterize=request.app.state.rasterize,
                source=body.input_file,
            )
        except Exception as e:
            return error_response(500, str(e) or type(e).__name__)

        return {"success": True, "file": body.out_file}

    return app
