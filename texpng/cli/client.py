"""
HTTP client for the render service.

Checks /status, launches the service in the background when needed, and
submits render requests.
"""

import os
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from dotenv import load_dotenv

from texpng.contexts.serving.config import HOST, PORT

load_dotenv()

STATUS_TIMEOUT_S = 0.2
STARTUP_TIMEOUT_S = float(os.getenv("TEX2PNG_STARTUP_TIMEOUT", "10"))
STARTUP_POLL_INTERVAL_S = 0.25

SERVER_MODULE = "texpng.cli.tex2png_server"


class ServerStartError(RuntimeError):
    """Raised when a launched render service never answers /status."""

    pass


@dataclass
class RenderResponse:
    """
    Outcome of POST /render.

    Attributes:
        success: True on HTTP 200
        status_code: HTTP status code
        file: Output path reported by the service (on success)
        error: Error message from the service body, if it sent one
    """

    success: bool
    status_code: int
    file: Optional[str] = None
    error: Optional[str] = None


def base_url(host: str = HOST, port: int = PORT) -> str:
    return f"http://{host}:{port}"


def check_server_running(host: str = HOST, port: int = PORT, timeout: float = STATUS_TIMEOUT_S) -> bool:
    """
    True if the render service answers GET /status with 200 within timeout.
    """
    try:
        response = requests.get(f"{base_url(host, port)}/status", timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def spawn_server(macros_file: Optional[Path] = None) -> subprocess.Popen:
    """
    Launch the render service as a detached background process.

    Args:
        macros_file: Optional macro file passed to `start`

    Returns:
        Handle of the launched process
    """
    cmd = [sys.executable, "-m", SERVER_MODULE, "start"]
    if macros_file:
        cmd.append(str(macros_file))

    return subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def launch_server(
    macros_file: Optional[Path] = None,
    startup_timeout: float = STARTUP_TIMEOUT_S,
    health_check: Callable[[], bool] = check_server_running,
    spawn: Callable[[Optional[Path]], subprocess.Popen] = spawn_server,
) -> None:
    """
    Start the render service and wait until it answers /status.

    Args:
        macros_file: Optional macro file for the new service
        startup_timeout: Seconds to wait for the service to come up
        health_check: Health check (default: check_server_running)
        spawn: Process launcher (default: spawn_server)

    Raises:
        ServerStartError: If the service is not healthy before the timeout
            or its process exits first
    """
    proc = spawn(macros_file)
    deadline = time.monotonic() + startup_timeout

    while time.monotonic() < deadline:
        time.sleep(STARTUP_POLL_INTERVAL_S)
        if health_check():
            return
        if proc.poll() is not None:
            break

    if health_check():
        return

    if proc.poll() is None:
        proc.kill()
        raise ServerStartError(f"Server did not respond within {startup_timeout:g}s")
    raise ServerStartError(f"Server exited with code {proc.returncode}")


def request_render(
    input_file: Path,
    out_file: Optional[Path] = None,
    color: Optional[str] = None,
    font_size: Optional[float] = None,
    host: str = HOST,
    port: int = PORT,
) -> RenderResponse:
    """
    POST a render request. Fields left as None are filled in by the service.

    No timeout: a render blocks until the service answers.

    Raises:
        requests.RequestException: On connection failures
    """
    payload = {"inputFile": str(input_file)}
    if out_file is not None:
        payload["outFile"] = str(out_file)
    if color is not None:
        payload["color"] = color
    if font_size is not None:
        payload["fontSize"] = font_size

    response = requests.post(f"{base_url(host, port)}/render", json=payload)

    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    if response.status_code == 200:
        return RenderResponse(success=True, status_code=200, file=body.get("file"))

    error = body.get("error")
    return RenderResponse(
        success=False,
        status_code=response.status_code,
        error=str(error) if error is not None else None,
    )
