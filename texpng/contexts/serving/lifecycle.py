"""
Render service lifecycle: start, detect an existing instance, stop.

Start:
    1. A live process record means a service is already running: do nothing.
       A stale record is removed.
    2. Load macros and initialize the engine (fatal on failure).
    3. Bind the listener (fatal on failure), then claim the process record.

Stop:
    Send SIGINT to the recorded PID. A record naming a dead process is removed.

Shutdown:
    uvicorn installs its SIGINT/SIGTERM handlers before the first request is
    served. Either signal closes the listener, then RenderServer.shutdown()
    releases the process record. After SIGINT the process exits 0.
"""

import asyncio
import os
import signal
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import uvicorn

from texpng.contexts.rendering import MathEngine
from texpng.contexts.serving.app import create_app
from texpng.contexts.serving.config import HOST, PID_FILE, PORT
from texpng.contexts.serving.exceptions import ServiceAlreadyRunningError, ServiceStartError
from texpng.contexts.serving.logger import _log_error, _log_info, _log_success, _log_warning
from texpng.contexts.serving.process_record import ProcessRecord


class StartOutcome(Enum):
    """How a start request ended."""

    STOPPED = "stopped"  # served, then shut down cleanly
    ALREADY_RUNNING = "already_running"


class StopOutcome(Enum):
    """How a stop request ended."""

    SIGNALED = "signaled"
    NOT_RUNNING = "not_running"
    STALE_RECORD = "stale_record"
    NOT_OURS = "not_ours"  # PID reused by a process we may not signal


@dataclass
class StopResult:
    """
    Result of a stop request.

    Attributes:
        outcome: What happened
        pid: PID named by the process record, if one was readable
    """

    outcome: StopOutcome
    pid: Optional[int] = None


class RenderServer(uvicorn.Server):
    """
    uvicorn server that owns the process record.

    The record is written only after the listening socket is bound and is
    released on shutdown, whatever triggered it.
    """

    def __init__(self, config: uvicorn.Config, record: ProcessRecord):
        super().__init__(config)
        self.record = record
        self.pid = os.getpid()
        self.claim_failed = False

    async def startup(self, sockets: Optional[List] = None) -> None:
        # uvicorn raises SystemExit itself if binding fails
        await super().startup(sockets=sockets)
        if self.should_exit:
            return

        try:
            self.record.claim(self.pid)
        except ServiceAlreadyRunningError as e:
            _log_error(f"{e}; shutting down")
            self.claim_failed = True
            self.should_exit = True
            return

        _log_success(f"Server running on {self.config.host}:{self.config.port} (PID {self.pid})")

    async def shutdown(self, sockets: Optional[List] = None) -> None:
        try:
            await super().shutdown(sockets=sockets)
        finally:
            if self.record.release(self.pid):
                _log_info("Process record removed")


async def serve(engine: MathEngine, record: ProcessRecord, host: str = HOST, port: int = PORT) -> bool:
    """
    Initialize the engine and serve until a shutdown signal arrives.

    Args:
        engine: Engine to initialize and share across requests
        record: Process record to claim once the listener is bound
        host: Address to bind
        port: Port to bind

    Returns:
        False if the process record was taken by another live service

    Raises:
        EngineInitError: If the engine cannot be initialized
        ServiceStartError: If the server stopped without ever listening
    """
    await engine.initialize()
    _log_info("Engine initialized, starting server...")

    config = uvicorn.Config(
        create_app(engine),
        host=host,
        port=port,
        log_config=None,
        lifespan="off",
    )
    server = RenderServer(config, record)
    await server.serve()
    if not server.started and not server.claim_failed:
        raise ServiceStartError(host, port)
    return not server.claim_failed


def start_server(
    macros_file: Optional[Path] = None,
    record: Optional[ProcessRecord] = None,
    host: str = HOST,
    port: int = PORT,
) -> StartOutcome:
    """
    Run the render service in this process unless one is already running.

    Blocks until the service is stopped.

    Args:
        macros_file: Optional JSON macro file merged over the built-in macros
        record: Process record (default: PID_FILE)
        host: Address to bind
        port: Port to bind

    Returns:
        StartOutcome.ALREADY_RUNNING or StartOutcome.STOPPED

    Raises:
        MacroConfigError: If the macro file is missing or malformed
        EngineInitError: If the engine cannot be initialized
        ServiceAlreadyRunningError: If another service claimed the record first
        ServiceStartError: If the port cannot be bound
    """
    record = record or ProcessRecord(PID_FILE)

    pid = record.live_pid()
    if pid is not None:
        _log_info(f"Server already running with PID {pid}")
        return StartOutcome.ALREADY_RUNNING

    engine = MathEngine.from_macros_file(macros_file)

    try:
        claimed = asyncio.run(serve(engine, record, host=host, port=port))
    except KeyboardInterrupt:
        # uvicorn re-raises the captured SIGINT once shutdown has completed
        claimed = True
    except SystemExit as e:
        # uvicorn exits with its own status when the listener cannot be bound
        raise ServiceStartError(host, port, reason=f"uvicorn exited with status {e.code}") from e

    if not claimed:
        raise ServiceAlreadyRunningError(record.read_pid() or -1)

    _log_info("Server stopped")
    return StartOutcome.STOPPED


def stop_server(
    record: Optional[ProcessRecord] = None,
    send_signal: Callable[[int, int], None] = os.kill,
) -> StopResult:
    """
    Ask the running render service to shut down.

    Args:
        record: Process record (default: PID_FILE)
        send_signal: Signal delivery function (default: os.kill)

    Returns:
        StopResult with the outcome and the recorded PID
    """
    record = record or ProcessRecord(PID_FILE)

    if not record.exists():
        _log_info("Server is not running")
        return StopResult(StopOutcome.NOT_RUNNING)

    pid = record.read_pid()
    if pid is None:
        _log_warning(f"Process record {record.path} is unreadable; removing it")
        record.remove()
        return StopResult(StopOutcome.STALE_RECORD)

    try:
        send_signal(pid, signal.SIGINT)
    except ProcessLookupError:
        _log_info(f"Server not running (PID {pid})")
        record.remove()
        return StopResult(StopOutcome.STALE_RECORD, pid)
    except PermissionError:
        _log_warning(f"PID {pid} belongs to a process we may not signal; leaving it and its record alone")
        return StopResult(StopOutcome.NOT_OURS, pid)

    _log_info(f"Sent stop signal to server (PID {pid})")
    return StopResult(StopOutcome.SIGNALED, pid)
