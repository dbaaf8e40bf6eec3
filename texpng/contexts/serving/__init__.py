"""
Serving Context

Responsibilities:
- Exposes the render service over HTTP (/status, /render)
- Enforces a single running service through the process record
- Starts, stops and cleanly shuts down the service

Owns: HTTP surface, process record, service lifecycle
Never: Typesets or rasterizes math itself
"""

from texpng.contexts.serving.app import RenderRequest, create_app
from texpng.contexts.serving.config import HOST, PID_FILE, PORT
from texpng.contexts.serving.exceptions import ServiceAlreadyRunningError, ServiceStartError
from texpng.contexts.serving.lifecycle import (
    StartOutcome,
    StopOutcome,
    StopResult,
    start_server,
    stop_server,
)
from texpng.contexts.serving.process_record import ProcessRecord, pid_is_alive

__all__ = [
    # Configuration
    "HOST",
    "PORT",
    "PID_FILE",
    # HTTP application
    "create_app",
    "RenderRequest",
    # Lifecycle
    "start_server",
    "stop_server",
    "StartOutcome",
    "StopOutcome",
    "StopResult",
    "ProcessRecord",
    "pid_is_alive",
    "ServiceAlreadyRunningError",
    "ServiceStartError",
]
