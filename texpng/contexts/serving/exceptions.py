"""Custom exceptions for the serving context."""


class ServiceAlreadyRunningError(RuntimeError):
    """
    Raised when the process record is held by another live service.

    Attributes:
        pid: Process id named by the existing record
    """

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Server already running with PID {pid}")


class ServiceStartError(RuntimeError):
    """
    Raised when the render service cannot start listening.

    Attributes:
        host: Address the service tried to bind
        port: Port the service tried to bind
    """

    def __init__(self, host: str, port: int, reason: str = ""):
        self.host = host
        self.port = port
        message = f"Server could not listen on {host}:{port}"
        super().__init__(f"{message}: {reason}" if reason else message)
