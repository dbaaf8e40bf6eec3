"""
Process record: the on-disk file naming the running render service's PID.

At most one live service should hold the record. The record is created with
an exclusive create, so two services can never both believe they wrote it.
A record naming a dead process is stale and is removed when noticed.

Accepted race: two starters that both find the same stale record may both
remove it; the first exclusive create wins and the loser sees the winner's
live PID. If the winner dies in that window, the loser's retry succeeds.
"""

import os
from pathlib import Path
from typing import Callable, Optional

from texpng.contexts.serving.exceptions import ServiceAlreadyRunningError
from texpng.contexts.serving.logger import _log_debug, _log_info


def pid_is_alive(pid: int) -> bool:
    """
    Check a process with signal 0.

    Args:
        pid: Process id to check

    Returns:
        True if the process exists (even if owned by another user)
    """
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class ProcessRecord:
    """
    PID file with injectable location and liveness check.

    Attributes:
        path: Location of the record file
        is_alive: Callable deciding whether a PID names a live process
    """

    def __init__(self, path: Path, is_alive: Callable[[int], bool] = pid_is_alive):
        self.path = Path(path)
        self.is_alive = is_alive

    def exists(self) -> bool:
        return self.path.exists()

    def read_pid(self) -> Optional[int]:
        """Return the recorded PID, or None if the record is missing or garbled."""
        try:
            return int(self.path.read_text(encoding="utf-8").strip())
        except (FileNotFoundError, ValueError):
            return None

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)

    def live_pid(self) -> Optional[int]:
        """
        PID of the live service named by the record.

        A record naming a dead process (or holding no valid PID) is removed.

        Returns:
            The live PID, or None if no live service holds the record
        """
        if not self.exists():
            return None

        pid = self.read_pid()
        if pid is not None and self.is_alive(pid):
            return pid

        _log_info(f"Removing stale process record {self.path} (PID {pid})")
        self.remove()
        return None

    def _create(self, pid: int) -> None:
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(str(pid))

    def claim(self, pid: int) -> None:
        """
        Atomically record pid as the running service.

        Args:
            pid: Process id of the service claiming the record

        Raises:
            ServiceAlreadyRunningError: If another live process holds the record
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._create(pid)
        except FileExistsError:
            owner = self.live_pid()
            if owner is not None and owner != pid:
                raise ServiceAlreadyRunningError(owner)
            if owner == pid:
                return
            # Stale record was just removed; one more attempt
            try:
                self._create(pid)
            except FileExistsError:
                raise ServiceAlreadyRunningError(self.read_pid() or -1)

        _log_debug(f"Wrote process record {self.path} (PID {pid})")

    def release(self, pid: int) -> bool:
        """
        Remove the record if it still names pid.

        Returns:
            True if the record was removed
        """
        if self.read_pid() != pid:
            return False
        self.remove()
        _log_debug(f"Removed process record {self.path}")
        return True
