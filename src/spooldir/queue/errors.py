"""Exception hierarchy for the spool queue."""

from __future__ import annotations

from pathlib import Path


class SpoolError(Exception):
    """Base error for queue operations."""


class InvalidNameError(SpoolError, ValueError):
    """File name carries no ``.``-delimited status suffix."""

    def __init__(self, name: str) -> None:
        super().__init__(f"File name has no status suffix: {name!r}")
        self.name = name


class InvalidJobError(SpoolError):
    """Job file content cannot be turned into a request."""


class TransportError(SpoolError):
    """Outbound call failed or returned an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GuardAlreadyHeldError(SpoolError):
    """Another owner is already operating on the directory."""

    def __init__(self, control_path: Path) -> None:
        super().__init__(f"Dispatcher already running: control file {control_path} exists.")
        self.control_path = control_path


class GuardAcquisitionError(SpoolError):
    """Control file could not be created or locked."""

    def __init__(self, control_path: Path, reason: str) -> None:
        super().__init__(f"Cannot acquire execution guard {control_path}: {reason}")
        self.control_path = control_path
