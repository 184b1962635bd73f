"""Runtime configuration for the spool dispatcher."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from spooldir.http.transport import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)
from spooldir.queue.errors import InvalidNameError
from spooldir.queue.guard import default_owner_id
from spooldir.queue.status import JobStatus, parse_status

DEFAULT_CONTROL_FILE = ".spooldir.lock"


@dataclass(slots=True)
class QueueSettings:
    """Watched directory, guard and timer settings."""

    directory: Path | None = None
    control_file_name: str = DEFAULT_CONTROL_FILE
    owner_id: str = field(default_factory=default_owner_id)
    reclaim_stale_guard: bool = False
    poll_interval_seconds: float = 5.0
    sweep_interval_seconds: float = 3_600.0
    sweep_initial_delay_seconds: float = 5.0
    retention_seconds: float = 3_600.0


@dataclass(slots=True)
class TransportSettings:
    """Outbound HTTP settings."""

    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    content_type: str = DEFAULT_CONTENT_TYPE
    user_agent: str = DEFAULT_USER_AGENT
    accept_fault_responses: bool = True


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    queue: QueueSettings = field(default_factory=QueueSettings)
    transport: TransportSettings = field(default_factory=TransportSettings)

    @classmethod
    def from_env(
        cls,
        directory: Path | None = None,
        control_file_name: str | None = None,
    ) -> Settings:
        """Load settings from environment; explicit arguments take precedence."""

        env_directory = os.getenv("SPOOLDIR_DIRECTORY", "").strip()
        return cls(
            queue=QueueSettings(
                directory=directory or (Path(env_directory) if env_directory else None),
                control_file_name=(
                    control_file_name
                    or os.getenv("SPOOLDIR_CONTROL_FILE", DEFAULT_CONTROL_FILE).strip()
                ),
                owner_id=os.getenv("SPOOLDIR_OWNER_ID", "").strip() or default_owner_id(),
                reclaim_stale_guard=_env_bool("SPOOLDIR_RECLAIM_STALE_GUARD", default=False),
                poll_interval_seconds=_env_float("SPOOLDIR_POLL_INTERVAL_SECONDS", 5.0),
                sweep_interval_seconds=_env_float("SPOOLDIR_SWEEP_INTERVAL_SECONDS", 3_600.0),
                sweep_initial_delay_seconds=_env_float(
                    "SPOOLDIR_SWEEP_INITIAL_DELAY_SECONDS",
                    5.0,
                ),
                retention_seconds=_env_float("SPOOLDIR_RETENTION_SECONDS", 3_600.0),
            ),
            transport=TransportSettings(
                request_timeout_seconds=_env_float(
                    "SPOOLDIR_REQUEST_TIMEOUT_SECONDS",
                    DEFAULT_TIMEOUT_SECONDS,
                ),
                max_retries=int(os.getenv("SPOOLDIR_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))),
                content_type=os.getenv("SPOOLDIR_CONTENT_TYPE", DEFAULT_CONTENT_TYPE),
                user_agent=os.getenv("SPOOLDIR_USER_AGENT", DEFAULT_USER_AGENT),
                accept_fault_responses=_env_bool(
                    "SPOOLDIR_ACCEPT_FAULT_RESPONSES",
                    default=True,
                ),
            ),
        )

    @property
    def directory(self) -> Path:
        if self.queue.directory is None:
            raise ValueError("SPOOLDIR_DIRECTORY is required. Set it or pass --directory.")
        return self.queue.directory

    def validate(self) -> None:
        """Raise configuration error for missing or out-of-range values."""

        _ = self.directory
        name = self.queue.control_file_name
        if not name or Path(name).name != name:
            raise ValueError(
                f"SPOOLDIR_CONTROL_FILE must be a plain file name, got {name!r}.",
            )
        if _name_status(name) is not None:
            raise ValueError(
                f"SPOOLDIR_CONTROL_FILE must not end in a job status suffix, got {name!r}.",
            )
        if self.queue.poll_interval_seconds <= 0:
            raise ValueError("SPOOLDIR_POLL_INTERVAL_SECONDS must be > 0.")
        if self.queue.sweep_interval_seconds <= 0:
            raise ValueError("SPOOLDIR_SWEEP_INTERVAL_SECONDS must be > 0.")
        if self.queue.sweep_initial_delay_seconds < 0:
            raise ValueError("SPOOLDIR_SWEEP_INITIAL_DELAY_SECONDS must be >= 0.")
        if self.queue.retention_seconds < 0:
            raise ValueError("SPOOLDIR_RETENTION_SECONDS must be >= 0.")
        if self.transport.request_timeout_seconds <= 0:
            raise ValueError("SPOOLDIR_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.transport.max_retries < 0:
            raise ValueError("SPOOLDIR_MAX_RETRIES must be >= 0.")


def _name_status(name: str) -> JobStatus | None:
    try:
        return parse_status(name)
    except InvalidNameError:
        return None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
