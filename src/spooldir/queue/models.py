"""Domain models for the spool queue."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from spooldir.queue.status import JobStatus


@dataclass(slots=True, frozen=True)
class JobFile:
    """One directory entry observed by a scan."""

    path: Path
    stem: str
    status: JobStatus
    modified_at: datetime

    @property
    def name(self) -> str:
        return self.path.name

    def sibling(self, status: JobStatus) -> Path:
        """Path of the same job under another status suffix."""

        return self.path.with_name(status.file_name(self.stem))

    @classmethod
    def from_path(cls, path: Path, *, stem: str, status: JobStatus) -> JobFile:
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
        return cls(path=path, stem=stem, status=status, modified_at=modified)


@dataclass(slots=True, frozen=True)
class JobRequest:
    """Parsed job content ready for the transport."""

    endpoint: str
    payload: str
    credentials: str | None = None


class DispatchOutcome(str, Enum):
    """Terminal result of processing one candidate file."""

    COMPLETED = "completed"
    CLAIM_LOST = "claim_lost"
    INVALID_JOB = "invalid_job"
    TRANSPORT_FAILED = "transport_failed"
    COMMIT_FAILED = "commit_failed"


@dataclass(slots=True)
class DispatchCycleSummary:
    """Counters for one scan-and-dispatch cycle."""

    scanned: int = 0
    completed: int = 0
    claim_lost: int = 0
    invalid: int = 0
    transport_failed: int = 0
    commit_failed: int = 0

    def record(self, outcome: DispatchOutcome) -> None:
        if outcome is DispatchOutcome.COMPLETED:
            self.completed += 1
        elif outcome is DispatchOutcome.CLAIM_LOST:
            self.claim_lost += 1
        elif outcome is DispatchOutcome.INVALID_JOB:
            self.invalid += 1
        elif outcome is DispatchOutcome.TRANSPORT_FAILED:
            self.transport_failed += 1
        else:
            self.commit_failed += 1

    @property
    def failed(self) -> int:
        """Claimed jobs that did not reach a committed response."""

        return self.invalid + self.transport_failed + self.commit_failed


@dataclass(slots=True)
class SweepSummary:
    """Counters for one retention sweep."""

    examined: int = 0
    deleted: int = 0
    failed: int = 0
