"""Retention sweep for terminal and orphaned job files."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from spooldir.queue.models import SweepSummary
from spooldir.queue.scanner import iter_job_files
from spooldir.queue.status import RECOGNIZED_STATUSES

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 3_600


class RetentionSweeper:
    """Deletes ``.DOING``/``.DONE``/``.RESPONSE`` files older than ``max_age_seconds``."""

    def __init__(
        self,
        *,
        directory: Path,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        control_file_name: str | None = None,
    ) -> None:
        self.directory = directory
        self.max_age_seconds = max_age_seconds
        self._skip_names = (control_file_name,) if control_file_name else ()

    def sweep(self, *, now: float | None = None) -> SweepSummary:
        summary = SweepSummary()
        current = time.time() if now is None else now
        for job in iter_job_files(self.directory, skip_names=self._skip_names):
            if job.status not in RECOGNIZED_STATUSES:
                continue
            summary.examined += 1
            age = current - job.modified_at.timestamp()
            if age <= self.max_age_seconds:
                continue
            try:
                job.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as error:
                summary.failed += 1
                logger.warning("Failed to delete expired file %s: %s", job.path, error)
                continue
            summary.deleted += 1
            logger.debug("Deleted expired file %s (age %.0fs)", job.name, age)

        if summary.deleted or summary.failed:
            logger.info(
                "Retention sweep of %s: deleted=%d failed=%d",
                self.directory,
                summary.deleted,
                summary.failed,
            )
        return summary
