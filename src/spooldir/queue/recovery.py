"""Operator-driven recovery of orphaned ``.DOING`` jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from spooldir.queue.models import JobFile
from spooldir.queue.scanner import iter_job_files
from spooldir.queue.status import JobStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RequeueResult:
    """Outcome of a requeue pass."""

    requeued: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def list_orphans(directory: Path) -> list[JobFile]:
    return [job for job in iter_job_files(directory) if job.status is JobStatus.IN_PROGRESS]


def requeue_orphans(directory: Path, stems: tuple[str, ...] = ()) -> RequeueResult:
    """Rename orphaned jobs back to ``.PENDING`` so the next cycle retries them.

    Only safe while no dispatcher owns ``directory``; callers hold the
    execution guard.  With no ``stems`` every orphan is requeued.  A job whose
    ``.PENDING`` name is already taken is left alone and reported.
    """

    result = RequeueResult()
    orphans = {job.stem: job for job in list_orphans(directory)}
    wanted = stems or tuple(orphans)
    for job_stem in wanted:
        job = orphans.get(job_stem)
        if job is None:
            result.missing.append(job_stem)
            continue
        target = job.sibling(JobStatus.NEW)
        if target.exists():
            result.conflicts.append(job_stem)
            continue
        try:
            job.path.rename(target)
        except FileNotFoundError:
            result.missing.append(job_stem)
            continue
        logger.info("Requeued orphaned job %s", job_stem)
        result.requeued.append(job_stem)
    return result
