"""Directory listing helpers for the dispatch cycle."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator
from pathlib import Path

from spooldir.queue.errors import InvalidNameError
from spooldir.queue.models import JobFile
from spooldir.queue.status import JobStatus, split_name

logger = logging.getLogger(__name__)


def iter_job_files(directory: Path, *, skip_names: Collection[str] = ()) -> Iterator[JobFile]:
    """Yield every regular file whose name carries a known status suffix.

    Files without a suffix, with a foreign suffix, listed in ``skip_names``
    (the guard's control file) or that vanish while being inspected are
    skipped.  A missing directory yields nothing.
    """

    try:
        entries = sorted(directory.iterdir())
    except FileNotFoundError:
        return
    for path in entries:
        if path.name in skip_names:
            continue
        try:
            stem_part, suffix = split_name(path.name)
        except InvalidNameError:
            continue
        status = JobStatus.from_suffix(suffix)
        if status is None:
            continue
        try:
            if not path.is_file():
                continue
            yield JobFile.from_path(path, stem=stem_part, status=status)
        except FileNotFoundError:
            logger.debug("File disappeared during scan: %s", path)


def scan_directory(directory: Path, *, skip_names: Collection[str] = ()) -> list[JobFile]:
    """Snapshot of ``.PENDING`` jobs waiting to be claimed."""

    return [
        job
        for job in iter_job_files(directory, skip_names=skip_names)
        if job.status is JobStatus.NEW
    ]


def count_by_status(directory: Path, *, skip_names: Collection[str] = ()) -> dict[JobStatus, int]:
    counts = dict.fromkeys(JobStatus, 0)
    for job in iter_job_files(directory, skip_names=skip_names):
        counts[job.status] += 1
    return counts
