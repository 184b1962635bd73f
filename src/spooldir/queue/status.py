"""Status suffixes and the file-name codec that maps names to them."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath

from spooldir.queue.errors import InvalidNameError


class JobStatus(str, Enum):
    """Closed set of status suffixes encoded in job file names."""

    NEW = ".PENDING"
    IN_PROGRESS = ".DOING"
    DONE = ".DONE"
    RESPONSE = ".RESPONSE"

    @classmethod
    def from_suffix(cls, suffix: str) -> JobStatus | None:
        """Match a suffix case-insensitively, returning None when unknown."""

        return _BY_SUFFIX.get(suffix.upper())

    def file_name(self, stem: str) -> str:
        return f"{stem}{self.value}"


_BY_SUFFIX = {status.value: status for status in JobStatus}

# NEW is owned by producers and never swept.
RECOGNIZED_STATUSES = frozenset(
    {JobStatus.IN_PROGRESS, JobStatus.DONE, JobStatus.RESPONSE},
)


def split_name(name: str | PurePath) -> tuple[str, str]:
    """Split a base name into ``(stem, suffix)`` at its last ``.``.

    The suffix keeps its leading dot so that ``stem + suffix`` rebuilds the
    base name exactly.  Only the final path component is considered.
    """

    base_name = PurePath(name).name
    stem_part, dot, tail = base_name.rpartition(".")
    if not dot:
        raise InvalidNameError(base_name)
    return stem_part, dot + tail


def stem(name: str | PurePath) -> str:
    return split_name(name)[0]


def status_suffix(name: str | PurePath) -> str:
    return split_name(name)[1]


def parse_status(name: str | PurePath) -> JobStatus | None:
    """Return the status encoded in ``name`` or None for foreign suffixes."""

    return JobStatus.from_suffix(status_suffix(name))


def is_recognized_status(suffix: str) -> bool:
    """True only for suffixes this system assigns itself."""

    return JobStatus.from_suffix(suffix) in RECOGNIZED_STATUSES


def is_new_job(suffix: str) -> bool:
    return JobStatus.from_suffix(suffix) is JobStatus.NEW
