"""Single-owner execution guard backed by a locked control file."""

from __future__ import annotations

import logging
import os
import socket
from datetime import UTC, datetime
from pathlib import Path
from typing import IO

from spooldir.queue.errors import GuardAcquisitionError, GuardAlreadyHeldError

logger = logging.getLogger(__name__)


class ExecutionGuard:
    """Exclusive claim on a watched directory for the lifetime of a process.

    The first process to create the control file owns the directory and
    keeps an advisory lock on it until :meth:`release`.  A process that finds
    the file already present raises :class:`GuardAlreadyHeldError` without
    touching anything.  With ``reclaim_stale=True`` a control file whose lock
    nobody holds (a crashed owner) is taken over instead.
    """

    def __init__(
        self,
        directory: Path,
        control_file_name: str,
        *,
        owner_id: str,
        reclaim_stale: bool = False,
    ) -> None:
        self.directory = directory
        self.control_path = directory / control_file_name
        self.owner_id = owner_id
        self.reclaim_stale = reclaim_stale
        self._handle: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> ExecutionGuard:
        if self._handle is not None:
            return self
        if self.control_path.exists():
            self._handle = self._reclaim_or_raise()
            return self

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise GuardAcquisitionError(self.control_path, str(error)) from error
        try:
            fd = os.open(self.control_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as error:
            # Lost the creation race to another instance.
            raise GuardAlreadyHeldError(self.control_path) from error
        except OSError as error:
            raise GuardAcquisitionError(self.control_path, str(error)) from error

        handle = os.fdopen(fd, "w", encoding="utf-8")
        try:
            _lock(handle)
            _write_owner_message(handle, self.owner_id)
        except OSError as error:
            handle.close()
            _unlink_quietly(self.control_path)
            raise GuardAcquisitionError(self.control_path, str(error)) from error

        self._handle = handle
        logger.info("Execution guard acquired: %s (owner=%s)", self.control_path, self.owner_id)
        return self

    def release(self) -> None:
        """Drop the lock and clean up; every step is best-effort."""

        handle = self._handle
        if handle is None:
            return
        self._handle = None

        try:
            _unlock(handle)
        except OSError as error:
            logger.warning("Failed to unlock control file %s: %s", self.control_path, error)
        finally:
            handle.close()

        try:
            self.control_path.unlink()
        except OSError as error:
            logger.warning("Failed to delete control file %s: %s", self.control_path, error)

        self._remove_directory_if_empty()
        logger.info("Execution guard released: %s", self.control_path)

    def _reclaim_or_raise(self) -> IO[str]:
        if not self.reclaim_stale:
            logger.info(
                "Control file %s exists, another dispatcher owns the directory",
                self.control_path,
            )
            raise GuardAlreadyHeldError(self.control_path)
        try:
            handle = self.control_path.open("r+", encoding="utf-8")
        except OSError as error:
            raise GuardAcquisitionError(self.control_path, str(error)) from error
        try:
            _lock(handle)
        except OSError as error:
            handle.close()
            raise GuardAlreadyHeldError(self.control_path) from error

        try:
            handle.seek(0)
            handle.truncate()
            _write_owner_message(handle, self.owner_id)
        except OSError as error:
            # Closing the handle drops the lock.
            handle.close()
            raise GuardAcquisitionError(self.control_path, str(error)) from error
        logger.warning(
            "Reclaimed stale control file %s (owner=%s)",
            self.control_path,
            self.owner_id,
        )
        return handle

    def _remove_directory_if_empty(self) -> None:
        # Racy by nature: a producer may drop a file between check and rmdir.
        try:
            if any(self.directory.iterdir()):
                return
            self.directory.rmdir()
        except FileNotFoundError:
            return
        except OSError as error:
            logger.warning("Failed to remove directory %s: %s", self.directory, error)
            return
        logger.info("Removed empty directory %s", self.directory)

    def __enter__(self) -> ExecutionGuard:
        return self.acquire()

    def __exit__(self, *_: object) -> None:
        self.release()


def default_owner_id() -> str:
    user = os.getenv("USER") or os.getenv("USERNAME") or "unknown"
    return f"{user}@{socket.gethostname()}"


def _write_owner_message(handle: IO[str], owner_id: str) -> None:
    started_at = datetime.now(tz=UTC).isoformat(timespec="seconds")
    handle.write(
        f"Dispatcher running. owner={owner_id} pid={os.getpid()} "
        f"host={socket.gethostname()} started_at={started_at}\n",
    )
    handle.flush()


def _lock(handle: IO[str]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock(handle: IO[str]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError as error:
        logger.warning("Failed to delete control file %s: %s", path, error)
