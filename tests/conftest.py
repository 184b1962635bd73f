"""Shared test fixtures."""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from spooldir.queue.errors import TransportError


@dataclass
class RecordingTransport:
    """In-memory transport that records calls and replays a fixed response."""

    response: bytes = b"<ok/>"
    error: TransportError | None = None
    calls: list[tuple[str, str | None, str]] = field(default_factory=list)

    def send(self, endpoint: str, credentials: str | None, payload: str) -> bytes:
        self.calls.append((endpoint, credentials, payload))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def spool_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "spool"
    directory.mkdir()
    return directory


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def write_job(spool_dir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, content: str) -> Path:
        path = spool_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def age_file() -> Callable[..., None]:
    """Set a file's mtime ``seconds`` before ``now``."""

    def _age(path: Path, seconds: float, *, now: float | None = None) -> None:
        reference = time.time() if now is None else now
        os.utime(path, (reference - seconds, reference - seconds))

    return _age
