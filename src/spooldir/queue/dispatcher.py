"""Claim, parse, send and commit pending job files."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from spooldir.http.transport import JobTransport
from spooldir.queue.errors import InvalidJobError, TransportError
from spooldir.queue.models import DispatchCycleSummary, DispatchOutcome, JobFile, JobRequest
from spooldir.queue.scanner import scan_directory
from spooldir.queue.status import JobStatus

logger = logging.getLogger(__name__)

CREDENTIALS_SEPARATOR = ";"
# Only CR, LF and CRLF end a line; other Unicode breaks belong to the payload.
LINE_BREAK = re.compile(r"\r\n|\r|\n")


def parse_job(text: str) -> JobRequest:
    """Parse job file content.

    Line one is ``endpoint`` or ``endpoint;secret`` (split on the first ``;``
    only, so the secret may itself contain ``;``).  All following lines are
    concatenated into the payload.
    """

    lines = LINE_BREAK.split(text)
    header = lines[0] if lines else ""
    if not header.strip():
        raise InvalidJobError("missing endpoint line")

    endpoint, _, secret = header.partition(CREDENTIALS_SEPARATOR)
    endpoint = endpoint.strip()
    if not endpoint:
        raise InvalidJobError("blank endpoint")

    payload = "".join(lines[1:])
    if not payload:
        raise InvalidJobError("empty request body")

    return JobRequest(endpoint=endpoint, payload=payload, credentials=secret or None)


class JobDispatcher:
    """Moves each pending job through the status protocol."""

    def __init__(
        self,
        *,
        directory: Path,
        transport: JobTransport,
        control_file_name: str | None = None,
    ) -> None:
        self.directory = directory
        self.transport = transport
        self._skip_names = (control_file_name,) if control_file_name else ()

    def run_cycle(self, *, should_stop: Callable[[], bool] | None = None) -> DispatchCycleSummary:
        """Scan once and process every candidate sequentially.

        ``should_stop`` is polled before each claim so a shutdown request leaves
        the remaining candidates untouched in `.PENDING`.
        """

        summary = DispatchCycleSummary()
        candidates = scan_directory(self.directory, skip_names=self._skip_names)
        summary.scanned = len(candidates)
        if candidates:
            logger.info("Found %d pending job(s) in %s", len(candidates), self.directory)
        for job in candidates:
            if should_stop is not None and should_stop():
                logger.info("Stop requested, leaving remaining jobs pending")
                break
            summary.record(self.process(job))
        return summary

    def process(self, job: JobFile) -> DispatchOutcome:
        claimed = self._claim(job)
        if claimed is None:
            return DispatchOutcome.CLAIM_LOST

        try:
            request = parse_job(claimed.read_text(encoding="utf-8-sig"))
        except (InvalidJobError, UnicodeDecodeError) as error:
            logger.error("Invalid job %s left in %s: %s", job.stem, claimed.name, error)
            return DispatchOutcome.INVALID_JOB
        except OSError as error:
            logger.error("Cannot read job %s: %s", claimed, error)
            return DispatchOutcome.INVALID_JOB

        try:
            response = self.transport.send(request.endpoint, request.credentials, request.payload)
        except TransportError as error:
            logger.error("Dispatch of job %s to %s failed: %s", job.stem, request.endpoint, error)
            return DispatchOutcome.TRANSPORT_FAILED

        return self._commit(job, claimed, response)

    def _claim(self, job: JobFile) -> Path | None:
        target = job.sibling(JobStatus.IN_PROGRESS)
        try:
            job.path.replace(target)
        except FileNotFoundError:
            logger.info("Job %s already claimed elsewhere, skipping", job.stem)
            return None
        except OSError as error:
            logger.warning("Cannot claim job %s: %s", job.path, error)
            return None
        logger.debug("Claimed %s -> %s", job.name, target.name)
        return target

    def _commit(self, job: JobFile, claimed: Path, response: bytes) -> DispatchOutcome:
        done_path = job.sibling(JobStatus.DONE)
        response_path = job.sibling(JobStatus.RESPONSE)
        try:
            claimed.replace(done_path)
            response_path.write_bytes(response)
        except OSError as error:
            logger.error("Failed to commit job %s: %s", job.stem, error)
            return DispatchOutcome.COMMIT_FAILED
        logger.info("Job %s done, response written to %s", job.stem, response_path.name)
        return DispatchOutcome.COMPLETED
