"""Controllers for spooldir CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from spooldir.config import Settings
from spooldir.http.transport import HttpTransport
from spooldir.queue.dispatcher import JobDispatcher
from spooldir.queue.guard import ExecutionGuard
from spooldir.queue.recovery import requeue_orphans
from spooldir.queue.scanner import count_by_status
from spooldir.queue.scheduler import DispatchScheduler
from spooldir.queue.status import JobStatus
from spooldir.queue.sweeper import RetentionSweeper


@dataclass(slots=True)
class RunCommand:
    """CLI input for the long-running dispatcher."""

    directory: Path | None
    control_file: str | None
    once: bool = False
    poll_interval_seconds: float | None = None
    retention_seconds: float | None = None


@dataclass(slots=True)
class SweepCommand:
    """CLI input for a one-off retention sweep."""

    directory: Path | None
    control_file: str | None
    retention_seconds: float | None = None


@dataclass(slots=True)
class StatusCommand:
    """CLI input for queue inspection."""

    directory: Path | None
    control_file: str | None


@dataclass(slots=True)
class RequeueCommand:
    """CLI input for returning orphaned jobs to the queue."""

    directory: Path | None
    control_file: str | None
    stems: tuple[str, ...] = ()


class SpoolCliController:
    """Builds components from settings and renders command output."""

    def load_settings(
        self,
        *,
        directory: Path | None,
        control_file: str | None,
    ) -> Settings:
        settings = Settings.from_env(directory=directory, control_file_name=control_file)
        settings.validate()
        return settings

    def run(self, command: RunCommand) -> list[str]:
        """Own the directory and dispatch jobs until stopped."""

        settings = self.load_settings(
            directory=command.directory,
            control_file=command.control_file,
        )
        if command.poll_interval_seconds is not None:
            settings.queue.poll_interval_seconds = command.poll_interval_seconds
        if command.retention_seconds is not None:
            settings.queue.retention_seconds = command.retention_seconds
        settings.validate()

        with _guard(settings), _transport(settings) as transport:
            scheduler = DispatchScheduler(
                dispatcher=JobDispatcher(
                    directory=settings.directory,
                    transport=transport,
                    control_file_name=settings.queue.control_file_name,
                ),
                sweeper=_sweeper(settings),
                poll_interval_seconds=settings.queue.poll_interval_seconds,
                sweep_interval_seconds=settings.queue.sweep_interval_seconds,
                sweep_initial_delay_seconds=settings.queue.sweep_initial_delay_seconds,
            )
            summary = scheduler.run_loop(max_cycles=1 if command.once else None)

        return [
            "Dispatcher summary: "
            f"cycles={summary.cycles} completed={summary.completed} "
            f"failed={summary.failed} sweeps={summary.sweeps} deleted={summary.deleted} "
            f"task_errors={summary.task_errors}",
        ]

    def sweep(self, command: SweepCommand) -> list[str]:
        settings = self.load_settings(
            directory=command.directory,
            control_file=command.control_file,
        )
        if command.retention_seconds is not None:
            settings.queue.retention_seconds = command.retention_seconds
            settings.validate()

        with _guard(settings):
            summary = _sweeper(settings).sweep()
        return [
            f"Sweep summary: examined={summary.examined} "
            f"deleted={summary.deleted} failed={summary.failed}",
        ]

    def status(self, command: StatusCommand) -> list[str]:
        """Read-only view; does not need the guard."""

        settings = self.load_settings(
            directory=command.directory,
            control_file=command.control_file,
        )
        directory = settings.directory
        control_path = directory / settings.queue.control_file_name
        lines = [f"Directory: {directory}"]
        if control_path.exists():
            owner = control_path.read_text(encoding="utf-8", errors="replace").strip()
            lines.append(f"Dispatcher: active ({owner or 'no owner message'})")
        else:
            lines.append("Dispatcher: not running")
        counts = count_by_status(directory, skip_names=(settings.queue.control_file_name,))
        lines.extend(f"{status.value:<10} {counts[status]}" for status in JobStatus)
        return lines

    def requeue(self, command: RequeueCommand) -> list[str]:
        settings = self.load_settings(
            directory=command.directory,
            control_file=command.control_file,
        )
        with _guard(settings):
            result = requeue_orphans(settings.directory, command.stems)

        lines = [f"Requeued: {job_stem}" for job_stem in result.requeued]
        lines.extend(
            f"Skipped {job_stem}: pending file already exists" for job_stem in result.conflicts
        )
        lines.extend(f"Skipped {job_stem}: no orphaned job" for job_stem in result.missing)
        lines.append(f"Requeue summary: requeued={len(result.requeued)}")
        return lines


def _guard(settings: Settings) -> ExecutionGuard:
    return ExecutionGuard(
        settings.directory,
        settings.queue.control_file_name,
        owner_id=settings.queue.owner_id,
        reclaim_stale=settings.queue.reclaim_stale_guard,
    )


def _transport(settings: Settings) -> HttpTransport:
    return HttpTransport(
        timeout_seconds=settings.transport.request_timeout_seconds,
        max_retries=settings.transport.max_retries,
        content_type=settings.transport.content_type,
        user_agent=settings.transport.user_agent,
        accept_fault_responses=settings.transport.accept_fault_responses,
    )


def _sweeper(settings: Settings) -> RetentionSweeper:
    return RetentionSweeper(
        directory=settings.directory,
        max_age_seconds=settings.queue.retention_seconds,
        control_file_name=settings.queue.control_file_name,
    )
