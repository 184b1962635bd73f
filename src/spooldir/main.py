"""CLI entrypoint for spooldir."""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from spooldir import __version__
from spooldir.controllers import (
    RequeueCommand,
    RunCommand,
    SpoolCliController,
    StatusCommand,
    SweepCommand,
)
from spooldir.queue.errors import GuardAcquisitionError, GuardAlreadyHeldError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = SpoolCliController()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

directory_option = click.option(
    "--directory",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Watched directory. Defaults to SPOOLDIR_DIRECTORY.",
)
control_file_option = click.option(
    "--control-file",
    default=None,
    help="Control file name inside the directory. Defaults to SPOOLDIR_CONTROL_FILE.",
)


@click.group()
@click.version_option(version=__version__, prog_name="spooldir")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level. Defaults to SPOOLDIR_LOG_LEVEL or INFO.",
)
def spooldir(log_level: str | None) -> None:
    """Directory-based job queue dispatcher."""

    level = (log_level or os.getenv("SPOOLDIR_LOG_LEVEL", "INFO")).strip().upper()
    if level not in LOG_LEVELS:
        raise click.ClickException(
            f"Invalid SPOOLDIR_LOG_LEVEL {level!r}, expected one of: {', '.join(LOG_LEVELS)}.",
        )
    logging.basicConfig(level=level, format=LOG_FORMAT)


@spooldir.command("run")
@directory_option
@control_file_option
@click.option(
    "--once/--forever",
    default=False,
    show_default=True,
    help="Run a single dispatch cycle and sweep, then exit.",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between dispatch cycles. Defaults to SPOOLDIR_POLL_INTERVAL_SECONDS.",
)
@click.option(
    "--retention-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Age after which finished files are deleted. Defaults to SPOOLDIR_RETENTION_SECONDS.",
)
def run(
    directory: Path | None,
    control_file: str | None,
    once: bool,
    poll_interval: float | None,
    retention_seconds: float | None,
) -> None:
    """Own the directory and dispatch pending jobs until interrupted."""

    _emit_guarded(
        lambda: CONTROLLER.run(
            RunCommand(
                directory=directory,
                control_file=control_file,
                once=once,
                poll_interval_seconds=poll_interval,
                retention_seconds=retention_seconds,
            ),
        ),
    )


@spooldir.command("sweep")
@directory_option
@control_file_option
@click.option(
    "--retention-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Age after which finished files are deleted. Defaults to SPOOLDIR_RETENTION_SECONDS.",
)
def sweep(
    directory: Path | None,
    control_file: str | None,
    retention_seconds: float | None,
) -> None:
    """Delete expired `.DOING`, `.DONE` and `.RESPONSE` files once."""

    _emit_guarded(
        lambda: CONTROLLER.sweep(
            SweepCommand(
                directory=directory,
                control_file=control_file,
                retention_seconds=retention_seconds,
            ),
        ),
    )


@spooldir.command("status")
@directory_option
@control_file_option
def status(directory: Path | None, control_file: str | None) -> None:
    """Show file counts per status and whether a dispatcher owns the directory."""

    _emit_guarded(
        lambda: CONTROLLER.status(StatusCommand(directory=directory, control_file=control_file)),
    )


@spooldir.command("requeue")
@directory_option
@control_file_option
@click.argument("stems", nargs=-1)
def requeue(directory: Path | None, control_file: str | None, stems: tuple[str, ...]) -> None:
    """Move orphaned `.DOING` jobs back to `.PENDING`.

    Requires that no dispatcher is running on the directory. Without STEMS
    every orphan is requeued.
    """

    _emit_guarded(
        lambda: CONTROLLER.requeue(
            RequeueCommand(directory=directory, control_file=control_file, stems=stems),
        ),
        held_exit_code=1,
    )


def _emit_guarded(action: Callable[[], list[str]], *, held_exit_code: int = 0) -> None:
    try:
        lines = action()
    except GuardAlreadyHeldError as error:
        click.echo(str(error))
        raise SystemExit(held_exit_code) from error
    except (GuardAcquisitionError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    spooldir()
