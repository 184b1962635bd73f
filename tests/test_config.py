from __future__ import annotations

from pathlib import Path

import allure
import pytest

from spooldir.config import QueueSettings, Settings, TransportSettings

pytestmark = [
    allure.epic("Job Queue"),
    allure.feature("Configuration"),
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (
        "SPOOLDIR_DIRECTORY",
        "SPOOLDIR_CONTROL_FILE",
        "SPOOLDIR_POLL_INTERVAL_SECONDS",
        "SPOOLDIR_RECLAIM_STALE_GUARD",
        "SPOOLDIR_RETENTION_SECONDS",
        "SPOOLDIR_OWNER_ID",
        "SPOOLDIR_ACCEPT_FAULT_RESPONSES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_spooldir_variables(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SPOOLDIR_DIRECTORY", str(tmp_path))
    monkeypatch.setenv("SPOOLDIR_CONTROL_FILE", "owner.lck")
    monkeypatch.setenv("SPOOLDIR_POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("SPOOLDIR_RECLAIM_STALE_GUARD", "yes")
    monkeypatch.setenv("SPOOLDIR_OWNER_ID", "svc-account")

    settings = Settings.from_env()

    assert settings.directory == tmp_path
    assert settings.queue.control_file_name == "owner.lck"
    assert settings.queue.poll_interval_seconds == 2.5
    assert settings.queue.reclaim_stale_guard is True
    assert settings.queue.owner_id == "svc-account"
    assert settings.queue.retention_seconds == 3_600.0


def test_explicit_arguments_override_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SPOOLDIR_DIRECTORY", "/from/env")
    monkeypatch.setenv("SPOOLDIR_CONTROL_FILE", "env.lck")

    settings = Settings.from_env(directory=tmp_path, control_file_name="cli.lck")

    assert settings.directory == tmp_path
    assert settings.queue.control_file_name == "cli.lck"


def test_missing_directory_is_fatal() -> None:
    with pytest.raises(ValueError, match="SPOOLDIR_DIRECTORY is required"):
        Settings.from_env().validate()


def test_control_file_must_be_plain_name(tmp_path: Path) -> None:
    settings = Settings(queue=QueueSettings(directory=tmp_path, control_file_name="a/b.lck"))

    with pytest.raises(ValueError, match="SPOOLDIR_CONTROL_FILE"):
        settings.validate()


@pytest.mark.parametrize("name", ["owner.DONE", "owner.pending", "x.Doing", "lock.RESPONSE"])
def test_control_file_must_not_carry_status_suffix(tmp_path: Path, name: str) -> None:
    settings = Settings(queue=QueueSettings(directory=tmp_path, control_file_name=name))

    with pytest.raises(ValueError, match="status suffix"):
        settings.validate()


def test_control_file_without_suffix_is_accepted(tmp_path: Path) -> None:
    Settings(queue=QueueSettings(directory=tmp_path, control_file_name="spooldir-lock")).validate()


def test_rejects_non_positive_poll_interval(tmp_path: Path) -> None:
    settings = Settings(queue=QueueSettings(directory=tmp_path, poll_interval_seconds=0))

    with pytest.raises(ValueError, match="SPOOLDIR_POLL_INTERVAL_SECONDS"):
        settings.validate()


def test_rejects_negative_retries(tmp_path: Path) -> None:
    settings = Settings(
        queue=QueueSettings(directory=tmp_path),
        transport=TransportSettings(max_retries=-1),
    )

    with pytest.raises(ValueError, match="SPOOLDIR_MAX_RETRIES"):
        settings.validate()


def test_invalid_numeric_env_names_the_variable(monkeypatch) -> None:
    monkeypatch.setenv("SPOOLDIR_RETENTION_SECONDS", "an hour")

    with pytest.raises(ValueError, match="SPOOLDIR_RETENTION_SECONDS"):
        Settings.from_env()


def test_invalid_boolean_env_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("SPOOLDIR_RECLAIM_STALE_GUARD", "maybe")

    with pytest.raises(ValueError, match="Invalid boolean"):
        Settings.from_env()


def test_fault_responses_accepted_by_default_and_configurable(monkeypatch) -> None:
    assert Settings.from_env().transport.accept_fault_responses is True

    monkeypatch.setenv("SPOOLDIR_ACCEPT_FAULT_RESPONSES", "off")

    assert Settings.from_env().transport.accept_fault_responses is False
