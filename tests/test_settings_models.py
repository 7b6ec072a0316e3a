from __future__ import annotations

from pathlib import Path

import pytest

from workflow.models import RunConfig, RunMode
from workflow.settings import PROFILES_DIR, Settings


def test_settings_defaults_from_empty_env() -> None:
    s = Settings.from_env({})

    assert s.sonar_url == "http://localhost:9000"
    assert s.admin_login == "admin"
    assert s.compose_command == "docker compose"
    assert s.open_browser is True
    assert s.profile_backup_path == PROFILES_DIR / "Quality_Profile_Java_Custom.xml"
    assert s.profile_backup_path.is_file()


def test_settings_read_overrides(tmp_path: Path) -> None:
    s = Settings.from_env(
        {
            "SONAR_URL": "http://sonar.internal:9000/",
            "SONAR_ADMIN_PASSWORD": "s3cret",
            "SONAR_QUALITY_GATE": "Strict",
            "SONAR_QUALITY_PROFILE_BACKUP": str(tmp_path / "p.xml"),
            "SONAR_ENV_WORKDIR": str(tmp_path),
            "SONAR_ENV_COMPOSE_CMD": "docker-compose",
            "SONAR_ENV_STARTUP_TIMEOUT": "12.5",
            "SONAR_ENV_OPEN_BROWSER": "no",
        }
    )

    assert s.sonar_url == "http://sonar.internal:9000"
    assert s.admin_password == "s3cret"
    assert s.quality_gate == "Strict"
    assert s.profile_backup_path == tmp_path / "p.xml"
    assert s.manifest_path == tmp_path / "docker-compose.yml"
    assert s.compose_command == "docker-compose"
    assert s.startup_timeout == 12.5
    assert s.open_browser is False


@pytest.mark.parametrize("raw", ["soon", "-1"])
def test_settings_reject_bad_timeouts(raw: str) -> None:
    with pytest.raises(ValueError) as ei:
        Settings.from_env({"SONAR_ENV_POLL_INTERVAL": raw})
    assert "SONAR_ENV_POLL_INTERVAL" in str(ei.value)


def test_run_config_modes() -> None:
    full = RunConfig.full(project_key="k", project_name="n", main_branch="m", analyze="a", directory="d")
    re = RunConfig.reanalysis(project_name="n", directory="d")

    assert full.mode is RunMode.FULL
    assert re.mode is RunMode.REANALYSIS
    assert isinstance(full.directory, Path)


@pytest.mark.parametrize("field", ["project_key", "main_branch", "analyze", "directory"])
def test_full_mode_rejects_empty_fields(field: str) -> None:
    values = dict(project_key="k", project_name="n", main_branch="m", analyze="a", directory="d")
    values[field] = ""
    with pytest.raises(ValueError):
        RunConfig.full(**values)


def test_empty_name_and_partial_fields_rejected() -> None:
    with pytest.raises(ValueError):
        RunConfig.reanalysis(project_name="", directory="d")
    with pytest.raises(ValueError):
        RunConfig(project_name="n", directory=Path("d"), project_key="k")


def test_run_config_is_immutable() -> None:
    cfg = RunConfig.reanalysis(project_name="n", directory="d")
    with pytest.raises(AttributeError):
        cfg.project_name = "other"  # type: ignore[misc]
