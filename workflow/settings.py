"""workflow.settings

Runtime configuration for the provisioning workflow.

Values come from environment variables (optionally seeded from a ``.env``
file by :func:`workflow.wiring.load_env`). The server address, the
administrator identity, image tags, quality gate/profile names and the
readiness timeouts all live here. Tests build a ``Settings`` directly instead
of touching the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

# tools/sonar/profiles/ ships the restorable quality profile backups.
PROFILES_DIR = Path(__file__).resolve().parents[1] / "tools" / "sonar" / "profiles"

SONAR_URL_DEFAULT = "http://localhost:9000"
QUALITY_PROFILE_DEFAULT = "Quality_Profile_Java_Custom"
QUALITY_GATE_DEFAULT = "Quality_Gates_Custom"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def _env_path(env: Mapping[str, str], name: str, default: Path) -> Path:
    raw = env.get(name)
    return Path(raw).expanduser() if raw else default


@dataclass(frozen=True)
class Settings:
    """Connection, naming and timing knobs for one run."""

    sonar_url: str = SONAR_URL_DEFAULT
    admin_login: str = "admin"
    admin_password: str = "admin"

    language: str = "java"
    java_version: str = "17"
    sonar_image: str = "sonarqube:community"
    postgres_image: str = "postgres:13"

    quality_profile: str = QUALITY_PROFILE_DEFAULT
    quality_gate: str = QUALITY_GATE_DEFAULT
    quality_profile_backup: Optional[Path] = None

    workdir: Path = field(default_factory=Path.cwd)
    token_dir: Path = field(default_factory=Path.cwd)
    compose_command: str = "docker compose"

    http_timeout: float = 30.0
    startup_timeout: float = 300.0
    settle_timeout: float = 60.0
    poll_interval: float = 2.0

    open_browser: bool = True

    @property
    def manifest_path(self) -> Path:
        return self.workdir / "docker-compose.yml"

    @property
    def profile_backup_path(self) -> Path:
        if self.quality_profile_backup is not None:
            return self.quality_profile_backup
        return PROFILES_DIR / f"{self.quality_profile}.xml"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        cwd = Path.cwd()
        backup = env.get("SONAR_QUALITY_PROFILE_BACKUP")

        return cls(
            sonar_url=(env.get("SONAR_URL") or SONAR_URL_DEFAULT).rstrip("/"),
            admin_login=env.get("SONAR_ADMIN_LOGIN") or "admin",
            admin_password=env.get("SONAR_ADMIN_PASSWORD") or "admin",
            language=env.get("SONAR_LANGUAGE") or "java",
            java_version=env.get("SONAR_JAVA_VERSION") or "17",
            sonar_image=env.get("SONAR_IMAGE") or "sonarqube:community",
            postgres_image=env.get("POSTGRES_IMAGE") or "postgres:13",
            quality_profile=env.get("SONAR_QUALITY_PROFILE") or QUALITY_PROFILE_DEFAULT,
            quality_gate=env.get("SONAR_QUALITY_GATE") or QUALITY_GATE_DEFAULT,
            quality_profile_backup=Path(backup).expanduser() if backup else None,
            workdir=_env_path(env, "SONAR_ENV_WORKDIR", cwd),
            token_dir=_env_path(env, "SONAR_ENV_TOKEN_DIR", cwd),
            compose_command=env.get("SONAR_ENV_COMPOSE_CMD") or "docker compose",
            http_timeout=_env_float(env, "SONAR_ENV_HTTP_TIMEOUT", 30.0),
            startup_timeout=_env_float(env, "SONAR_ENV_STARTUP_TIMEOUT", 300.0),
            settle_timeout=_env_float(env, "SONAR_ENV_SETTLE_TIMEOUT", 60.0),
            poll_interval=_env_float(env, "SONAR_ENV_POLL_INTERVAL", 2.0),
            open_browser=(env.get("SONAR_ENV_OPEN_BROWSER", "1").strip().lower() in _TRUTHY),
        )
