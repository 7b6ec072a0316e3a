"""tools/docker/compose.py

Docker Compose manifest for the SonarQube + PostgreSQL pair.

* :func:`build_manifest` returns the manifest as plain data (pure);
* :func:`write_manifest` / :func:`remove_manifest` manage the file;
* :func:`compose_up_command` builds the ``up -d`` command line that the
  controller runs through the RemoteCallExecutor.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, Dict, List

import yaml

from tools.io import remove_file, write_text
from workflow.errors import LocalFileError

SONAR_PORT = 9000
POSTGRES_PORT = 5432
NETWORK = "sonarnet"
RESTART_POLICY = "on-failure:5"
STOP_GRACE_PERIOD = "5m"

SONAR_VOLUMES: Dict[str, str] = {
    "sonarqube_data": "/opt/sonarqube/data",
    "sonarqube_logs": "/opt/sonarqube/logs",
    "sonarqube_conf": "/opt/sonarqube/conf",
    "sonarqube_extensions": "/opt/sonarqube/extensions",
    "sonarqube_bundled-plugins": "/opt/sonarqube/lib/bundled-plugins",
}

POSTGRES_VOLUMES: Dict[str, str] = {
    "postgresql": "/var/lib/postgresql",
    "postgresql_data": "/var/lib/postgresql/data",
}


def build_manifest(
    *,
    sonar_image: str,
    postgres_image: str,
    db_user: str = "sonar",
    db_password: str = "sonar",
    db_name: str = "sonar",
) -> Dict[str, Any]:
    def _volumes(mapping: Dict[str, str]) -> List[str]:
        return [f"{name}:{target}" for name, target in mapping.items()]

    return {
        "services": {
            "sonarqube": {
                "image": sonar_image,
                "container_name": "sonarqube",
                "ports": [f"{SONAR_PORT}:{SONAR_PORT}"],
                "environment": {
                    "SONAR_JDBC_URL": f"jdbc:postgresql://postgresql:{POSTGRES_PORT}/{db_name}",
                    "SONAR_JDBC_USERNAME": db_user,
                    "SONAR_JDBC_PASSWORD": db_password,
                    "SONAR_ES_BOOTSTRAP_CHECKS_DISABLE": "true",
                },
                "volumes": _volumes(SONAR_VOLUMES),
                "networks": [NETWORK],
                "depends_on": ["postgresql"],
                "restart": RESTART_POLICY,
                "stop_grace_period": STOP_GRACE_PERIOD,
            },
            "postgresql": {
                "image": postgres_image,
                "container_name": "postgreSQL",
                "ports": [f"{POSTGRES_PORT}:{POSTGRES_PORT}"],
                "environment": {
                    "POSTGRES_USER": db_user,
                    "POSTGRES_PASSWORD": db_password,
                    "POSTGRES_DB": db_name,
                },
                "volumes": _volumes(POSTGRES_VOLUMES),
                "networks": [NETWORK],
                "restart": RESTART_POLICY,
                "stop_grace_period": STOP_GRACE_PERIOD,
            },
        },
        "networks": {NETWORK: {"driver": "bridge"}},
        "volumes": {name: None for name in (*SONAR_VOLUMES, *POSTGRES_VOLUMES)},
    }


def render_manifest(manifest: Dict[str, Any]) -> str:
    return yaml.safe_dump(manifest, sort_keys=False, default_flow_style=False)


def write_manifest(path: Path, manifest: Dict[str, Any]) -> Path:
    try:
        write_text(path, render_manifest(manifest))
    except OSError as e:
        raise LocalFileError(f"Could not write {path}: {e.strerror or e}") from e
    return path


def remove_manifest(path: Path) -> bool:
    return remove_file(path)


def compose_up_command(compose_command: str, manifest_path: Path) -> List[str]:
    """``<compose_command> -f <manifest> up -d`` as an argv list."""
    return [*shlex.split(compose_command), "-f", str(manifest_path), "up", "-d"]
