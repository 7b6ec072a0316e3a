"""tools/sonar/api.py

All SonarQube HTTP calls live here.

Design goals:
  - Keep network I/O separated from the reconcile/token policy.
  - Every call that changes or reads server state goes through the
    RemoteCallExecutor, so any failure aborts the run the same way.
  - Existence checks return a typed QueryResult instead of leaving callers to
    grep response bodies.
  - Readiness checks (server status, token validation) are best-effort and
    return plain values; the poller decides when to give up.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from workflow.executor import RemoteCallExecutor

from .types import (
    GateCondition,
    Project,
    QualityGate,
    QualityProfile,
    QueryResult,
    SonarServerConfig,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 500


def _parse_gate(data: Dict[str, Any]) -> QualityGate:
    conditions = tuple(
        GateCondition(
            id=str(c.get("id", "")),
            metric=str(c.get("metric", "")),
            op=str(c.get("op", "")),
            error=str(c.get("error", "")),
        )
        for c in (data.get("conditions") or [])
    )
    return QualityGate(
        name=str(data.get("name", "")),
        conditions=conditions,
        is_default=bool(data.get("isDefault", False)),
    )


class SonarQubeApi:
    def __init__(
        self,
        cfg: SonarServerConfig,
        executor: RemoteCallExecutor,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.cfg = cfg
        self.executor = executor
        self.session = session or requests.Session()
        self.session.auth = (cfg.login, cfg.password)

    # -------------------------
    # Transport
    # -------------------------

    def _url(self, path: str) -> str:
        return f"{self.cfg.url.rstrip('/')}/{path.lstrip('/')}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> requests.Response:
        logger.debug("GET %s params=%s", path, params)
        return self.session.get(self._url(path), params=params, timeout=self.cfg.timeout, **kwargs)

    def _post(self, path: str, data: Optional[Dict[str, Any]] = None, **kwargs: Any) -> requests.Response:
        logger.debug("POST %s data=%s", path, sorted((data or {}).keys()))
        return self.session.post(self._url(path), data=data, timeout=self.cfg.timeout, **kwargs)

    # -------------------------
    # Readiness checks
    # -------------------------

    def system_status(self) -> Optional[str]:
        """Return the server status (UP, STARTING, DB_MIGRATION_NEEDED...) or None."""
        try:
            resp = self._get("api/system/status")
        except requests.RequestException as e:
            logger.debug("system status unavailable: %s", e)
            return None
        if not resp.ok:
            return None
        try:
            return (resp.json() or {}).get("status")
        except ValueError:
            return None

    def is_up(self) -> bool:
        return self.system_status() == "UP"

    def validate_token(self, token: str) -> bool:
        """Ask the server whether ``token`` authenticates (token as basic login)."""
        try:
            resp = self.session.get(
                self._url("api/authentication/validate"),
                auth=(token, ""),
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            logger.debug("token validation unavailable: %s", e)
            return False
        if not resp.ok:
            return False
        try:
            return bool((resp.json() or {}).get("valid", False))
        except ValueError:
            return False

    # -------------------------
    # Projects
    # -------------------------

    def list_projects(self) -> List[Project]:
        projects: List[Project] = []
        page = 1
        while True:
            data = self.executor.execute_json(
                lambda: self._get("api/projects/search", {"p": page, "ps": PAGE_SIZE}),
                "Error listing projects.",
            )
            components = data.get("components") or []
            projects.extend(
                Project(key=str(c.get("key", "")), name=str(c.get("name", ""))) for c in components
            )
            total = int((data.get("paging") or {}).get("total", len(projects)))
            if len(components) < PAGE_SIZE or len(projects) >= total:
                return projects
            page += 1

    def find_project(self, *, name: str, key: Optional[str] = None) -> QueryResult[Project]:
        """Find a project whose name (or key) matches exactly."""
        for project in self.list_projects():
            if project.name == name or (key is not None and project.key == key):
                return QueryResult.present(project)
        return QueryResult.absent()

    def create_project(self, key: str, name: str) -> None:
        self.executor.execute(
            lambda: self._post("api/projects/create", {"project": key, "name": name}),
            f"The {name} project was not created correctly in SonarQube.",
        )

    def rename_main_branch(self, project_key: str, branch: str) -> None:
        self.executor.execute(
            lambda: self._post("api/project_branches/rename", {"project": project_key, "name": branch}),
            f"Error renaming the main branch of {project_key} to {branch}.",
        )

    # -------------------------
    # Quality gates
    # -------------------------

    def show_quality_gate(self, name: str) -> QueryResult[QualityGate]:
        """404 means absent; any other answer must be a readable gate."""
        failure_message = f"Error when looking for the Quality Gates: {name}."
        resp = self.executor.execute(
            lambda: self._get("api/qualitygates/show", {"name": name}),
            failure_message,
            accept=(404,),
        )
        if resp.status_code == 404:
            return QueryResult.absent()
        try:
            data = resp.json()
        except ValueError:
            raise self.executor.failure(failure_message, "invalid JSON") from None
        if not isinstance(data, dict):
            raise self.executor.failure(failure_message, "invalid JSON")
        return QueryResult.present(_parse_gate(data))

    def create_quality_gate(self, name: str) -> None:
        self.executor.execute(
            lambda: self._post("api/qualitygates/create", {"name": name}),
            f"Error creating the Quality Gates: {name}.",
        )

    def set_default_quality_gate(self, name: str) -> None:
        self.executor.execute(
            lambda: self._post("api/qualitygates/set_as_default", {"name": name}),
            f"Error when defining the Quality Gates: {name} as default.",
        )

    def update_gate_condition(self, condition: GateCondition, *, op: str, error: str) -> None:
        self.executor.execute(
            lambda: self._post(
                "api/qualitygates/update_condition",
                {"id": condition.id, "metric": condition.metric, "op": op, "error": error},
            ),
            f"Error when modifying the {condition.metric} property",
        )

    def select_quality_gate(self, project_key: str, gate_name: str) -> None:
        self.executor.execute(
            lambda: self._post("api/qualitygates/select", {"gateName": gate_name, "projectKey": project_key}),
            f"Error when modifying the Quality Gate of the {project_key} project",
        )

    # -------------------------
    # Quality profiles
    # -------------------------

    def find_quality_profile(self, name: str, language: str) -> QueryResult[QualityProfile]:
        data = self.executor.execute_json(
            lambda: self._get("api/qualityprofiles/search", {"language": language}),
            f"Error getting {language} Quality Profiles.",
        )
        for p in data.get("profiles") or []:
            if p.get("name") == name:
                return QueryResult.present(
                    QualityProfile(
                        key=str(p.get("key", "")),
                        name=str(p.get("name", "")),
                        language=str(p.get("language", language)),
                        is_default=bool(p.get("isDefault", False)),
                    )
                )
        return QueryResult.absent()

    def restore_quality_profile(self, backup: Path) -> None:
        def _restore() -> requests.Response:
            with backup.open("rb") as fh:
                return self._post(
                    "api/qualityprofiles/restore",
                    files={"backup": (backup.name, fh, "application/xml")},
                )

        self.executor.execute(_restore, "Failed to restore Quality Profile.")

    def set_default_quality_profile(self, name: str, language: str) -> None:
        self.executor.execute(
            lambda: self._post("api/qualityprofiles/set_default", {"qualityProfile": name, "language": language}),
            "Error setting quality profile as default.",
        )

    def add_project_to_profile(self, project_key: str, name: str, language: str) -> None:
        self.executor.execute(
            lambda: self._post(
                "api/qualityprofiles/add_project",
                {"project": project_key, "qualityProfile": name, "language": language},
            ),
            f"Error when modifying the {language} Quality Profiles of the {project_key} project",
        )

    # -------------------------
    # Tokens
    # -------------------------

    def generate_user_token(self, login: str, token_name: str) -> Dict[str, Any]:
        data = self.executor.execute_json(
            lambda: self._post("api/user_tokens/generate", {"login": login, "name": token_name}),
            "Authentication token not generated in SonarQube.",
        )
        return data if isinstance(data, dict) else {}
