from __future__ import annotations

import xml.etree.ElementTree as ET
from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from tools.core_cmd import CmdResult
from tools.sonar.reconcile import ResourceReconciler
from tools.sonar.tokens import TokenManager
from tools.sonar.types import GateCondition, Project, QualityGate, QualityProfile, QueryResult
from workflow.cancellation import CancellationToken
from workflow.controller import OrchestrationController
from workflow.errors import RemoteCallError
from workflow.executor import RemoteCallExecutor
from workflow.models import RunConfig
from workflow.progress import ProgressReporter
from workflow.settings import Settings

SEEDED_CONDITIONS = (
    GateCondition(id="11", metric="new_coverage", op="LT", error="80"),
    GateCondition(id="12", metric="new_duplicated_lines_density", op="GT", error="3"),
    GateCondition(id="13", metric="new_violations", op="GT", error="0"),
)


class FakeSonarApi:
    """In-memory stand-in for SonarQubeApi that counts every call."""

    def __init__(
        self,
        *,
        projects: Optional[List[Project]] = None,
        gates: Optional[List[QualityGate]] = None,
        profiles: Optional[List[QualityProfile]] = None,
        token: str = "squ_test_token",
        seeded_conditions: Tuple[GateCondition, ...] = SEEDED_CONDITIONS,
    ) -> None:
        self.projects: Dict[str, Project] = {p.key: p for p in projects or []}
        self.gates: Dict[str, QualityGate] = {g.name: g for g in gates or []}
        self.profiles: Dict[Tuple[str, str], QualityProfile] = {
            (p.name, p.language): p for p in profiles or []
        }
        self.token = token
        self.seeded_conditions = seeded_conditions
        self.issued_tokens: List[str] = []
        self.token_names: List[str] = []
        self.calls: Counter = Counter()
        self.updated_conditions: List[Tuple[str, str, str, str]] = []
        self.selected_gates: List[Tuple[str, str]] = []
        self.profile_projects: List[Tuple[str, str, str]] = []
        self.renamed_branches: List[Tuple[str, str]] = []
        self.default_gate: Optional[str] = None
        self.default_profiles: Dict[str, str] = {}
        self.hooks: Dict[str, Callable[[], None]] = {}

    def _record(self, name: str) -> None:
        self.calls[name] += 1
        hook = self.hooks.get(name)
        if hook is not None:
            hook()

    # readiness
    def is_up(self) -> bool:
        self._record("is_up")
        return True

    def validate_token(self, token: str) -> bool:
        self._record("validate_token")
        return token in self.issued_tokens

    # projects
    def find_project(self, *, name: str, key: Optional[str] = None) -> QueryResult[Project]:
        self._record("find_project")
        for p in self.projects.values():
            if p.name == name or (key is not None and p.key == key):
                return QueryResult.present(p)
        return QueryResult.absent()

    def create_project(self, key: str, name: str) -> None:
        self._record("create_project")
        self.projects[key] = Project(key=key, name=name)

    def rename_main_branch(self, project_key: str, branch: str) -> None:
        self._record("rename_main_branch")
        self.renamed_branches.append((project_key, branch))

    # quality gates
    def show_quality_gate(self, name: str) -> QueryResult[QualityGate]:
        self._record("show_quality_gate")
        gate = self.gates.get(name)
        return QueryResult.present(gate) if gate else QueryResult.absent()

    def create_quality_gate(self, name: str) -> None:
        self._record("create_quality_gate")
        self.gates[name] = QualityGate(name=name, conditions=self.seeded_conditions)

    def set_default_quality_gate(self, name: str) -> None:
        self._record("set_default_quality_gate")
        self.default_gate = name

    def update_gate_condition(self, condition: GateCondition, *, op: str, error: str) -> None:
        self._record("update_gate_condition")
        self.updated_conditions.append((condition.id, condition.metric, op, error))

    def select_quality_gate(self, project_key: str, gate_name: str) -> None:
        self._record("select_quality_gate")
        self.selected_gates.append((project_key, gate_name))

    # quality profiles
    def find_quality_profile(self, name: str, language: str) -> QueryResult[QualityProfile]:
        self._record("find_quality_profile")
        profile = self.profiles.get((name, language))
        return QueryResult.present(profile) if profile else QueryResult.absent()

    def restore_quality_profile(self, backup: Path) -> None:
        self._record("restore_quality_profile")
        root = ET.parse(str(backup)).getroot()
        name = root.findtext("name") or ""
        language = root.findtext("language") or ""
        self.profiles[(name, language)] = QualityProfile(key=f"{language}-{name}", name=name, language=language)

    def set_default_quality_profile(self, name: str, language: str) -> None:
        self._record("set_default_quality_profile")
        self.default_profiles[language] = name

    def add_project_to_profile(self, project_key: str, name: str, language: str) -> None:
        self._record("add_project_to_profile")
        self.profile_projects.append((project_key, name, language))

    # tokens
    def generate_user_token(self, login: str, token_name: str) -> Dict[str, Any]:
        self._record("generate_user_token")
        # token names are unique per user on a real server
        if token_name in self.token_names:
            raise RemoteCallError("Authentication token not generated in SonarQube.", status=400)
        self.token_names.append(token_name)
        if self.token:
            self.issued_tokens.append(self.token)
        return {"login": login, "name": token_name, "token": self.token}


class FakeBuild:
    """BuildTrigger stand-in that records invocations and what it saw on disk."""

    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls: List[Dict[str, Any]] = []

    def check_available(self, directory: Path) -> str:
        return "mvn"

    def run(self, directory: Path, project_key: str, project_name: str, server_url: str, token: str) -> int:
        props = directory / "sonar-project.properties"
        self.calls.append(
            {
                "directory": directory,
                "project_key": project_key,
                "project_name": project_name,
                "server_url": server_url,
                "token": token,
                "properties": props.read_text(encoding="utf-8") if props.exists() else None,
            }
        )
        return self.exit_code


class RecordingRunner:
    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.commands: List[List[str]] = []

    def __call__(self, cmd: List[str], **kwargs: Any) -> CmdResult:
        self.commands.append(list(cmd))
        return CmdResult(
            exit_code=self.exit_code,
            elapsed_seconds=0.0,
            command_str=" ".join(cmd),
            stdout="",
            stderr="",
        )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        sonar_url="http://sonar.test:9000",
        workdir=tmp_path,
        token_dir=tmp_path,
        startup_timeout=0,
        settle_timeout=0,
        poll_interval=0,
        open_browser=True,
    )


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    d = tmp_path / "proj"
    d.mkdir()
    return d


@pytest.fixture
def make_controller(settings: Settings):
    """Build a controller wired to fakes. Returns (controller, parts)."""

    def _make(
        config: RunConfig,
        *,
        api: Optional[FakeSonarApi] = None,
        build: Optional[FakeBuild] = None,
        runner: Optional[RecordingRunner] = None,
        run_settings: Optional[Settings] = None,
    ):
        s = run_settings or settings
        cancel_token = CancellationToken()
        executor = RemoteCallExecutor(cancel_token)
        api = api or FakeSonarApi()
        build = build or FakeBuild()
        runner = runner or RecordingRunner()
        opened: List[str] = []

        controller = OrchestrationController(
            config,
            s,
            executor=executor,
            api=api,  # type: ignore[arg-type]
            reconciler=ResourceReconciler(api, settle_timeout=0, poll_interval=0, cancel_token=cancel_token),  # type: ignore[arg-type]
            tokens=TokenManager(
                api,  # type: ignore[arg-type]
                login="admin",
                token_dir=s.token_dir,
                validate_timeout=0,
                poll_interval=0,
                cancel_token=cancel_token,
            ),
            build=build,  # type: ignore[arg-type]
            progress=ProgressReporter(cancel_token, enabled=False),
            command_runner=runner,
            tool_locator=lambda name: f"/usr/bin/{name}",
            browser=opened.append,
        )
        return controller, {"api": api, "build": build, "runner": runner, "opened": opened}

    return _make
