"""workflow.controller

Orchestration controller: runs the provisioning steps in a fixed order and
owns the success / abort / cleanup state machine.

Full mode::

    INIT -> MANIFEST_GENERATED -> SERVICES_UP -> GATE_READY -> PROFILE_READY
         -> PROJECT_READY -> TOKEN_READY -> QUALITY_ATTACHED -> CONFIGURED
         -> ANALYZED -> CLEANED_UP

Re-analysis mode::

    INIT -> TOKEN_LOADED -> CONFIGURED -> ANALYZED -> CLEANED_UP

Any :class:`~workflow.errors.WorkflowAbort` (including cancellation) moves the
run to ABORTING and then CLEANED_UP. Cleanup always runs, on success as well,
and is safe to call more than once. It only removes the local files this run
generated; resources already created on the server are left alone.

Cancellation
------------
While :meth:`OrchestrationController.run` is active, SIGINT stops the
progress tickers immediately and sets the cancellation token. The token is
observed before the next remote call, between readiness polls and at every
step boundary, which routes the run through the normal abort path.
"""

from __future__ import annotations

import logging
import shlex
import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Set

from tools.browser import open_url
from tools.core_cmd import CmdResult, run_cmd, which_or_raise
from tools.docker.compose import build_manifest, compose_up_command, remove_manifest, write_manifest
from tools.maven.runner import BuildTrigger
from tools.sonar.api import SonarQubeApi
from tools.sonar.properties import AnalysisConfig, properties_path, remove_properties, write_properties
from tools.sonar.reconcile import ResourceReconciler
from tools.sonar.tokens import TokenManager
from workflow import reporting
from workflow.cancellation import CancellationToken
from workflow.errors import (
    BuildFailedError,
    DirectoryMissingError,
    EmptyCredentialError,
    PreconditionError,
    ToolMissingError,
    WorkflowAbort,
)
from workflow.executor import RemoteCallExecutor
from workflow.models import RunConfig, RunMode, WorkflowState
from workflow.polling import wait_until
from workflow.progress import ProgressReporter
from workflow.settings import Settings

logger = logging.getLogger(__name__)


class OrchestrationController:
    def __init__(
        self,
        config: RunConfig,
        settings: Settings,
        *,
        executor: RemoteCallExecutor,
        api: SonarQubeApi,
        reconciler: ResourceReconciler,
        tokens: TokenManager,
        build: BuildTrigger,
        progress: ProgressReporter,
        command_runner: Callable[..., CmdResult] = run_cmd,
        tool_locator: Callable[[str], str] = which_or_raise,
        browser: Callable[[str], Any] = open_url,
    ) -> None:
        self.config = config
        self.settings = settings
        self.executor = executor
        self.cancel_token: CancellationToken = executor.cancel_token
        self.api = api
        self.reconciler = reconciler
        self.tokens = tokens
        self.build = build
        self.progress = progress
        self.command_runner = command_runner
        self.tool_locator = tool_locator
        self.browser = browser

        self.state = WorkflowState.INIT
        self.history: List[WorkflowState] = [WorkflowState.INIT]
        self.token: Optional[str] = None
        self.project_key: Optional[str] = config.project_key
        self._generated: Set[Path] = set()
        self._cleaned = False

    # -------------------------
    # Entry point
    # -------------------------

    def run(self) -> int:
        """Run the workflow for ``self.config.mode`` and return the exit code."""
        previous_handler = self._install_sigint_handler()
        exit_code = 1
        success = False
        try:
            self._preflight()
            if self.config.mode is RunMode.FULL:
                self._run_full()
            else:
                self._run_reanalysis()
            success = True
            exit_code = 0
            if self.settings.open_browser:
                self.browser(self.settings.sonar_url)
        except WorkflowAbort as e:
            self._transition(WorkflowState.ABORTING)
            if not e.reported:
                reporting.error(str(e))
            exit_code = e.exit_code
        finally:
            self.cleanup(success=success)
            self._restore_sigint_handler(previous_handler)
        return exit_code

    # -------------------------
    # Modes
    # -------------------------

    def _run_full(self) -> None:
        cfg = self.config
        s = self.settings
        project_key = self._require_project_key()

        with self._stage(
            "manifest",
            "Generating docker-compose.yml file.",
            "Generated docker-compose.yml file.",
            WorkflowState.MANIFEST_GENERATED,
            show_progress=False,
        ):
            self._generate_manifest()

        with self._stage(
            "containers",
            "Building the SonarQube and PostgreSQL containers.",
            "SonarQube and PostgreSQL containers are operational.",
            WorkflowState.SERVICES_UP,
        ):
            self._start_services()

        with self._stage(
            "quality_gate",
            "Restoring the Quality Gates.",
            "Quality Gates restored.",
            WorkflowState.GATE_READY,
        ):
            self.reconciler.reconcile_quality_gate(s.quality_gate)

        with self._stage(
            "quality_profile",
            "Restoring the Quality Profile.",
            "Quality Profile restored.",
            WorkflowState.PROFILE_READY,
        ):
            self.reconciler.reconcile_quality_profile(s.quality_profile, s.language, s.profile_backup_path)

        with self._stage(
            "project",
            f"Creating the {cfg.project_name} project in SonarQube.",
            f"Created the {cfg.project_name} project in SonarQube.",
            WorkflowState.PROJECT_READY,
        ):
            self.reconciler.reconcile_project(project_key, cfg.project_name, main_branch=cfg.main_branch)

        with self._stage(
            "token",
            "Generating an authentication token in SonarQube.",
            "Generated an authentication token in SonarQube.",
            WorkflowState.TOKEN_READY,
        ):
            token = self.tokens.generate(project_key, cfg.project_name)
            self.tokens.validate(token)
            self.token = token

        with self._stage(
            "attach_quality",
            f"Change {s.language} Quality Profiles in the {cfg.project_name} project.",
            f"Modified {s.language} Quality Profiles in the {cfg.project_name} project.",
            WorkflowState.QUALITY_ATTACHED,
        ):
            self.reconciler.attach_quality(
                project_key,
                gate_name=s.quality_gate,
                profile_name=s.quality_profile,
                language=s.language,
            )

        self._configure_and_analyze()

    def _run_reanalysis(self) -> None:
        cfg = self.config

        with self._stage(
            "token",
            f"Loading the authentication token of the {cfg.project_name} project.",
            "Authentication token loaded.",
            WorkflowState.TOKEN_LOADED,
        ):
            token = self.tokens.load(cfg.project_name)
            self.tokens.validate(token)
            self.token = token
            self.project_key = self._resolve_project_key(cfg.project_name)

        self._configure_and_analyze()

    def _configure_and_analyze(self) -> None:
        cfg = self.config
        with self._stage(
            "configure",
            "Generating a sonar-project.properties configuration file for SonarQube.",
            "sonar-project.properties file Generated",
            WorkflowState.CONFIGURED,
            show_progress=False,
        ):
            self._write_analysis_config()

        with self._stage(
            "analyze",
            f"Running Maven to verify and analyze the {cfg.project_name} project with SonarQube.",
            f"{cfg.project_name} project analyzed by SonarQube.",
            WorkflowState.ANALYZED,
            show_progress=False,
        ):
            self._trigger_build()

    # -------------------------
    # Steps
    # -------------------------

    def _preflight(self) -> None:
        directory = self.config.directory
        if not directory.is_dir():
            raise DirectoryMissingError(f"The directory {directory} does not exist.")

        if self.config.mode is RunMode.FULL:
            runtime = shlex.split(self.settings.compose_command)[0]
            try:
                self.tool_locator(runtime)
            except FileNotFoundError as e:
                raise ToolMissingError(f"Error: {runtime} is not installed.") from e

        self.build.check_available(directory)

    def _generate_manifest(self) -> None:
        s = self.settings
        manifest = build_manifest(sonar_image=s.sonar_image, postgres_image=s.postgres_image)
        # registered before writing so a partially written file is still removed
        self._generated.add(s.manifest_path)
        write_manifest(s.manifest_path, manifest)

    def _start_services(self) -> None:
        s = self.settings
        cmd = compose_up_command(s.compose_command, s.manifest_path)
        self.executor.execute(
            lambda: self.command_runner(cmd, cwd=s.workdir),
            "The docker-compose command did not run successfully",
        )
        wait_until(
            self.api.is_up,
            description=f"SonarQube at {s.sonar_url} to report status UP",
            timeout=s.startup_timeout,
            interval=s.poll_interval,
            cancel_token=self.cancel_token,
        )

    def _require_project_key(self) -> str:
        if not self.project_key:
            raise PreconditionError(f"No project key is known for the {self.config.project_name} project.")
        return self.project_key

    def _resolve_project_key(self, project_name: str) -> str:
        result = self.api.find_project(name=project_name)
        if not result.found or result.resource is None:
            raise PreconditionError(f"The {project_name} project does not exist in SonarQube.")
        return result.resource.key

    def _write_analysis_config(self) -> None:
        s = self.settings
        project_key = self._require_project_key()
        if not self.token:
            raise EmptyCredentialError("Error: TOKEN is empty. Please provide a valid value.")
        cfg = AnalysisConfig(
            project_key=project_key,
            project_name=self.config.project_name,
            server_url=s.sonar_url,
            token=self.token,
            language=s.language,
            java_version=s.java_version,
            quality_gate=s.quality_gate,
            quality_profile=s.quality_profile,
        )
        # registered before writing so a partially written file is still removed
        self._generated.add(properties_path(self.config.directory))
        write_properties(self.config.directory, cfg)

    def _trigger_build(self) -> None:
        if not self.token:
            raise EmptyCredentialError("Error: TOKEN is empty. Please provide a valid value.")

        rc = self.build.run(
            self.config.directory,
            self._require_project_key(),
            self.config.project_name,
            self.settings.sonar_url,
            self.token,
        )
        if rc != 0:
            raise BuildFailedError(f"Maven finished with exit code {rc}.", exit_code=rc)

    # -------------------------
    # Cleanup
    # -------------------------

    def cleanup(self, *, success: bool = False) -> None:
        """Stop tickers and remove generated files. Idempotent."""
        self.progress.stop_all()
        if self._cleaned:
            return
        self._cleaned = True

        reporting.step_started("Deleting the generated files.")
        manifest = self.settings.manifest_path
        if manifest in self._generated:
            remove_manifest(manifest)
        if properties_path(self.config.directory) in self._generated:
            remove_properties(self.config.directory)
        self._generated.clear()
        self._transition(WorkflowState.CLEANED_UP)

        if success:
            reporting.step_finished("The whole process has finished successfully.")
        else:
            reporting.error("The process did not finish; generated files were removed.")

    # -------------------------
    # Internals
    # -------------------------

    def _transition(self, state: WorkflowState) -> None:
        logger.debug("state %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    @contextmanager
    def _stage(
        self,
        step_id: str,
        started: str,
        finished: str,
        state: WorkflowState,
        *,
        show_progress: bool = True,
    ) -> Iterator[None]:
        self.cancel_token.raise_if_cancelled()
        reporting.step_started(started)
        if show_progress:
            self.progress.start(step_id)
        try:
            yield
        finally:
            self.progress.stop(step_id)
        self.cancel_token.raise_if_cancelled()
        reporting.step_finished(finished)
        self._transition(state)

    def _on_sigint(self, signum: int, frame: Any) -> None:
        self.progress.stop_all()
        self.cancel_token.cancel()

    def _install_sigint_handler(self) -> Any:
        if threading.current_thread() is not threading.main_thread():
            return None
        return signal.signal(signal.SIGINT, self._on_sigint)

    def _restore_sigint_handler(self, previous: Any) -> None:
        if previous is None or threading.current_thread() is not threading.main_thread():
            return
        signal.signal(signal.SIGINT, previous)
