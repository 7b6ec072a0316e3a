"""workflow.wiring

This module is the **composition root** for the runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load configuration / environment variables (``.env`` via python-dotenv)
- configure logging
- build the executor, API client, reconciler, token manager and build trigger
  around one shared cancellation token
- hand them to the orchestration controller

Tests skip this module and pass fakes to the controller directly.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from tools.maven.runner import BuildTrigger
from tools.sonar.api import SonarQubeApi
from tools.sonar.reconcile import ResourceReconciler
from tools.sonar.tokens import TokenManager
from tools.sonar.types import SonarServerConfig
from workflow.cancellation import CancellationToken
from workflow.controller import OrchestrationController
from workflow.executor import RemoteCallExecutor
from workflow.models import RunConfig
from workflow.progress import ProgressReporter
from workflow.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_env(dotenv_path: Optional[Path] = None) -> None:
    """Load ``.env`` (explicit path, else the nearest one from the cwd).

    Variables already present in the environment win.
    """
    path = str(dotenv_path) if dotenv_path else find_dotenv(usecwd=True)
    if path:
        load_dotenv(path, override=False)


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.environ.get("SONAR_ENV_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=LOG_FORMAT)


def build_controller(config: RunConfig, settings: Settings) -> OrchestrationController:
    cancel_token = CancellationToken()
    executor = RemoteCallExecutor(cancel_token)
    api = SonarQubeApi(
        SonarServerConfig(
            url=settings.sonar_url,
            login=settings.admin_login,
            password=settings.admin_password,
            timeout=settings.http_timeout,
        ),
        executor,
    )
    reconciler = ResourceReconciler(
        api,
        settle_timeout=settings.settle_timeout,
        poll_interval=settings.poll_interval,
        cancel_token=cancel_token,
    )
    tokens = TokenManager(
        api,
        login=settings.admin_login,
        token_dir=settings.token_dir,
        validate_timeout=settings.settle_timeout,
        poll_interval=settings.poll_interval,
        cancel_token=cancel_token,
    )
    return OrchestrationController(
        config,
        settings,
        executor=executor,
        api=api,
        reconciler=reconciler,
        tokens=tokens,
        build=BuildTrigger(),
        progress=ProgressReporter(cancel_token),
    )
