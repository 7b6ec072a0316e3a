"""tools/sonar/reconcile.py

Query-then-create reconciliation of SonarQube resources.

Each ``reconcile_*`` method leaves the named resource present on the server:

* quality gate / quality profile: an existing resource is reused unchanged,
  so running the workflow twice creates each of them exactly once;
* project: an existing project with the same name (or key) is a blocking
  error, because the caller asked for a fresh project.

Presence is decided from the typed QueryResult returned by the API layer.
After a create call we poll until the resource is queryable instead of
sleeping a fixed amount of time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from workflow import reporting
from workflow.cancellation import CancellationToken
from workflow.errors import MissingConditionError, PreconditionError, ProjectCollisionError
from workflow.polling import wait_until

from .api import SonarQubeApi
from .types import QualityGate

# (metric, op, error threshold) applied to a freshly created gate
GATE_THRESHOLDS: Tuple[Tuple[str, str, str], ...] = (
    ("new_coverage", "LT", "90"),
    ("new_duplicated_lines_density", "GT", "1.5"),
)

logger = logging.getLogger(__name__)


class ResourceReconciler:
    def __init__(
        self,
        api: SonarQubeApi,
        *,
        settle_timeout: float = 60.0,
        poll_interval: float = 2.0,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self.api = api
        self.settle_timeout = settle_timeout
        self.poll_interval = poll_interval
        self.cancel_token = cancel_token

    def _wait_queryable(self, predicate, description: str) -> None:
        wait_until(
            predicate,
            description=description,
            timeout=self.settle_timeout,
            interval=self.poll_interval,
            cancel_token=self.cancel_token,
        )

    # -------------------------
    # Project
    # -------------------------

    def reconcile_project(self, key: str, name: str, *, main_branch: Optional[str] = None) -> None:
        """Create project ``key``/``name``; abort if it already exists."""
        existing = self.api.find_project(name=name, key=key)
        if existing.found:
            raise ProjectCollisionError(f"Error: The {name} project already exists in SonarQube.")

        self.api.create_project(key, name)
        self._wait_queryable(
            lambda: self.api.find_project(name=name, key=key).found,
            f"project {name} to become queryable",
        )

        if main_branch:
            self.api.rename_main_branch(key, main_branch)
        logger.info("created project %s (%s)", name, key)

    # -------------------------
    # Quality gate
    # -------------------------

    def reconcile_quality_gate(self, gate_name: str) -> bool:
        """Ensure the gate exists. Returns True if it was created by this call."""
        if self.api.show_quality_gate(gate_name).found:
            reporting.warning(f"The Quality Gates {gate_name} already exists.")
            return False

        self.api.create_quality_gate(gate_name)
        self._wait_queryable(
            lambda: self.api.show_quality_gate(gate_name).found,
            f"quality gate {gate_name} to become queryable",
        )
        self.api.set_default_quality_gate(gate_name)
        self.edit_quality_gate(gate_name)
        return True

    def edit_quality_gate(self, gate_name: str) -> None:
        """Tighten the new-code coverage and duplication conditions of the gate.

        Both conditions must already exist on the gate (SonarQube seeds new
        gates with them). A missing one aborts the run instead of sending an
        update without a condition id.
        """
        result = self.api.show_quality_gate(gate_name)
        if not result.found or result.resource is None:
            raise MissingConditionError(f"error when looking for the Quality Gates: {gate_name}.")
        gate: QualityGate = result.resource

        for metric, op, error in GATE_THRESHOLDS:
            cond = gate.condition_for(metric)
            if cond is None or not cond.id:
                raise MissingConditionError(
                    f"Quality Gates {gate_name} has no {metric} condition to update."
                )
            self.api.update_gate_condition(cond, op=op, error=error)

    # -------------------------
    # Quality profile
    # -------------------------

    def reconcile_quality_profile(self, profile_name: str, language: str, backup: Path) -> bool:
        """Ensure the profile exists for ``language``. Returns True if restored now."""
        if self.api.find_quality_profile(profile_name, language).found:
            reporting.warning(f"The Quality Profile {profile_name} already exists.")
            return False

        if not backup.is_file():
            raise PreconditionError(f"Quality Profile backup not found: {backup}")

        self.api.restore_quality_profile(backup)
        self._wait_queryable(
            lambda: self.api.find_quality_profile(profile_name, language).found,
            f"quality profile {profile_name} to become queryable",
        )
        self.api.set_default_quality_profile(profile_name, language)
        return True

    # -------------------------
    # Project attachment
    # -------------------------

    def attach_quality(self, project_key: str, *, gate_name: str, profile_name: str, language: str) -> None:
        self.api.select_quality_gate(project_key, gate_name)
        self.api.add_project_to_profile(project_key, profile_name, language)
