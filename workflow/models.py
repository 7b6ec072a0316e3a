"""workflow.models

Lightweight data structures used across the workflow.

Why this exists
---------------
No step keeps its inputs in module-level variables. The resolved command-line
input becomes one immutable :class:`RunConfig` value, built once and passed
to each component that needs it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class RunMode(str, Enum):
    FULL = "full"
    REANALYSIS = "reanalysis"


class WorkflowState(str, Enum):
    """States of the orchestration state machine.

    Full mode walks INIT .. ANALYZED in declaration order (skipping
    TOKEN_LOADED); re-analysis walks INIT, TOKEN_LOADED, CONFIGURED, ANALYZED.
    ABORTING is reachable from any state; CLEANED_UP is always terminal.
    """

    INIT = "init"
    MANIFEST_GENERATED = "manifest_generated"
    SERVICES_UP = "services_up"
    GATE_READY = "gate_ready"
    PROFILE_READY = "profile_ready"
    PROJECT_READY = "project_ready"
    TOKEN_READY = "token_ready"
    QUALITY_ATTACHED = "quality_attached"
    TOKEN_LOADED = "token_loaded"
    CONFIGURED = "configured"
    ANALYZED = "analyzed"
    ABORTING = "aborting"
    CLEANED_UP = "cleaned_up"


@dataclass(frozen=True)
class RunConfig:
    """Resolved inputs for one run.

    Full mode requires all five fields; re-analysis only needs
    ``project_name`` and ``directory`` and leaves the rest as ``None``.
    Use :meth:`full` / :meth:`reanalysis` rather than the constructor.
    """

    project_name: str
    directory: Path
    project_key: Optional[str] = None
    main_branch: Optional[str] = None
    analyze: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.project_name:
            raise ValueError("project_name must not be empty")

        optional = (self.project_key, self.main_branch, self.analyze)
        if any(v is not None for v in optional) and not all(optional):
            raise ValueError(
                "project_key, main_branch and analyze must all be provided (full mode) "
                "or all be omitted (re-analysis mode)"
            )

    @classmethod
    def full(
        cls,
        *,
        project_key: str,
        project_name: str,
        main_branch: str,
        analyze: str,
        directory: Union[str, Path],
    ) -> "RunConfig":
        for label, value in (
            ("project_key", project_key),
            ("main_branch", main_branch),
            ("analyze", analyze),
            ("directory", directory),
        ):
            if not value:
                raise ValueError(f"{label} must not be empty in full mode")
        return cls(
            project_name=project_name,
            directory=Path(directory),
            project_key=project_key,
            main_branch=main_branch,
            analyze=analyze,
        )

    @classmethod
    def reanalysis(cls, *, project_name: str, directory: Union[str, Path]) -> "RunConfig":
        if not directory:
            raise ValueError("directory must not be empty")
        return cls(project_name=project_name, directory=Path(directory))

    @property
    def mode(self) -> RunMode:
        return RunMode.FULL if self.project_key else RunMode.REANALYSIS
