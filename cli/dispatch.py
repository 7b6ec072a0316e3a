from __future__ import annotations

from typing import Optional

from workflow import reporting
from workflow.models import RunConfig
from workflow.settings import Settings
from workflow.wiring import build_controller, configure_logging, load_env


def dispatch(config: RunConfig, *, settings: Optional[Settings] = None) -> int:
    """Assemble the workflow for ``config`` and run it. Returns the exit code."""
    if settings is None:
        load_env()
        try:
            settings = Settings.from_env()
        except ValueError as e:
            reporting.error(f"Invalid configuration: {e}")
            return 1

    configure_logging()

    print(f"Using SonarQube at: {settings.sonar_url}")
    print(f"Mode              : {config.mode.value}")
    print(f"Project           : {config.project_name} ({config.directory})")
    if config.analyze:
        print(f"Analyze           : {config.analyze}")

    controller = build_controller(config, settings)
    return int(controller.run())
