"""tools/maven/runner.py

Run the Maven build + SonarQube analysis for a project directory.

The build output is streamed to the console (it is the part of the run the
user actually wants to read), so this does not go through ``run_cmd``'s
capture. Success or failure is Maven's own exit status.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from tools.core_cmd import mask_secrets, which_or_raise
from workflow.errors import DirectoryMissingError, EmptyCredentialError, ToolMissingError

MAVEN_GOALS = ["clean", "verify", "sonar:sonar"]
MAVEN_FALLBACKS = ["/usr/local/bin/mvn", "/opt/homebrew/bin/mvn"]

logger = logging.getLogger(__name__)


def resolve_maven(directory: Path) -> str:
    """Prefer the project's own ``./mvnw`` wrapper, then ``mvn`` on PATH."""
    wrapper = directory / "mvnw"
    if wrapper.is_file() and os.access(str(wrapper), os.X_OK):
        return str(wrapper.resolve())
    try:
        return which_or_raise("mvn", fallbacks=MAVEN_FALLBACKS)
    except FileNotFoundError as e:
        raise ToolMissingError("Error: mvn is not installed.") from e


def build_command(
    maven: str,
    *,
    project_key: str,
    project_name: str,
    server_url: str,
    token: str,
) -> List[str]:
    return [
        maven,
        *MAVEN_GOALS,
        f"-Dsonar.projectKey={project_key}",
        f"-Dsonar.projectName={project_name}",
        f"-Dsonar.host.url={server_url}",
        f"-Dsonar.token={token}",
    ]


class BuildTrigger:
    def __init__(self, *, maven: Optional[str] = None) -> None:
        self.maven = maven

    def check_available(self, directory: Path) -> str:
        """Return the Maven executable for ``directory`` or raise ToolMissingError."""
        return self.maven or resolve_maven(directory)

    def run(
        self,
        directory: Path,
        project_key: str,
        project_name: str,
        server_url: str,
        token: str,
    ) -> int:
        """Run Maven in ``directory`` and return its exit code."""
        if not token:
            raise EmptyCredentialError("Error: TOKEN is empty. Please provide a valid value.")
        if not directory.is_dir():
            raise DirectoryMissingError(f"The directory {directory} does not exist.")

        maven = self.check_available(directory)
        cmd = build_command(
            maven,
            project_key=project_key,
            project_name=project_name,
            server_url=server_url,
            token=token,
        )
        print("  Command :", mask_secrets(cmd))
        logger.debug("running maven in %s", directory)

        result = subprocess.run(cmd, cwd=str(directory))
        return int(result.returncode)
