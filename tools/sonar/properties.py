"""tools/sonar/properties.py

Generate (and remove) the per-project ``sonar-project.properties`` file
consumed by the SonarQube scanner during the Maven build.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from tools.io import remove_file, write_text
from workflow.errors import LocalFileError

PROPERTIES_FILENAME = "sonar-project.properties"


@dataclass(frozen=True)
class AnalysisConfig:
    project_key: str
    project_name: str
    server_url: str
    token: str
    language: str = "java"
    java_version: str = "17"
    quality_gate: str = ""
    quality_profile: str = ""
    project_version: str = "0.0.1"


def _escape(value: str) -> str:
    """Escape a value for java.util.Properties (backslashes and line breaks)."""
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def _sections(cfg: AnalysisConfig) -> List[List[Tuple[str, str]]]:
    return [
        [
            ("sonar.projectKey", cfg.project_key),
            ("sonar.projectName", cfg.project_name),
            ("sonar.projectVersion", cfg.project_version),
        ],
        [("sonar.host.url", cfg.server_url)],
        [
            ("sonar.sources", "src"),
            ("sonar.tests", "src/test"),
            ("sonar.java.binaries", "target/classes"),
        ],
        [
            ("sonar.core.codeCoveragePlugin", "jacoco"),
            ("sonar.junit.reportPaths", "target/surefire-reports"),
            ("sonar.coverage.jacoco.xmlReportPaths", "target/site/jacoco/jacoco.xml"),
        ],
        [
            ("sonar.scm.provider", "git"),
        ],
        [
            ("sonar.sourceEncoding", "UTF-8"),
            ("sonar.language", cfg.language),
            ("sonar.java.source", cfg.java_version),
            ("sonar.qualitygate", cfg.quality_gate),
            (f"sonar.{cfg.language}.qualityProfile", cfg.quality_profile),
        ],
        [("sonar.token", cfg.token)],
    ]


def render_properties(cfg: AnalysisConfig) -> str:
    blocks = []
    for section in _sections(cfg):
        blocks.append("\n".join(f"{k}={_escape(v)}" for k, v in section))
    return "\n\n".join(blocks) + "\n"


def properties_path(directory: Path) -> Path:
    return directory / PROPERTIES_FILENAME


def write_properties(directory: Path, cfg: AnalysisConfig) -> Path:
    path = properties_path(directory)
    try:
        write_text(path, render_properties(cfg))
    except OSError as e:
        raise LocalFileError(f"Could not write {path}: {e.strerror or e}") from e
    return path


def remove_properties(directory: Path) -> bool:
    return remove_file(properties_path(directory))
