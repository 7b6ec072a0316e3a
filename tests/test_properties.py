from __future__ import annotations

from pathlib import Path

import pytest

from tools.sonar.properties import (
    AnalysisConfig,
    properties_path,
    remove_properties,
    render_properties,
    write_properties,
)
from workflow.errors import LocalFileError


def _cfg(**overrides) -> AnalysisConfig:
    base = dict(
        project_key="k",
        project_name="n",
        server_url="http://localhost:9000",
        token="squ_1",
        quality_gate="Quality_Gates_Custom",
        quality_profile="Quality_Profile_Java_Custom",
    )
    base.update(overrides)
    return AnalysisConfig(**base)


def _as_dict(text: str) -> dict:
    out = {}
    for line in text.splitlines():
        if line and not line.startswith("#"):
            key, _, value = line.partition("=")
            out[key] = value
    return out


def test_render_contains_required_keys() -> None:
    props = _as_dict(render_properties(_cfg()))

    assert props["sonar.projectKey"] == "k"
    assert props["sonar.projectName"] == "n"
    assert props["sonar.host.url"] == "http://localhost:9000"
    assert props["sonar.token"] == "squ_1"
    assert props["sonar.sources"] == "src"
    assert props["sonar.java.binaries"] == "target/classes"
    assert props["sonar.coverage.jacoco.xmlReportPaths"] == "target/site/jacoco/jacoco.xml"
    assert props["sonar.java.source"] == "17"
    assert props["sonar.qualitygate"] == "Quality_Gates_Custom"
    assert props["sonar.java.qualityProfile"] == "Quality_Profile_Java_Custom"


def test_render_is_grouped_and_newline_terminated() -> None:
    text = render_properties(_cfg())
    assert text.endswith("\n")
    assert not text.endswith("\n\n")
    assert "\n\nsonar.host.url=" in text


def test_line_breaks_in_values_are_escaped() -> None:
    props = _as_dict(render_properties(_cfg(project_name="a\nsonar.token=evil")))
    assert props["sonar.projectName"] == "a\\nsonar.token=evil"
    assert props["sonar.token"] == "squ_1"


def test_write_then_remove(tmp_path: Path) -> None:
    path = write_properties(tmp_path, _cfg())
    assert path == properties_path(tmp_path)
    assert "sonar.projectKey=k" in path.read_text(encoding="utf-8")

    assert remove_properties(tmp_path) is True
    assert not path.exists()
    assert remove_properties(tmp_path) is False


def test_write_into_a_regular_file_raises_local_file_error(tmp_path: Path) -> None:
    not_a_dir = tmp_path / "proj"
    not_a_dir.write_text("", encoding="utf-8")

    with pytest.raises(LocalFileError) as ei:
        write_properties(not_a_dir, _cfg())

    assert ei.value.exit_code == 1
    assert "sonar-project.properties" in str(ei.value)
