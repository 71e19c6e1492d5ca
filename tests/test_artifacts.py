from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest
import yaml

from stackcompose.artifacts import render_script, write_artifacts
from stackcompose.errors import BuildError
from stackcompose.models import BuildManifest, BuildOptions, ScriptFragment, ZipEntry
from stackcompose.pipeline import BuildPipeline, PipelineContext


def _mosquitto_manifest() -> BuildManifest:
    context = PipelineContext(build_options=BuildOptions(selected_services=["mosquitto", "influxdb"]))
    return BuildPipeline(context).run()


def test_write_artifacts_produces_compose_scripts_and_archive(tmp_path: Path) -> None:
    manifest = _mosquitto_manifest()

    summary = write_artifacts(manifest, tmp_path / "out")

    compose = yaml.safe_load(Path(summary["compose_file"]).read_text())
    assert list(compose["services"]) == ["mosquitto", "influxdb"]
    assert compose["version"] == "3.6"

    with zipfile.ZipFile(summary["archive_path"]) as archive:
        names = archive.namelist()
    assert "docker-compose.yml" in names
    assert "prebuild.sh" in names
    assert "postbuild.sh" in names
    assert "services/mosquitto/mosquitto.conf" in names

    written = json.loads(Path(summary["manifest_path"]).read_text())
    assert written["states"] == {"mosquitto": "done", "influxdb": "done"}
    assert len(summary["archive_sha256"]) == 64


def test_rendered_script_keeps_fragment_order() -> None:
    fragments = [
        ScriptFragment(service_name="a", comment="first", code="\necho a\n"),
        ScriptFragment(service_name="b", comment="second", code="echo b", multiline_comment="line one\nline two"),
    ]

    script = render_script(fragments, "Post-build")

    assert script.startswith("#!/bin/bash\n# Post-build\n")
    assert script.index("# a: first") < script.index("echo a") < script.index("# b: second")
    assert "# line one\n# line two" in script


def test_missing_zip_entry_source_is_a_build_error(tmp_path: Path) -> None:
    manifest = BuildManifest(
        document={"version": "3.6", "services": {}},
        zip_list=[ZipEntry(full_path=tmp_path / "gone.conf", zip_name="/services/gone/gone.conf")],
    )
    with pytest.raises(BuildError, match="gone.conf"):
        write_artifacts(manifest, tmp_path / "out")
