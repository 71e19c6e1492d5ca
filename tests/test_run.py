from __future__ import annotations

import json
from pathlib import Path

from stackcompose.run import main


def test_list_prints_catalog(capsys) -> None:
    assert main(["list"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("mosquitto\tMosquitto")
    assert len(lines) == 6


def test_describe_prints_options(capsys) -> None:
    assert main(["describe", "--service", "influxdb"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["options"]["image_tags"] == ["1.8.4", "latest"]
    assert payload["meta"]["display_name"] == "InfluxDB"


def test_build_writes_artifacts(tmp_path: Path, capsys) -> None:
    output = tmp_path / "stack"

    assert main(["build", "--services", "mosquitto", "--output", str(output)]) == 0

    summary = json.loads(capsys.readouterr().out)
    assert summary["issues"] == []
    assert summary["states"] == {"mosquitto": "done"}
    assert (output / "docker-compose.yml").is_file()
    assert (output / "stack.zip").is_file()


def test_build_exits_non_zero_when_issues_are_found(tmp_path: Path, capsys) -> None:
    options = tmp_path / "options.json"
    options.write_text(json.dumps({"selected_services": ["espruinohub"]}))

    code = main(["build", "--options", str(options), "--output", str(tmp_path / "stack")])

    summary = json.loads(capsys.readouterr().out)
    assert code == 1
    assert [issue["kind"] for issue in summary["issues"]] == ["missing_dependency"]
