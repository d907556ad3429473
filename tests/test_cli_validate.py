import json

from typer.testing import CliRunner

from case_expander.cli import app

runner = CliRunner()


def test_cli_validate_ok():
    r = runner.invoke(app, ["validate", "examples/basic-suite.yaml"])
    assert r.exit_code == 0, r.output
    assert "OK: schema_version=0.1.0 tests=5" in r.stdout


def test_cli_validate_invalid_exit_2():
    r = runner.invoke(app, ["validate", "examples/invalid-empty-source.yaml"])
    assert r.exit_code == 2
    assert "E_EMPTY_SOURCE" in r.output


def test_cli_validate_missing_file_exit_1():
    r = runner.invoke(app, ["validate", "examples/nope.yaml"])
    assert r.exit_code == 1
    assert "E_FILE_NOT_FOUND" in r.output


def test_cli_validate_json_success():
    r = runner.invoke(app, ["validate", "examples/basic-suite.yaml", "--format", "json"])
    assert r.exit_code == 0
    payload = json.loads(r.stdout)
    assert payload["command"] == "validate"
    assert payload["ok"] is True
    assert payload["error_count"] == 0
    assert payload["summary"]["test_count"] == 5
    assert payload["summary"]["tests"]["pairs"]["slot_lengths"] == [3, 2, 2]
    assert payload["summary"]["tests"]["add"] == {"strategy": "explicit", "case_count": 2}


def test_cli_validate_json_failure_contains_codes():
    r = runner.invoke(app, ["validate", "examples/invalid-shape.yaml", "--format", "json"])
    assert r.exit_code == 2
    payload = json.loads(r.stdout)
    assert payload["ok"] is False
    codes = {e["code"] for e in payload["errors"]}
    assert {"E_UNKNOWN_STRATEGY", "E_UNKNOWN_SOURCE_KIND", "E_CASE_ARITY", "E_DUPLICATE_TEST"} <= codes
    assert all(e["source"] == "validate" for e in payload["errors"])


def test_cli_validate_json_load_failure():
    r = runner.invoke(app, ["validate", "examples/nope.yaml", "--format", "json"])
    assert r.exit_code == 1
    payload = json.loads(r.stdout)
    assert payload["errors"][0]["source"] == "load"


def test_cli_validate_unknown_format():
    r = runner.invoke(app, ["validate", "examples/basic-suite.yaml", "--format", "xml"])
    assert r.exit_code == 2
    assert "E_VALIDATE_UNKNOWN_FORMAT" in r.output
