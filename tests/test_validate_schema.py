from __future__ import annotations

import json
from pathlib import Path

import pytest

import requester
import validate_schema
from requester import AdapterError

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def in_repo_root(monkeypatch):
    monkeypatch.chdir(ROOT)


def test_bundled_sample_response_matches_schema(capsys):
    validate_schema.main([])
    out = capsys.readouterr().out
    assert "OK: job result matches schema" in out
    assert "result: 5" in out


def test_errored_envelope_matches_schema(tmp_path, capsys):
    path = tmp_path / "errored.json"
    path.write_text(json.dumps(requester.errored("abc", AdapterError("upstream down"))), encoding="utf-8")
    validate_schema.main([str(path)])
    assert "outcome=errored" in capsys.readouterr().out


def test_invalid_job_result_exits_with_2(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"jobRunID": "1", "statusCode": 200, "result": "five"}), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        validate_schema.main([str(path)])
    assert excinfo.value.code == 2
    assert "does NOT match schema" in capsys.readouterr().out


def test_missing_file_exits_with_1(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        validate_schema.main([str(tmp_path / "nope.json")])
    assert excinfo.value.code == 1


def test_json_pointer():
    assert validate_schema.json_pointer(["data", "constant_result", 0]) == "$.data.constant_result[0]"
