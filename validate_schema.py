# validate_schema.py
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Union

from jsonschema import Draft202012Validator

Json = Union[Dict[str, Any], List[Any], str, int, float, bool, None]

SCHEMA_NAME = "job-result.schema.json"
MAX_REPORTED_ERRORS = 15


def fail(msg: str, code: int = 1) -> NoReturn:
    print(f"ERROR: {msg}")
    sys.exit(code)


def repo_root_from(start: Path) -> Path:
    """
    Find the repo root holding 'schemas' and 'examples', walking upward
    from 'start' at most 5 levels. Exits on failure.
    """
    p = start
    for _ in range(6):
        if (p / "schemas").exists() and (p / "examples").exists():
            return p
        p = p.parent
    fail("Could not find repo root with 'schemas' and 'examples' folders.")


def load_json(path: Path, label: str) -> Json:
    if not path.exists():
        fail(f"{label} not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        fail(f"Failed to load {label} at {path}: {e}")


def json_pointer(e_path: List[Union[str, int]]) -> str:
    """Format a jsonschema error path like $.data.constant_result[0]"""
    out = "$"
    for seg in e_path:
        out += f"[{seg}]" if isinstance(seg, int) else f".{seg}"
    return out


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    cwd = Path.cwd()
    root = repo_root_from(cwd)

    schema_path = root / "schemas" / SCHEMA_NAME

    # Job result file may be given as the first argument; defaults to examples/sample-response.json
    if args:
        data_path = Path(args[0])
        if not data_path.is_absolute():
            data_path = (cwd / data_path).resolve()
    else:
        data_path = (root / "examples" / "sample-response.json").resolve()

    schema = load_json(schema_path, "schema")
    data = load_json(data_path, "job result")

    if not isinstance(schema, dict):
        fail("Schema root must be a JSON object (dict).")
    if not isinstance(data, dict):
        fail("Job result root must be a JSON object (dict).")

    try:
        Draft202012Validator.check_schema(schema)
    except Exception as e:
        fail(f"Schema is invalid for Draft 2020-12: {e}")

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if errors:
        print("❌ Job result does NOT match schema.")
        for e in errors[:MAX_REPORTED_ERRORS]:
            ctx = ""
            if e.context:
                ctx = " | context: " + "; ".join(c.message for c in e.context)
            print(f" - {json_pointer(list(e.path))}: {e.message}{ctx}")
        if len(errors) > MAX_REPORTED_ERRORS:
            print(f" ... and {len(errors) - MAX_REPORTED_ERRORS} more errors")
        sys.exit(2)

    print("✅ OK: job result matches schema.")
    outcome = "errored" if data.get("status") == "errored" else "success"
    print(f"jobRunID={data.get('jobRunID')}, statusCode={data.get('statusCode')}, outcome={outcome}")
    if outcome == "success":
        print(f" • result: {data.get('result')}")


if __name__ == "__main__":
    main()
