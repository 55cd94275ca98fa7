# /src/job_request.py
import base64
import binascii
from typing import Any, Dict

from jsonschema import Draft202012Validator

from param_codec import ValidationError

DEFAULT_JOB_RUN_ID = "1"

JOB_REQUEST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["data"],
    "properties": {
        "id": {"type": ["string", "integer"]},
        "data": {
            "type": "object",
            "required": ["user"],
            "properties": {
                "user": {"type": "string", "minLength": 1},
            },
        },
    },
}

_validator = Draft202012Validator(JOB_REQUEST_SCHEMA)


def job_run_id(job: Any) -> Any:
    """Job run id of the request, '1' when the caller sent none."""
    if isinstance(job, dict) and job.get("id") is not None:
        return job["id"]
    return DEFAULT_JOB_RUN_ID

def validate_job(job: Any) -> Dict[str, Any]:
    """
    Check a job request against JOB_REQUEST_SCHEMA.

    Returns a normalized copy with `id` filled in; raises ValidationError
    naming the first offending field otherwise.
    """
    errors = sorted(_validator.iter_errors(job), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        where = ".".join(str(p) for p in first.path) or "<root>"
        raise ValidationError(f"Invalid job request at {where}: {first.message}")

    validated = dict(job)
    validated["id"] = job_run_id(job)
    return validated

def decode_user(encoded: str) -> str:
    """Base64 `data.user` -> address string."""
    try:
        # unpadded and URL-safe input is accepted, as Node's Buffer does
        normalized = encoded.strip().replace("-", "+").replace("_", "/")
        normalized += "=" * (-len(normalized) % 4)
        return base64.b64decode(normalized, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"data.user is not a valid base64 address: {e}")
