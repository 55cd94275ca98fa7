# /src/handler.py
import os
import json
import base64
import logging
import argparse
from typing import Any, Callable, Dict, Optional, Tuple

import requests
from dotenv import load_dotenv

import requester
from adapter_config import Config, load_config
from job_request import decode_user, job_run_id, validate_job
from param_codec import ValidationError, decode_params, encode_params

logger = logging.getLogger(__name__)

Callback = Callable[[int, Dict[str, Any]], None]

RESULT_PATH = ["constant_result", 0]


def _load_env() -> None:
    load_dotenv(dotenv_path=os.path.join(os.getcwd(), ".env"), override=True)

def custom_error(data: Any) -> bool:
    """TronGrid signals some failures in a 200 body; those get retried."""
    return isinstance(data, dict) and data.get("Response") == "Error"

def build_call(config: Config, user_address: str) -> Dict[str, Any]:
    parameter = encode_params([{"type": "address", "value": user_address}])
    return {
        "method": "post",
        "url": config.api_url,
        "headers": dict(config.headers),
        "timeout": config.timeout_seconds,
        "data": {
            "owner_address": config.owner_address,
            "contract_address": config.contract_address,
            "function_selector": config.function_selector,
            "parameter": parameter,
            "visible": True,
        },
    }

# =========================
# Core flow
# =========================
def create_request(
    job: Any,
    callback: Callback,
    config: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> None:
    """
    Run one job: validate, call confirmedTokensForUser(address), decode.

    `callback(status_code, job_result)` is called exactly once.
    """
    try:
        validated = validate_job(job)
        user_address = decode_user(validated["data"]["user"])
    except ValidationError as e:
        logger.warning("Rejected job request: %s", e)
        callback(400, requester.errored(job_run_id(job), e, 400))
        return

    jid = validated["id"]
    try:
        config = config or load_config()
        call = build_call(config, user_address)
        response = requester.request(
            call,
            custom_error,
            retries=config.retries,
            delay=config.retry_delay,
            session=session,
        )
        raw = requester.get_result(response.data, RESULT_PATH)
        value = decode_params(["uint256"], "0x" + str(raw), False)[0]
        response.data["result"] = str(value)
    except Exception as e:
        logger.error("Job %s failed: %s", jid, e)
        callback(500, requester.errored(jid, e))
        return

    callback(response.status, requester.success(jid, response))

def _run(job: Any) -> Tuple[int, Dict[str, Any]]:
    outcome: Dict[str, Any] = {}

    def _collect(status_code: int, data: Dict[str, Any]) -> None:
        outcome["status"] = status_code
        outcome["data"] = data

    create_request(job, _collect)
    return outcome["status"], outcome["data"]

# =========================
# Serverless entrypoints
# =========================
def gcpservice(request: Any) -> Tuple[Dict[str, Any], int]:
    """Google Cloud Functions (Flask request in, (body, status) out)."""
    _load_env()
    job = request.get_json(silent=True) or {}
    status_code, data = _run(job)
    return data, status_code

def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    AWS Lambda (direct invocation). The event is the job request itself:
      { "id": "<job run id>", "data": { "user": "<base64 TRON address>" } }
    """
    _load_env()
    _, data = _run(event)
    return data

def handlerv2(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """AWS Lambda behind an HTTP API: JSON string body, proxy-style envelope."""
    _load_env()
    try:
        job = json.loads(event.get("body") or "{}")
    except ValueError as e:
        status_code, data = 400, requester.errored(error=ValidationError(f"Body is not valid JSON: {e}"), status_code=400)
    else:
        status_code, data = _run(job)
    return {
        "statusCode": status_code,
        "body": json.dumps(data),
        "isBase64Encoded": False,
    }

# =========================
# Local CLI helper (optional)
# =========================
def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="confirmedTokensForUser(address) adapter for TRON — JSON job result on stdout"
    )
    parser.add_argument("user", nargs="?", help="Base64-encoded TRON hex address (data.user).")
    parser.add_argument("--address", default=None, help="Plain TRON hex address (41...); encoded for you.")
    parser.add_argument("--id", dest="job_id", default="1", help="Job run id.")
    parser.add_argument("--json-only", action="store_true",
                        help="Print ONLY the JSON job result to stdout (no prompts, no banners).")
    return parser.parse_args()

if __name__ == "__main__":
    # Local testing:
    #   python src/handler.py --json-only --address 414d97c0ccab4d2b...
    #   python src/handler.py --json-only NDE0ZDk3YzBjY2FiNGQyYi4uLg==
    _load_env()
    args = _parse_args()
    logging.basicConfig(level=logging.WARNING if args.json_only else logging.INFO,
                        format="%(asctime)s - %(levelname)s - %(message)s")

    user = args.user
    if not user:
        addr = args.address or os.environ.get("MY_ADDRESS")
        if not addr:
            if args.json_only:
                raise SystemExit("Missing address. Provide --address, a base64 user, or MY_ADDRESS in .env.")
            addr = input("Please enter a TRON hex address (41...): ").strip()
            if not addr:
                raise SystemExit("Error: No address provided. Exiting.")
        user = base64.b64encode(addr.encode("utf-8")).decode("ascii")

    status, result = _run({"id": args.job_id, "data": {"user": user}})

    if args.json_only:
        print(json.dumps(result, ensure_ascii=False))
    else:
        print(f"Job {args.job_id} finished with status {status}")
        print(json.dumps(result, indent=2, ensure_ascii=False))
