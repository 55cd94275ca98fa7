# /src/requester.py
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Union

import requests

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 3
DEFAULT_DELAY_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 3.0


class AdapterError(Exception):
    """Upstream call failed, or its body did not hold the expected result."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


@dataclass
class UpstreamResponse:
    status: int
    data: Dict[str, Any]


def _never_error(data: Any) -> bool:
    return False


def _body_error(data: Any, custom_error: Callable[[Any], bool]) -> bool:
    if isinstance(data, dict) and data.get("error"):
        return True
    return bool(custom_error(data))


def request(
    config: Dict[str, Any],
    custom_error: Optional[Callable[[Any], bool]] = None,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY_SECONDS,
    session: Optional[requests.Session] = None,
) -> UpstreamResponse:
    """
    Perform the HTTP call described by `config` and retry on failure.

    `config` holds `url` plus optional `method` (default GET), `data` (sent as
    JSON), `headers` and `timeout` (seconds). A response is retried when the
    transport fails, the status is not 2xx, the body is not JSON, the body has
    a truthy `error` key, or `custom_error(body)` is true. After `retries`
    attempts the last failure is raised as AdapterError.
    """
    if custom_error is None:
        custom_error = _never_error
    attempts = max(1, int(retries))
    method = str(config.get("method") or "get").upper()
    url = config["url"]
    timeout = config.get("timeout") or DEFAULT_TIMEOUT_SECONDS
    if session is not None:
        return _send(session, method, url, config, timeout, custom_error, attempts, delay)
    with requests.Session() as http:
        return _send(http, method, url, config, timeout, custom_error, attempts, delay)


def _send(
    http: requests.Session,
    method: str,
    url: str,
    config: Dict[str, Any],
    timeout: float,
    custom_error: Callable[[Any], bool],
    attempts: int,
    delay: float,
) -> UpstreamResponse:
    last_error: Optional[AdapterError] = None
    for attempt in range(1, attempts + 1):
        try:
            response = http.request(
                method,
                url,
                json=config.get("data"),
                headers=config.get("headers"),
                timeout=timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            last_error = AdapterError(f"Caught error trying to fetch data: {e}", cause=e)
        else:
            if not _body_error(data, custom_error):
                logger.info("Received response: %s", json.dumps(data))
                return UpstreamResponse(status=response.status_code, data=data)
            last_error = AdapterError(f"Could not retrieve valid data: {json.dumps(data)}")

        if attempt < attempts:
            logger.warning("%s. Retrying (attempt %d of %d)", last_error, attempt + 1, attempts)
            time.sleep(delay)

    logger.error("%s", last_error)
    raise last_error


def get_result(data: Any, path: Sequence[Union[str, int]]) -> Any:
    """Walk `path` (keys / list indices) into `data`."""
    node = data
    for step in path:
        try:
            if isinstance(node, list):
                node = node[int(step)]
            else:
                node = node[step]
        except (KeyError, IndexError, TypeError, ValueError):
            raise AdapterError(f"Result path {list(path)} not found in response")
    return node


def success(job_run_id: Any, response: UpstreamResponse) -> Dict[str, Any]:
    data = dict(response.data)
    data.setdefault("result", None)
    return {
        "jobRunID": job_run_id,
        "data": data,
        "result": data["result"],
        "statusCode": response.status,
    }


def errored(job_run_id: Any = "1", error: Any = "An error occurred", status_code: int = 500) -> Dict[str, Any]:
    if isinstance(error, BaseException):
        error = {"name": type(error).__name__, "message": str(error)}
    else:
        error = {"name": "AdapterError", "message": str(error)}
    return {
        "jobRunID": job_run_id,
        "status": "errored",
        "error": error,
        "statusCode": status_code,
    }
