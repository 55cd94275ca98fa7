from __future__ import annotations

import json

import pytest
import requests

import handler as adapter
from adapter_config import DEFAULT_FUNCTION_SELECTOR, Config

from ._upstream_helpers import FIVE, USER_B64, USER_HEX, _calls, _ok_body, _serve, _stop


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(adapter, "_load_env", lambda: None)


@pytest.fixture
def upstream(monkeypatch):
    servers = []

    def _start(responses):
        server, url = _serve(responses)
        servers.append(server)
        monkeypatch.setenv("TRON_API_URL", url)
        monkeypatch.setenv("REQUEST_RETRY_DELAY", "0")
        monkeypatch.setenv("REQUEST_RETRIES", "3")
        monkeypatch.delenv("TRON_PRO_API_KEY", raising=False)
        return url

    yield _start
    for server in servers:
        _stop(server)


def _job(job_id="278c97ffadb54a5bbb93cfec5f7b5503"):
    return {"id": job_id, "data": {"user": USER_B64}}


def _run(job, config=None):
    seen = []
    adapter.create_request(job, lambda status, data: seen.append((status, data)), config=config)
    assert len(seen) == 1
    return seen[0]


def test_create_request_decodes_confirmed_tokens(upstream):
    url = upstream([_ok_body(FIVE)])
    status, data = _run(_job(), Config(api_url=url, retry_delay=0))

    assert status == 200
    assert data["jobRunID"] == "278c97ffadb54a5bbb93cfec5f7b5503"
    assert data["result"] == "5"
    assert data["data"]["result"] == "5"
    assert data["data"]["constant_result"] == [FIVE]
    assert data["statusCode"] == 200


def test_create_request_posts_trigger_constant_contract_body(upstream):
    url = upstream([_ok_body()])
    _run(_job(), Config(api_url=url, retry_delay=0))

    body = _calls()[0]["body"]
    assert body["function_selector"] == DEFAULT_FUNCTION_SELECTOR
    assert body["parameter"] == USER_HEX.rjust(64, "0")
    assert body["visible"] is True
    assert body["owner_address"] == "T9yD14Nj9j7xAB4dbGeiX9h8unkKHxuWwb"
    assert body["contract_address"] == "TBSo1pthwZJkkXLwfNUC3wzKG2K7wt2Zvg"


def test_large_uint_is_stringified(upstream):
    big = 2**200 + 7
    url = upstream([_ok_body(format(big, "064x"))])
    _, data = _run(_job(), Config(api_url=url, retry_delay=0))
    assert data["result"] == str(big)


def test_response_error_is_retried_then_succeeds(upstream):
    url = upstream([{"Response": "Error"}, _ok_body()])
    status, data = _run(_job(), Config(api_url=url, retry_delay=0))
    assert status == 200
    assert data["result"] == "5"
    assert len(_calls()) == 2


def test_upstream_failure_surfaces_as_500(upstream):
    url = upstream([{"Response": "Error"}] * 3)
    status, data = _run(_job("9"), Config(api_url=url, retries=3, retry_delay=0))
    assert status == 500
    assert data["status"] == "errored"
    assert data["jobRunID"] == "9"
    assert data["error"]["name"] == "AdapterError"
    assert len(_calls()) == 3


def test_malformed_constant_result_surfaces_as_500(upstream):
    url = upstream([_ok_body("0" * 63)])
    status, data = _run(_job(), Config(api_url=url, retry_delay=0))
    assert status == 500
    assert data["error"]["name"] == "ValidationError"


def test_missing_user_is_rejected_with_400():
    status, data = _run({"id": "abc", "data": {}})
    assert status == 400
    assert data["jobRunID"] == "abc"
    assert data["status"] == "errored"
    assert "user" in data["error"]["message"]


def test_missing_id_defaults_to_one():
    status, data = _run({"data": {"user": "!!!not base64"}})
    assert status == 400
    assert data["jobRunID"] == "1"


def test_lambda_handler_returns_job_result(upstream):
    upstream([_ok_body()])
    data = adapter.handler(_job("7"), None)
    assert data["jobRunID"] == "7"
    assert data["result"] == "5"


def test_lambda_handlerv2_wraps_http_envelope(upstream):
    upstream([_ok_body()])
    response = adapter.handlerv2({"body": json.dumps(_job("8"))}, None)
    assert response["statusCode"] == 200
    assert response["isBase64Encoded"] is False
    body = json.loads(response["body"])
    assert body["jobRunID"] == "8"
    assert body["result"] == "5"


def test_lambda_handlerv2_rejects_invalid_json_body():
    response = adapter.handlerv2({"body": "{not json"}, None)
    assert response["statusCode"] == 400
    assert json.loads(response["body"])["status"] == "errored"


class _FakeFlaskRequest:
    def __init__(self, payload):
        self._payload = payload

    def get_json(self, silent=False):
        return self._payload


def test_gcpservice_returns_body_and_status(upstream):
    upstream([_ok_body()])
    body, status = adapter.gcpservice(_FakeFlaskRequest(_job("g1")))
    assert status == 200
    assert body["result"] == "5"


def test_gcpservice_without_json_body_is_400():
    body, status = adapter.gcpservice(_FakeFlaskRequest(None))
    assert status == 400
    assert body["jobRunID"] == "1"


def test_custom_error_matches_tron_error_body():
    assert adapter.custom_error({"Response": "Error"}) is True
    assert adapter.custom_error({"constant_result": []}) is False
    assert adapter.custom_error("Error") is False


def test_each_invocation_closes_its_http_session(upstream, monkeypatch):
    url = upstream([_ok_body(), _ok_body(), _ok_body()])
    opened, closed = [], []
    real_init, real_close = requests.Session.__init__, requests.Session.close

    def counting_init(self, *args, **kwargs):
        opened.append(self)
        real_init(self, *args, **kwargs)

    def counting_close(self):
        closed.append(self)
        real_close(self)

    monkeypatch.setattr(requests.Session, "__init__", counting_init)
    monkeypatch.setattr(requests.Session, "close", counting_close)

    for _ in range(3):
        status, _data = _run(_job(), Config(api_url=url, retry_delay=0))
        assert status == 200

    assert len(opened) == 3
    assert len(closed) == 3
