"""
Tests for the HTTP transport shim.

Tests cover:
1. Success classification
2. Host failures become status-0 responses (execute never raises)
3. Strict body decoding with a bounded body excerpt in errors
4. requests-backed host capability
"""

import json
from typing import List
from unittest.mock import MagicMock

import pytest
import requests

from broker.alpaca_schemas import AlpacaPosition
from broker.http_transport import (
    HttpMethod,
    HttpRequest,
    HttpResponse,
    RequestsHostHttp,
    ResponseDecodeError,
    execute,
    parse_json_body,
)


def _request(**overrides):
    fields = dict(
        method=HttpMethod.GET,
        url="https://paper-api.alpaca.markets/v2/account",
        headers={"Accept": "application/json"},
        body=None,
        timeout_ms=30000,
    )
    fields.update(overrides)
    return HttpRequest(**fields)


class TestHttpResponse:

    @pytest.mark.parametrize("status,expected", [
        (199, False), (200, True), (204, True), (299, True), (300, False), (404, False), (0, False),
    ])
    def test_is_success_is_2xx(self, status, expected):
        assert HttpResponse(status=status).is_success() is expected


class TestExecute:

    def test_request_is_sent_as_json(self):
        seen = []

        def host(payload: bytes) -> bytes:
            seen.append(json.loads(payload))
            return b'{"status": 200, "headers": {}, "body": "{}"}'

        response = execute(_request(method=HttpMethod.POST, body='{"a":1}'), host)

        assert response.status == 200
        assert seen[0]["method"] == "POST"
        assert seen[0]["body"] == '{"a":1}'
        assert seen[0]["timeout_ms"] == 30000

    def test_host_exception_becomes_status_zero(self):
        def host(payload: bytes) -> bytes:
            raise ConnectionError("host gone")

        response = execute(_request(), host)

        assert response.status == 0
        assert not response.is_success()
        assert "host gone" in response.error

    def test_undecodable_reply_becomes_status_zero(self):
        response = execute(_request(), lambda payload: b"not json")

        assert response.status == 0
        assert response.error.startswith("Failed to parse response")

    def test_transport_error_passes_through(self):
        reply = b'{"status": 0, "headers": {}, "body": "", "error": "timeout"}'

        response = execute(_request(), lambda payload: reply)

        assert response.status == 0
        assert response.error == "timeout"


class TestParseJsonBody:

    def test_decodes_list_of_models(self):
        body = json.dumps([{"symbol": "AAPL", "qty": "1", "side": "long"}])

        positions = parse_json_body(HttpResponse(status=200, body=body), List[AlpacaPosition])

        assert positions[0].symbol == "AAPL"

    def test_shape_mismatch_embeds_truncated_body(self):
        body = '{"unexpected": "' + "x" * 500 + '"}'

        with pytest.raises(ResponseDecodeError) as exc:
            parse_json_body(HttpResponse(status=200, body=body), List[AlpacaPosition])

        message = str(exc.value)
        assert message.startswith("JSON parse error")
        assert body[:200] in message
        assert body[:201] not in message


class TestRequestsHostHttp:

    def test_performs_request_with_timeout_and_no_redirects(self):
        session = MagicMock(spec=requests.Session)
        session.request.return_value = MagicMock(
            status_code=201,
            headers={"Content-Type": "application/json"},
            text='{"id": "1"}',
        )
        host = RequestsHostHttp(session=session)

        reply = json.loads(host(_request(method=HttpMethod.POST, body="{}").model_dump_json().encode()))

        args, kwargs = session.request.call_args
        assert args == ("POST", "https://paper-api.alpaca.markets/v2/account")
        assert kwargs["timeout"] == 30.0
        assert kwargs["allow_redirects"] is False
        assert kwargs["data"] == b"{}"
        assert reply["status"] == 201
        assert reply["body"] == '{"id": "1"}'

    def test_network_error_reported_in_reply(self):
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = requests.ConnectionError("refused")
        host = RequestsHostHttp(session=session)

        reply = json.loads(host(_request().model_dump_json().encode()))

        assert reply["status"] == 0
        assert "ConnectionError" in reply["error"]
