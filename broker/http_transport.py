"""
HTTP transport shim.

The plugin never opens sockets itself: the host hands it an HTTP capability,
a callable that takes a JSON-encoded HttpRequest and returns a JSON-encoded
HttpResponse. This module wraps one such exchange.

Handles:
- Request/response envelopes
- Converting host failures into synthetic status-0 responses
- Strict JSON decoding of response bodies

Does NOT handle retries, redirects or streaming.
"""

import logging
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

import requests
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from requests.adapters import HTTPAdapter

from config.settings import ERROR_BODY_PREVIEW_CHARS

logger = logging.getLogger(__name__)

# Host capability: JSON HttpRequest bytes in, JSON HttpResponse bytes out
HostHttpFunction = Callable[[bytes], bytes]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class HttpRequest(BaseModel):
    method: HttpMethod
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    timeout_ms: int


class HttpResponse(BaseModel):
    status: int
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    error: Optional[str] = None

    def is_success(self) -> bool:
        """True for any 2xx status."""
        return 200 <= self.status < 300

    def parse_json(self, target: Any) -> Any:
        return parse_json_body(self, target)


class ResponseDecodeError(ValueError):
    """Response body did not match the expected shape."""
    pass


@lru_cache(maxsize=None)
def _adapter_for(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def parse_json_body(response: HttpResponse, target: Any) -> Any:
    """
    Decode a response body into ``target``.

    Args:
        response: HttpResponse whose body holds JSON
        target: pydantic model or type (e.g. ``List[AlpacaPosition]``)

    Returns:
        Decoded value

    Raises:
        ResponseDecodeError: If the body is not valid JSON for ``target``
    """
    try:
        return _adapter_for(target).validate_json(response.body)
    except ValidationError as e:
        raise ResponseDecodeError(
            f"JSON parse error: {e} - body: {response.body[:ERROR_BODY_PREVIEW_CHARS]}"
        ) from e


def _failed_response(error: str) -> HttpResponse:
    return HttpResponse(status=0, headers={}, body="", error=error)


def execute(request: HttpRequest, host_call: HostHttpFunction) -> HttpResponse:
    """
    Execute one request through the host capability.

    Never raises: a failing host call or an undecodable reply comes back
    as a status-0 response with ``error`` set.

    Args:
        request: Request to send
        host_call: Host HTTP capability

    Returns:
        HttpResponse
    """
    payload = request.model_dump_json().encode("utf-8")

    logger.debug(f"{request.method.value} {request.url}")

    try:
        reply = host_call(payload)
    except Exception as e:
        logger.error(f"Host HTTP call failed for {request.method.value} {request.url}: {e}")
        return _failed_response(f"Host HTTP call failed: {e}")

    try:
        return HttpResponse.model_validate_json(reply)
    except ValidationError as e:
        return _failed_response(f"Failed to parse response: {e}")


class RequestsHostHttp:
    """
    Host HTTP capability backed by a requests session.

    Lets the plugin run outside an embedding host (CLI, smoke tests).
    Network failures are reported inside the reply, never raised.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with connection pooling and no retries."""
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=4, pool_maxsize=4, max_retries=0)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def __call__(self, payload: bytes) -> bytes:
        request = HttpRequest.model_validate_json(payload)
        body = request.body.encode("utf-8") if request.body is not None else None

        try:
            resp = self._session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=body,
                timeout=request.timeout_ms / 1000.0,
                allow_redirects=False,
            )
        except requests.RequestException as e:
            logger.warning(f"{request.method.value} {request.url} failed: {e}")
            reply = _failed_response(f"{type(e).__name__}: {e}")
        else:
            reply = HttpResponse(
                status=resp.status_code,
                headers=dict(resp.headers),
                body=resp.text,
            )

        return reply.model_dump_json().encode("utf-8")

    def close(self) -> None:
        """Close HTTP session."""
        self._session.close()
