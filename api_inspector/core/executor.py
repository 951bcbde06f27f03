"""Single-request execution for load tests and ad-hoc test requests."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from .config import BODY_METHODS

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


def build_request_options(method: str, body: Optional[str] = None) -> Dict[str, Any]:
    """Return the keyword arguments used to build a request.

    A JSON content type is always sent; the body is attached only for
    POST/PUT/PATCH and only when non-empty.
    """
    options: Dict[str, Any] = {"headers": dict(DEFAULT_HEADERS)}
    if method.upper() in BODY_METHODS and body:
        options["content"] = body
    return options


@dataclass(frozen=True)
class RequestSample:
    """Outcome of one executed request."""

    latency_ms: float
    success: bool
    status_code: Optional[int] = None
    # Only for logging, never raised to the caller.
    error: Optional[str] = None


class RequestExecutor:
    """Issues one HTTP request and always returns a ``RequestSample``."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0):
        self.client = client
        self.timeout = timeout

    async def execute(self, url: str, method: str, body: Optional[str] = None) -> RequestSample:
        options = build_request_options(method, body)
        start = time.perf_counter()
        try:
            request = self.client.build_request(method.upper(), url, timeout=self.timeout, **options)
            # Stream so latency stops once the response headers arrive.
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"{method} {url} failed after {latency_ms:.1f}ms: {type(e).__name__}: {e}")
            return RequestSample(latency_ms=latency_ms, success=False, error=f"{type(e).__name__}: {e}")
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"{method} {url} raised {type(e).__name__}: {e}")
            return RequestSample(latency_ms=latency_ms, success=False, error=f"{type(e).__name__}: {e}")

        latency_ms = (time.perf_counter() - start) * 1000
        try:
            await response.aclose()
        except httpx.HTTPError as e:
            logger.debug(f"Failed to close response for {url}: {e}")
        return RequestSample(
            latency_ms=latency_ms,
            success=response.is_success,
            status_code=response.status_code,
        )


@dataclass
class TestResponse:
    """Verbatim result of a single test request."""

    __test__ = False  # not a pytest test class

    status: int
    status_text: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "status": self.status,
            "statusText": self.status_text,
            "headers": self.headers,
            "body": self.body,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


def _decode_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Response declared JSON but could not be parsed: {e}")
    return response.text


async def send_test_request(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    body: Optional[str] = None,
    timeout: float = 30.0,
) -> TestResponse:
    """Send one request and return status, headers and body as received.

    Transport and other request errors are returned as a ``status=0``
    response carrying the error message; nothing is raised.
    """
    method = method.upper()
    logger.info(f"Sending test request: {method} {url}")
    try:
        response = await client.request(method, url, timeout=timeout, **build_request_options(method, body))
    except httpx.HTTPError as e:
        logger.error(f"Test request {method} {url} failed: {e}")
        return TestResponse(status=0, status_text="Error", headers={}, body=None, error=str(e) or type(e).__name__)
    except Exception as e:
        logger.error(f"Test request {method} {url} failed unexpectedly: {type(e).__name__}: {e}")
        return TestResponse(status=0, status_text="Error", headers={}, body=None, error=str(e) or type(e).__name__)

    logger.info(f"Test request {method} {url} -> {response.status_code} {response.reason_phrase}")
    return TestResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        headers=dict(response.headers.items()),
        body=_decode_body(response),
    )
