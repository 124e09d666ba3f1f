"""HTTP transport adapter with retry/timeout/error mapping."""

from __future__ import annotations

import asyncio
import json
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib import error, request

from .config import DEFAULT_RETRY_ATTEMPTS, DEFAULT_TIMEOUT_SECONDS
from .errors import NotFoundError, TransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class PIPResponse:
    """A completed HTTP exchange, successful or not."""

    status: int
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Decode the body as JSON; an empty body decodes to ``None``."""
        raw = self.text()
        if not raw:
            return None
        return json.loads(raw)


def bearer_headers(token: str, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {token}", **JSON_HEADERS}
    if extra:
        headers.update(extra)
    return headers


class HTTPTransport:
    """Blocking ``urllib`` requests exposed as awaitables.

    Each request runs in a worker thread so independent requests issued via
    ``asyncio.gather`` proceed concurrently.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        retry_backoff_seconds: float = 0.25,
    ):
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff_seconds = max(0.0, retry_backoff_seconds)

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> PIPResponse:
        """Send a request and return the response whatever its status."""
        return await asyncio.to_thread(self._send_blocking, method, url, dict(headers or {}), data)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        payload: Any = None,
    ) -> Any:
        """Send a JSON request, verify the status and decode the reply."""
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        resp = await self.send(method, url, headers=headers or JSON_HEADERS, data=data)
        verify_response(resp)
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(
                f"PIP returned invalid JSON: {e}", status_code=resp.status, response=resp
            ) from e

    def _send_blocking(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        data: bytes | None,
    ) -> PIPResponse:
        logger.debug("PIP request %s %s", method, url)
        for attempt in range(1, self.retry_attempts + 1):
            req = request.Request(url, data=data, headers=headers, method=method)
            try:
                with request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    return PIPResponse(
                        status=getattr(resp, "status", 200),
                        url=url,
                        headers=dict(getattr(resp, "headers", None) or {}),
                        body=resp.read(),
                    )
            except error.HTTPError as e:
                if e.code >= 500 and attempt < self.retry_attempts:
                    self._sleep_before_retry(attempt)
                    continue
                return PIPResponse(
                    status=e.code,
                    url=url,
                    headers=dict(e.headers or {}),
                    body=_read_error_body(e),
                )
            except (error.URLError, TimeoutError, socket.timeout) as e:
                if attempt < self.retry_attempts:
                    self._sleep_before_retry(attempt)
                    continue
                raise TransportError(f"request to {url} failed: {e}") from e

        raise TransportError(f"request to {url} failed")

    def _sleep_before_retry(self, attempt: int) -> None:
        logger.info("Retrying PIP request (attempt %d of %d)", attempt + 1, self.retry_attempts)
        if self.retry_backoff_seconds <= 0:
            return
        time.sleep(self.retry_backoff_seconds * attempt)


def _read_error_body(exc: error.HTTPError) -> bytes:
    if exc.fp is None:
        return b""
    try:
        return exc.read() or b""
    except OSError:
        return b""


def _error_detail(resp: PIPResponse) -> str:
    try:
        payload = resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.body.decode("utf-8", "replace")
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return resp.body.decode("utf-8", "replace") or "HTTP error"


def verify_response(resp: PIPResponse) -> None:
    """Raise a typed error carrying ``resp`` unless it is a 2xx response."""
    if resp.ok:
        return
    detail = _error_detail(resp)
    if resp.status == 404:
        raise NotFoundError(detail, status_code=resp.status, response=resp)
    raise TransportError(detail, status_code=resp.status, response=resp)
