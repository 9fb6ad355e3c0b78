"""HTTP transport for the content store, backed by ``requests``."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from ..settings import HttpSettings
from .errors import RemoteFailureError

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    params: Mapping[str, str] | None = None
    json: Any = None
    data: bytes | None = None
    timeout: float | None = None
    max_attempts: int | None = None


@dataclass(slots=True)
class HttpResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    body: bytes
    text: str
    elapsed: float

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClient:
    """Issues one bounded request per call.

    Only HTTP 429 is retried, and only when ``max_attempts`` allows it; the
    default configuration makes a single attempt.
    """

    def __init__(
        self,
        *,
        http_settings: HttpSettings,
        session: requests.Session | None = None,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self._http_settings = http_settings
        self._session = session or requests.Session()
        self._default_headers = dict(default_headers or {})

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    def close(self) -> None:
        self._session.close()

    def send(self, request: HttpRequest) -> HttpResponse:
        headers = {**self._default_headers, **dict(request.headers or {})}
        timeout = request.timeout if request.timeout is not None else self._http_settings.timeout
        max_attempts = (
            request.max_attempts
            if request.max_attempts is not None
            else self._http_settings.max_attempts
        )

        attempt = 0
        start_time = time.monotonic()
        while True:
            attempt += 1
            try:
                resp = self._session.request(
                    request.method.upper(),
                    request.url,
                    headers=headers,
                    params=request.params,
                    json=request.json,
                    data=request.data,
                    timeout=timeout,
                )
            except requests.RequestException as exc:
                _LOGGER.error(
                    "HTTP transport failure",
                    extra={"event": "http.error", "method": request.method, "url": request.url},
                )
                raise RemoteFailureError(
                    f"Could not reach the content store: {exc}",
                    details={"url": request.url},
                ) from exc

            if resp.status_code == 429 and attempt < max_attempts:
                wait_seconds = self._compute_retry_wait(resp, attempt)
                _LOGGER.warning(
                    "HTTP 429 received; backing off",
                    extra={"event": "http.retry", "attempt": attempt, "wait": round(wait_seconds, 2)},
                )
                time.sleep(wait_seconds)
                continue

            elapsed = time.monotonic() - start_time
            _LOGGER.debug(
                "HTTP request finished",
                extra={
                    "event": "http.response",
                    "method": request.method.upper(),
                    "status": resp.status_code,
                    "elapsed": round(elapsed, 3),
                },
            )
            return HttpResponse(
                url=str(resp.url),
                status=resp.status_code,
                headers=dict(resp.headers.items()),
                body=resp.content,
                text=resp.text,
                elapsed=elapsed,
            )

    def _compute_retry_wait(self, resp: requests.Response, attempt: int) -> float:
        retry_after = resp.headers.get("Retry-After")
        wait_seconds = 0.0
        if retry_after:
            try:
                wait_seconds = float(retry_after)
            except (TypeError, ValueError):
                wait_seconds = 0.0
        if wait_seconds <= 0:
            wait_seconds = self._http_settings.backoff_factor * attempt
        jitter = random.uniform(0, 0.25 * wait_seconds)
        return wait_seconds + jitter
