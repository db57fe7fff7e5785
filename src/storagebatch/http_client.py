from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from types import TracebackType
from typing import Any

import httpx

from .errors import HttpError

logger = logging.getLogger(__name__)


class HttpClient:
    """Thin httpx wrapper that sends prebuilt requests and maps failures to :class:`HttpError`.

    Retries on transport errors and retryable statuses are off unless
    ``max_retries`` is raised: a batch may contain non-idempotent
    sub-operations, so resending one is a decision for the caller.
    """

    def __init__(
        self,
        base_url: str,
        default_headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        retry_statuses: Iterable[int] | None = None,
        backoff_factor: float = 0.5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout)
        self._default_headers = default_headers or {}
        self._max_retries = max_retries
        self._retry_statuses: set[int] = set(retry_statuses or {429, 500, 502, 503, 504})
        self._backoff_factor = backoff_factor

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if not path:
            return f"{self.base_url}/"
        return f"{self.base_url}/{path.lstrip('/')}"

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prebuilt, already signed request."""

        for name, value in self._default_headers.items():
            request.headers.setdefault(name, value)
        attempt = 0
        while True:
            try:
                resp = self._client.send(request)
            except httpx.TransportError as e:
                if attempt < self._max_retries:
                    logger.warning("Transport error on %s %s: %s; retrying", request.method, request.url, e)
                    time.sleep(self._backoff_factor * (2**attempt))
                    attempt += 1
                    continue
                raise HttpError(0, f"Transport error: {e}") from e

            if resp.status_code in self._retry_statuses and attempt < self._max_retries:
                ra = resp.headers.get("Retry-After")
                delay = float(ra) if ra and ra.isdigit() else self._backoff_factor * (2**attempt)
                logger.warning(
                    "HTTP %s from %s %s; retrying in %.1fs", resp.status_code, request.method, request.url, delay
                )
                time.sleep(delay)
                attempt += 1
                continue

            if resp.status_code >= 400:
                raise HttpError(resp.status_code, resp.reason_phrase, details=_error_details(resp))
            return resp

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""

        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _error_details(resp: httpx.Response) -> dict[str, Any] | str:
    error_code = resp.headers.get("x-ms-error-code")
    text = resp.text
    if error_code:
        return {"error_code": error_code, "body": text}
    return text


__all__ = ["HttpClient"]
