from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import TypeVar

import httpx

from .auth import BearerTokenAuth
from .config import BatchSettings
from .errors import HttpError
from .http_client import HttpClient
from .operation import BatchOperation
from .results import process_batch_response

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


class BatchClient:
    """Client for the Blob service batch endpoint (``POST /?comp=batch``)."""

    def __init__(
        self,
        token_getter: Callable[[], str],
        account_url: str | None = None,
        *,
        settings: BatchSettings | None = None,
    ) -> None:
        """Configure a batch client for a storage account.

        Args:
            token_getter: Callable that supplies OAuth bearer tokens.
            account_url: Blob endpoint, e.g. ``https://acct.blob.core.windows.net``.
                Falls back to ``settings.account_url``.
            settings: Tuning knobs; defaults to :class:`BatchSettings`.
        """
        self.settings = settings or BatchSettings()
        url = (account_url or self.settings.account_url or "").strip()
        if not url:
            raise ValueError("Storage account URL must not be empty")
        self.auth = BearerTokenAuth(token_getter)
        self.http = HttpClient(
            url,
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
            backoff_factor=self.settings.backoff_factor,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""

        self.http.close()

    def __enter__(self) -> BatchClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def build_batch_request(self, operation: BatchOperation[P, R], path: str = "") -> httpx.Request:
        """Return the signed outer request for ``operation`` without sending it."""

        if len(operation) > self.settings.max_requests:
            raise ValueError(
                f"Batch holds {len(operation)} sub-operations; the limit is {self.settings.max_requests}"
            )
        return operation.build_request(
            self.http.url_for(path),
            auth=self.auth,
            headers={"x-ms-version": self.settings.api_version},
        )

    def submit_batch(self, operation: BatchOperation[P, R], path: str = "") -> dict[P, R]:
        """Send ``operation`` and return a map of parent object to converted result.

        Args:
            operation: Populated batch.
            path: Optional container path for container-scoped batches.

        Returns:
            Converted results keyed by parent object when every sub-operation
            succeeded.

        Raises:
            HttpError: The outer request failed or did not return ``202``.
            BatchRejectedError: The service rejected the batch as a whole.
            BatchError: One or more sub-operations failed; inspect
                ``successes`` and ``failures`` on the exception.
        """
        request = self.build_batch_request(operation, path)
        resp = self.http.send(request)
        if resp.status_code != 202:
            raise HttpError(
                resp.status_code,
                f"Expected 202 Accepted from batch endpoint, got {resp.reason_phrase}",
                details=resp.text,
            )
        logger.debug("Batch %s accepted (%d bytes)", operation.batch_id, len(resp.content))
        return process_batch_response(operation, resp.headers.get("Content-Type"), resp.content)


__all__ = ["BatchClient"]
