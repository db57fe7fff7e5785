from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional


class StorageBatchError(Exception):
    """Base error for storagebatch."""


class AuthError(StorageBatchError):
    pass


class HttpError(StorageBatchError):
    def __init__(self, status_code: int, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.details = details


class MalformedBatchResponseError(StorageBatchError):
    """Raised when a multipart batch response cannot be decoded."""


class BatchCorrelationError(StorageBatchError):
    """Raised when a sub-response cannot be matched to a sub-operation."""


class BatchLimitExceededError(StorageBatchError, ValueError):
    def __init__(self, max_requests: int) -> None:
        super().__init__(f"A batch may hold at most {max_requests} sub-operations")
        self.max_requests = max_requests


class StorageError(StorageBatchError):
    """Failure of a single sub-operation inside a batch."""

    def __init__(
        self,
        status_code: int,
        status_message: str,
        message: str,
        *,
        error_code: str | None = None,
    ) -> None:
        label = error_code or status_message or "Error"
        super().__init__(f"HTTP {status_code} {label}: {message}" if message else f"HTTP {status_code} {label}")
        self.status_code = status_code
        self.status_message = status_message
        self.message = message
        self.error_code = error_code


class BatchRejectedError(StorageBatchError):
    """The service rejected the batch as a whole; no sub-operation ran."""

    def __init__(self, status_code: int, status_message: str, body: str) -> None:
        super().__init__(f"Batch rejected with HTTP {status_code} {status_message}".rstrip())
        self.status_code = status_code
        self.status_message = status_message
        self.body = body


class BatchError(StorageBatchError):
    """One or more sub-operations failed.

    ``successes`` maps each parent object whose sub-operation succeeded to its
    converted result; ``failures`` maps the remaining parents to the
    :class:`StorageError` describing the failed sub-response.
    """

    def __init__(self, successes: Mapping[Any, Any], failures: Mapping[Any, StorageError]) -> None:
        super().__init__(
            f"{len(failures)} of {len(successes) + len(failures)} requests in the batch failed"
        )
        self.successes = dict(successes)
        self.failures = dict(failures)


__all__ = [
    "AuthError",
    "BatchCorrelationError",
    "BatchError",
    "BatchLimitExceededError",
    "BatchRejectedError",
    "HttpError",
    "MalformedBatchResponseError",
    "StorageBatchError",
    "StorageError",
]
