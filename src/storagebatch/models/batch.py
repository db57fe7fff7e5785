from __future__ import annotations

import io
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, TypeVar

from ..errors import MalformedBatchResponseError, StorageError

P = TypeVar("P")
R = TypeVar("R")

CONTENT_ID_HEADER = "Content-ID"
ERROR_CODE_HEADER = "x-ms-error-code"


@dataclass(frozen=True)
class BatchSubResponse:
    """One decoded part of a multipart batch response.

    ``status_code`` stays ``-1`` when the part carried no HTTP status line.
    ``body`` holds the raw bytes that followed the header block, or ``None``
    when nothing followed it.
    """

    status_code: int = -1
    status_message: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def header(self, name: str) -> str | None:
        """Return the value of header ``name`` using a case-insensitive match."""

        wanted = name.lower()
        found: str | None = None
        for key, value in self.headers.items():
            if key.lower() == wanted:
                found = value
        return found

    @property
    def content_id(self) -> int | None:
        raw = self.header(CONTENT_ID_HEADER)
        if raw is None:
            return None
        try:
            return int(raw.strip(), 10)
        except ValueError as exc:
            raise MalformedBatchResponseError(f"Invalid Content-ID header: {raw!r}") from exc

    @property
    def error_code(self) -> str | None:
        return self.header(ERROR_CODE_HEADER)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.body or b"")

    def text(self) -> str:
        if not self.body:
            return ""
        return self.body.decode("utf-8", errors="replace")

    def to_storage_error(self) -> StorageError:
        """Describe this (failed) sub-response as a :class:`StorageError`."""

        return StorageError(
            self.status_code,
            self.status_message,
            self.text(),
            error_code=self.error_code,
        )


@dataclass
class BatchResult(Generic[P, R]):
    successes: dict[P, R] = field(default_factory=dict)
    failures: dict[P, StorageError] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


__all__ = ["BatchResult", "BatchSubResponse", "CONTENT_ID_HEADER", "ERROR_CODE_HEADER"]
