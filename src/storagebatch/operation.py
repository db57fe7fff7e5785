from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator
from typing import Generic, Protocol, TypeVar

import httpx

from .errors import BatchLimitExceededError
from .models.batch import CONTENT_ID_HEADER, BatchSubResponse

logger = logging.getLogger(__name__)

BATCH_MAX_REQUESTS = 256

CRLF = b"\r\n"

# Carried by the outer request only; the service rejects them on sub-requests.
_OUTER_ONLY_HEADERS = frozenset({"host", "x-ms-version", "content-transfer-encoding"})

P = TypeVar("P")
R = TypeVar("R")
P_contra = TypeVar("P_contra", contravariant=True)


class SubRequest(Protocol[P_contra]):
    """Describes how to build one REST call for a parent object."""

    def build_request(self, parent: P_contra) -> httpx.Request:
        ...


def sign_request(request: httpx.Request, auth: httpx.Auth | None) -> httpx.Request:
    """Run the first step of ``auth``'s flow over ``request`` and return the result."""

    if auth is None:
        return request
    flow = auth.sync_auth_flow(request)
    return next(flow)


def serialize_request(request: httpx.Request) -> bytes:
    """Render ``request`` as the raw HTTP/1.1 bytes embedded in a batch part."""

    target = request.url.raw_path.decode("ascii")
    lines = [f"{request.method} {target} HTTP/1.1".encode("ascii")]
    for name, value in request.headers.raw:
        if name.decode("latin-1").lower() in _OUTER_ONLY_HEADERS:
            continue
        lines.append(name + b": " + value)
    lines.append(b"")
    head = CRLF.join(lines) + CRLF
    return head + request.read()


class BatchOperation(Generic[P, R]):
    """An ordered collection of sub-operations sent as one batch request.

    Each entry pairs a :class:`SubRequest` with the parent object it acts on.
    The position of an entry is its ``Content-ID`` on the wire and is the only
    key used to match sub-responses back to parents, so entries can never be
    removed or reordered.

    Instances are single-writer: populate from one thread, then send. Mutating
    the same batch from several threads is undefined behaviour.

    Args:
        convert_response: Turns a successful :class:`BatchSubResponse` into the
            caller's result type.
        max_requests: Upper bound on the number of sub-operations.
    """

    def __init__(
        self,
        convert_response: Callable[[BatchSubResponse], R],
        *,
        max_requests: int = BATCH_MAX_REQUESTS,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self._convert_response = convert_response
        self._max_requests = max_requests
        self._batch_id = uuid.uuid4()
        self._sub_operations: list[tuple[SubRequest[P], P]] = []
        self._parents: set[P] = set()

    @property
    def batch_id(self) -> uuid.UUID:
        return self._batch_id

    @property
    def boundary(self) -> str:
        return f"batch_{self._batch_id}"

    @property
    def content_type(self) -> str:
        return f"multipart/mixed; boundary={self.boundary}"

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def __len__(self) -> int:
        return len(self._sub_operations)

    def __iter__(self) -> Iterator[tuple[SubRequest[P], P]]:
        return iter(list(self._sub_operations))

    def __getitem__(self, index: int) -> tuple[SubRequest[P], P]:
        return self._sub_operations[index]

    def add_sub_operation(self, request: SubRequest[P], parent: P) -> None:
        """Append ``request`` acting on ``parent`` to the batch.

        Raises:
            BatchLimitExceededError: The batch already holds ``max_requests``
                entries; the batch is left unchanged.
            ValueError: ``parent`` is already part of this batch.
        """

        if request is None:
            raise ValueError("request must not be None")
        if parent is None:
            raise ValueError("parent must not be None")
        if len(self._sub_operations) >= self._max_requests:
            raise BatchLimitExceededError(self._max_requests)
        if parent in self._parents:
            raise ValueError(f"{parent!r} is already part of this batch")
        self._sub_operations.append((request, parent))
        self._parents.add(parent)

    def convert_response(self, response: BatchSubResponse) -> R:
        return self._convert_response(response)

    def build_body(self, auth: httpx.Auth | None = None) -> bytes:
        """Serialize every sub-operation into one ``multipart/mixed`` body."""

        if not self._sub_operations:
            raise ValueError("Cannot build an empty batch")

        delimiter = f"--{self.boundary}".encode("ascii")
        chunks: list[bytes] = []
        for content_id, (request, parent) in enumerate(self._sub_operations):
            inner = sign_request(request.build_request(parent), auth)
            if content_id:
                chunks.append(CRLF)
            chunks.append(delimiter + CRLF)
            chunks.append(b"Content-Type: application/http" + CRLF)
            chunks.append(b"Content-Transfer-Encoding: binary" + CRLF)
            chunks.append(f"{CONTENT_ID_HEADER}: {content_id}".encode("ascii") + CRLF)
            chunks.append(CRLF)
            chunks.append(serialize_request(inner))
        chunks.append(CRLF + delimiter + b"--" + CRLF)

        body = b"".join(chunks)
        logger.debug(
            "Built batch %s with %d sub-requests (%d bytes)",
            self._batch_id,
            len(self._sub_operations),
            len(body),
        )
        return body

    def build_request(
        self,
        url: str,
        *,
        auth: httpx.Auth | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        """Return the outer ``POST <url>?comp=batch`` request for this batch."""

        body = self.build_body(auth)
        merged = {**(headers or {}), "Content-Type": self.content_type}
        request = httpx.Request(
            "POST",
            url,
            params={"comp": "batch"},
            headers=merged,
            content=body,
        )
        return sign_request(request, auth)


__all__ = [
    "BATCH_MAX_REQUESTS",
    "BatchOperation",
    "SubRequest",
    "serialize_request",
    "sign_request",
]
