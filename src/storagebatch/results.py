from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from .errors import (
    BatchCorrelationError,
    BatchError,
    BatchRejectedError,
    MalformedBatchResponseError,
)
from .models.batch import BatchResult, BatchSubResponse
from .multipart import boundary_from_content_type, parse_batch_body
from .operation import BatchOperation

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


def raise_for_batch_failure(
    operation: BatchOperation[P, R], responses: Sequence[BatchSubResponse]
) -> None:
    """Raise :class:`BatchRejectedError` when ``responses`` describe a rejected batch.

    The service answers a malformed or unauthorized batch with ``202`` and a
    single part carrying the real status. A lone part counts as a batch-wide
    failure unless the batch holds exactly one sub-operation and the part is
    addressed to it through a ``Content-ID`` header. That exception is
    deliberate: the service answers a one-operation batch with a single
    correlated part, and treating it as rejected would turn every ordinary
    per-blob failure (such as ``404 BlobNotFound``) into a batch-wide one.
    A lone part without a ``Content-ID`` is always a rejection.
    """

    if len(responses) != 1:
        return
    only = responses[0]
    if len(operation) == 1 and only.content_id is not None:
        return
    logger.debug("Batch %s rejected with HTTP %s", operation.batch_id, only.status_code)
    raise BatchRejectedError(only.status_code, only.status_message, only.text())


def sort_responses(
    operation: BatchOperation[P, R], responses: Sequence[BatchSubResponse]
) -> BatchResult[P, R]:
    """Attribute each sub-response to its sub-operation by ``Content-ID``.

    Successful (2xx) responses are converted with the operation's conversion
    function; all others become :class:`~storagebatch.errors.StorageError`
    values in ``failures``.

    Raises:
        BatchCorrelationError: A response has a missing, unknown or repeated
            ``Content-ID``, or a sub-operation received no response.
        MalformedBatchResponseError: A ``Content-ID`` is not a base-10 integer.
    """

    result: BatchResult[P, R] = BatchResult()
    seen: set[int] = set()
    total = len(operation)

    for position, response in enumerate(responses):
        content_id = response.content_id
        if content_id is None:
            raise BatchCorrelationError(f"Sub-response {position} has no Content-ID header")
        if not 0 <= content_id < total:
            raise BatchCorrelationError(
                f"Sub-response {position} has Content-ID {content_id}, "
                f"which matches none of the {total} sub-operations"
            )
        if content_id in seen:
            raise BatchCorrelationError(f"Content-ID {content_id} appears more than once")
        seen.add(content_id)

        _, parent = operation[content_id]
        if response.is_success:
            result.successes[parent] = operation.convert_response(response)
        else:
            result.failures[parent] = response.to_storage_error()

    missing = sorted(set(range(total)) - seen)
    if missing:
        raise BatchCorrelationError(f"No sub-response received for Content-ID(s) {missing}")

    logger.debug(
        "Batch %s: %d succeeded, %d failed",
        operation.batch_id,
        len(result.successes),
        len(result.failures),
    )
    return result


def process_batch_response(
    operation: BatchOperation[P, R], content_type: str | None, body: bytes
) -> dict[P, R]:
    """Decode a raw batch response and return the converted successes.

    Raises:
        MalformedBatchResponseError: The body cannot be decoded.
        BatchRejectedError: The whole batch was rejected.
        BatchCorrelationError: Sub-responses cannot be attributed.
        BatchError: At least one sub-operation failed; carries both maps.
    """

    boundary = boundary_from_content_type(content_type)
    if not boundary:
        raise MalformedBatchResponseError(
            f"Batch response Content-Type has no boundary: {content_type!r}"
        )
    responses = parse_batch_body(body, boundary)
    raise_for_batch_failure(operation, responses)
    result = sort_responses(operation, responses)
    if result.failures:
        raise BatchError(result.successes, result.failures)
    return result.successes


__all__ = ["process_batch_response", "raise_for_batch_failure", "sort_responses"]
