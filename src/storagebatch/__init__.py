"""Multipart batch requests for the Azure Storage Blob service."""

from __future__ import annotations

from .blob import BlobDeleteBatch, BlobSetTierBatch
from .client import BatchClient
from .errors import (
    AuthError,
    BatchCorrelationError,
    BatchError,
    BatchLimitExceededError,
    BatchRejectedError,
    HttpError,
    MalformedBatchResponseError,
    StorageBatchError,
    StorageError,
)
from .models import BatchResult, BatchSubResponse, BlobRef
from .operation import BATCH_MAX_REQUESTS, BatchOperation, SubRequest
from .results import process_batch_response

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "BATCH_MAX_REQUESTS",
    "BatchClient",
    "BatchCorrelationError",
    "BatchError",
    "BatchLimitExceededError",
    "BatchOperation",
    "BatchRejectedError",
    "BatchResult",
    "BatchSubResponse",
    "BlobDeleteBatch",
    "BlobRef",
    "BlobSetTierBatch",
    "HttpError",
    "MalformedBatchResponseError",
    "StorageBatchError",
    "StorageError",
    "SubRequest",
    "process_batch_response",
]
