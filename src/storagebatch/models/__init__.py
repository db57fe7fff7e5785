"""Re-export typed models for storagebatch."""

from __future__ import annotations

from .batch import CONTENT_ID_HEADER, ERROR_CODE_HEADER, BatchResult, BatchSubResponse
from .blob import (
    BlobRef,
    DeleteSnapshotsOption,
    PremiumPageBlobTier,
    RehydratePriority,
    StandardBlobTier,
)

__all__ = [
    "BatchResult",
    "BatchSubResponse",
    "BlobRef",
    "CONTENT_ID_HEADER",
    "DeleteSnapshotsOption",
    "ERROR_CODE_HEADER",
    "PremiumPageBlobTier",
    "RehydratePriority",
    "StandardBlobTier",
]
