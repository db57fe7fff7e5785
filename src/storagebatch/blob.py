"""Blob sub-operations that the batch endpoint accepts: delete and set tier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import httpx

from .models.batch import BatchSubResponse
from .models.blob import (
    BlobRef,
    DeleteSnapshotsOption,
    PremiumPageBlobTier,
    RehydratePriority,
    StandardBlobTier,
)
from .operation import BATCH_MAX_REQUESTS, BatchOperation

BlobTier = Union[StandardBlobTier, PremiumPageBlobTier]


def _no_result(response: BatchSubResponse) -> None:
    return None


def coerce_tier(value: BlobTier | str) -> BlobTier:
    """Return the tier enum for ``value`` (e.g. ``"Cool"`` or ``"P30"``)."""

    if isinstance(value, (StandardBlobTier, PremiumPageBlobTier)):
        return value
    for enum_type in (StandardBlobTier, PremiumPageBlobTier):
        try:
            return enum_type(value)
        except ValueError:
            continue
    raise ValueError(f"Unknown blob tier: {value!r}")


@dataclass(frozen=True)
class BlobDeleteRequest:
    delete_snapshots: DeleteSnapshotsOption | None = None
    lease_id: str | None = None

    def build_request(self, parent: BlobRef) -> httpx.Request:
        headers = {"Content-Length": "0"}
        if self.delete_snapshots is not None:
            headers["x-ms-delete-snapshots"] = DeleteSnapshotsOption(self.delete_snapshots).value
        if self.lease_id:
            headers["x-ms-lease-id"] = self.lease_id
        return httpx.Request("DELETE", parent.url, params=parent.query_params(), headers=headers)


@dataclass(frozen=True)
class BlobSetTierRequest:
    tier: BlobTier
    rehydrate_priority: RehydratePriority | None = None

    def build_request(self, parent: BlobRef) -> httpx.Request:
        params = {"comp": "tier", **parent.query_params()}
        headers = {
            "Content-Length": "0",
            "x-ms-access-tier": coerce_tier(self.tier).value,
        }
        if self.rehydrate_priority is not None:
            headers["x-ms-rehydrate-priority"] = RehydratePriority(self.rehydrate_priority).value
        return httpx.Request("PUT", parent.url, params=params, headers=headers)


class BlobDeleteBatch(BatchOperation[BlobRef, None]):
    """Batch of blob deletions; each successful delete maps to ``None``."""

    def __init__(self, *, max_requests: int = BATCH_MAX_REQUESTS) -> None:
        super().__init__(_no_result, max_requests=max_requests)

    def add(
        self,
        blob: BlobRef,
        delete_snapshots: DeleteSnapshotsOption | None = None,
        lease_id: str | None = None,
    ) -> None:
        self.add_sub_operation(BlobDeleteRequest(delete_snapshots, lease_id), blob)


class BlobSetTierBatch(BatchOperation[BlobRef, None]):
    """Batch of tier changes for block blobs (standard tiers) or page blobs (premium tiers)."""

    def __init__(self, *, max_requests: int = BATCH_MAX_REQUESTS) -> None:
        super().__init__(_no_result, max_requests=max_requests)

    def add(
        self,
        blob: BlobRef,
        tier: BlobTier | str,
        rehydrate_priority: RehydratePriority | None = None,
    ) -> None:
        self.add_sub_operation(BlobSetTierRequest(coerce_tier(tier), rehydrate_priority), blob)


__all__ = [
    "BlobDeleteBatch",
    "BlobDeleteRequest",
    "BlobSetTierBatch",
    "BlobSetTierRequest",
    "BlobTier",
    "coerce_tier",
]
