from __future__ import annotations

import pytest
from pydantic import ValidationError

from storagebatch.blob import (
    BlobDeleteBatch,
    BlobDeleteRequest,
    BlobSetTierBatch,
    BlobSetTierRequest,
    coerce_tier,
)
from storagebatch.models.batch import BatchSubResponse
from storagebatch.models.blob import (
    BlobRef,
    DeleteSnapshotsOption,
    PremiumPageBlobTier,
    RehydratePriority,
    StandardBlobTier,
)

ACCOUNT = "https://acct.blob.core.windows.net"


def _blob(name: str = "dir/file 1.txt", **kwargs: str) -> BlobRef:
    return BlobRef(account_url=f"{ACCOUNT}/", container="photos", name=name, **kwargs)


def test_blob_ref_url_and_hashing() -> None:
    blob = _blob()

    assert blob.url == f"{ACCOUNT}/photos/dir/file%201.txt"
    assert blob == _blob()
    assert hash(blob) == hash(_blob())
    assert {blob: 1}[_blob()] == 1
    assert str(blob) == "photos/dir/file 1.txt"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"account_url": "acct.blob.core.windows.net", "container": "photos", "name": "a"},
        {"account_url": ACCOUNT, "container": "Photos", "name": "a"},
        {"account_url": ACCOUNT, "container": "ab", "name": "a"},
        {"account_url": ACCOUNT, "container": "a--b", "name": "a"},
        {"account_url": ACCOUNT, "container": "photos", "name": ""},
    ],
)
def test_blob_ref_validation(kwargs: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        BlobRef(**kwargs)


def test_blob_ref_is_frozen() -> None:
    blob = _blob()

    with pytest.raises(ValidationError):
        blob.name = "other"  # type: ignore[misc]


def test_root_container_is_accepted() -> None:
    assert BlobRef(account_url=ACCOUNT, container="$root", name="a").url == f"{ACCOUNT}/$root/a"


def test_delete_request_headers() -> None:
    request = BlobDeleteRequest(DeleteSnapshotsOption.INCLUDE, lease_id="lease-1").build_request(
        _blob("a.txt", snapshot="2019-01-01")
    )

    assert request.method == "DELETE"
    assert request.url.path == "/photos/a.txt"
    assert request.url.params["snapshot"] == "2019-01-01"
    assert request.headers["x-ms-delete-snapshots"] == "include"
    assert request.headers["x-ms-lease-id"] == "lease-1"
    assert request.headers["Content-Length"] == "0"


def test_delete_request_defaults_have_no_optional_headers() -> None:
    request = BlobDeleteRequest().build_request(_blob("a.txt"))

    assert "x-ms-delete-snapshots" not in request.headers
    assert "x-ms-lease-id" not in request.headers
    assert not request.url.query


def test_set_tier_request_headers() -> None:
    request = BlobSetTierRequest(StandardBlobTier.ARCHIVE, RehydratePriority.HIGH).build_request(
        _blob("a.txt", version_id="v1")
    )

    assert request.method == "PUT"
    assert request.url.params["comp"] == "tier"
    assert request.url.params["versionid"] == "v1"
    assert request.headers["x-ms-access-tier"] == "Archive"
    assert request.headers["x-ms-rehydrate-priority"] == "High"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Cool", StandardBlobTier.COOL),
        ("P30", PremiumPageBlobTier.P30),
        (StandardBlobTier.HOT, StandardBlobTier.HOT),
    ],
)
def test_coerce_tier(value: str, expected: object) -> None:
    assert coerce_tier(value) is expected


def test_coerce_tier_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        coerce_tier("Lukewarm")


def test_delete_batch_collects_requests_in_order() -> None:
    batch = BlobDeleteBatch()
    blobs = [_blob(f"b{i}") for i in range(3)]
    for blob in blobs:
        batch.add(blob)

    assert [parent for _, parent in batch] == blobs
    assert all(isinstance(request, BlobDeleteRequest) for request, _ in batch)
    assert batch.convert_response(BatchSubResponse(status_code=202)) is None


def test_set_tier_batch_builds_tier_parts() -> None:
    batch = BlobSetTierBatch(max_requests=2)
    batch.add(_blob("a"), "Cool")
    batch.add(_blob("b"), PremiumPageBlobTier.P10)

    body = batch.build_body().decode()

    assert "PUT /photos/a?comp=tier HTTP/1.1\r\n" in body
    assert "x-ms-access-tier: Cool\r\n" in body
    assert "x-ms-access-tier: P10\r\n" in body
    assert batch.max_requests == 2
