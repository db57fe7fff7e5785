from __future__ import annotations

import re
from enum import Enum
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, field_validator

_CONTAINER_NAME = re.compile(r"^(?!.*--)[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")


class StandardBlobTier(str, Enum):
    """Access tiers for block blobs on standard storage accounts."""

    HOT = "Hot"
    COOL = "Cool"
    ARCHIVE = "Archive"


class PremiumPageBlobTier(str, Enum):
    """Performance tiers for page blobs on premium storage accounts."""

    P4 = "P4"
    P6 = "P6"
    P10 = "P10"
    P15 = "P15"
    P20 = "P20"
    P30 = "P30"
    P40 = "P40"
    P50 = "P50"
    P60 = "P60"
    P70 = "P70"
    P80 = "P80"


class RehydratePriority(str, Enum):
    STANDARD = "Standard"
    HIGH = "High"


class DeleteSnapshotsOption(str, Enum):
    INCLUDE = "include"
    ONLY = "only"


class BlobRef(BaseModel):
    """Address of a blob; used as the parent object of blob sub-operations."""

    model_config = ConfigDict(frozen=True)

    account_url: str
    container: str
    name: str
    snapshot: str | None = None
    version_id: str | None = None

    @field_validator("account_url")
    @classmethod
    def _strip_account_url(cls, value: str) -> str:
        trimmed = value.strip().rstrip("/")
        if not trimmed.startswith(("http://", "https://")):
            raise ValueError(f"Account URL must be absolute: {value!r}")
        return trimmed

    @field_validator("container")
    @classmethod
    def _check_container(cls, value: str) -> str:
        if value != "$root" and not _CONTAINER_NAME.match(value):
            raise ValueError(f"Invalid container name: {value!r}")
        return value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Blob name must not be empty")
        return value

    @property
    def url(self) -> str:
        return f"{self.account_url}/{self.container}/{quote(self.name, safe='/~')}"

    def query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.snapshot:
            params["snapshot"] = self.snapshot
        if self.version_id:
            params["versionid"] = self.version_id
        return params

    def __str__(self) -> str:
        return f"{self.container}/{self.name}"
