from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from .operation import BATCH_MAX_REQUESTS

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2019-02-02"

_ENV_FIELDS: dict[str, str] = {
    "account_url": "STORAGEBATCH_ACCOUNT_URL",
    "api_version": "STORAGEBATCH_API_VERSION",
    "max_requests": "STORAGEBATCH_MAX_REQUESTS",
    "timeout": "STORAGEBATCH_TIMEOUT",
    "max_retries": "STORAGEBATCH_MAX_RETRIES",
}


def config_dir() -> Path:
    return Path(os.path.expanduser(os.getenv("STORAGEBATCH_HOME", "~/.storagebatch")))


def default_config_path() -> Path:
    return config_dir() / "config.json"


@dataclass
class BatchSettings:
    account_url: str | None = None
    api_version: str = DEFAULT_API_VERSION
    max_requests: int = BATCH_MAX_REQUESTS
    timeout: float = 60.0
    max_retries: int = 0
    backoff_factor: float = 0.5

    def __post_init__(self) -> None:
        if not 1 <= self.max_requests <= BATCH_MAX_REQUESTS:
            raise ValueError(f"max_requests must be between 1 and {BATCH_MAX_REQUESTS}")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


def _coerce(raw: str, target: type[Any], source: str) -> Any:
    try:
        return target(raw)
    except ValueError as exc:
        raise ValueError(f"{source} must be a valid {target.__name__}, got {raw!r}") from exc


def _env_overrides() -> dict[str, Any]:
    types = {f.name: f.type for f in fields(BatchSettings)}
    overrides: dict[str, Any] = {}
    for name, env_var in _ENV_FIELDS.items():
        raw = os.getenv(env_var)
        if raw is None or raw == "":
            continue
        declared = types[name]
        if declared in ("int", int):
            overrides[name] = _coerce(raw, int, env_var)
        elif declared in ("float", float):
            overrides[name] = _coerce(raw, float, env_var)
        else:
            overrides[name] = raw
    return overrides


def load_settings(path: str | os.PathLike[str] | None = None) -> BatchSettings:
    """Return settings from the JSON config file overlaid with ``STORAGEBATCH_*`` env vars."""

    config_path = Path(path) if path else default_config_path()
    data: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        known = {f.name for f in fields(BatchSettings)}
        unknown = sorted(set(raw) - known)
        if unknown:
            logger.warning("Ignoring unknown keys in %s: %s", config_path, ", ".join(unknown))
        data = {k: v for k, v in raw.items() if k in known}
    data.update(_env_overrides())
    return BatchSettings(**data)


def save_settings(settings: BatchSettings, path: str | os.PathLike[str] | None = None) -> Path:
    config_path = Path(path) if path else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = config_path.with_suffix(".tmp")
    with tmp.open("w", encoding="utf-8") as handle:
        json.dump(asdict(settings), handle, indent=2)
    tmp.replace(config_path)
    return config_path


__all__ = [
    "BatchSettings",
    "DEFAULT_API_VERSION",
    "default_config_path",
    "load_settings",
    "save_settings",
]
