from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from storagebatch.config import (
    DEFAULT_API_VERSION,
    BatchSettings,
    default_config_path,
    load_settings,
    save_settings,
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORAGEBATCH_HOME", str(tmp_path / ".storagebatch"))
    for name in (
        "STORAGEBATCH_ACCOUNT_URL",
        "STORAGEBATCH_API_VERSION",
        "STORAGEBATCH_MAX_REQUESTS",
        "STORAGEBATCH_TIMEOUT",
        "STORAGEBATCH_MAX_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file() -> None:
    settings = load_settings()

    assert settings == BatchSettings()
    assert settings.api_version == DEFAULT_API_VERSION
    assert settings.max_requests == 256
    assert settings.max_retries == 0


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    saved = BatchSettings(account_url="https://acct.blob.core.windows.net", max_requests=100, timeout=5.0)

    path = save_settings(saved)

    assert path == default_config_path()
    assert path.parent == tmp_path / ".storagebatch"
    assert load_settings() == saved
    assert not path.with_suffix(".tmp").exists()


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"account_url": "https://file", "max_requests": 10}), encoding="utf-8")
    monkeypatch.setenv("STORAGEBATCH_ACCOUNT_URL", "https://env")
    monkeypatch.setenv("STORAGEBATCH_MAX_RETRIES", "2")
    monkeypatch.setenv("STORAGEBATCH_TIMEOUT", "12.5")

    settings = load_settings(path)

    assert settings.account_url == "https://env"
    assert settings.max_requests == 10
    assert settings.max_retries == 2
    assert settings.timeout == 12.5


def test_invalid_env_value_names_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGEBATCH_MAX_REQUESTS", "lots")

    with pytest.raises(ValueError, match="STORAGEBATCH_MAX_REQUESTS"):
        load_settings()


def test_unknown_keys_are_ignored_with_warning(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api_version": "2020-04-08", "colour": "blue"}), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="storagebatch.config"):
        settings = load_settings(path)

    assert settings.api_version == "2020-04-08"
    assert "colour" in caplog.text


@pytest.mark.parametrize(
    "kwargs",
    [{"max_requests": 0}, {"max_requests": 257}, {"max_retries": -1}, {"timeout": 0}],
)
def test_settings_validation(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        BatchSettings(**kwargs)  # type: ignore[arg-type]
