from __future__ import annotations

import sys
from pathlib import Path

import pytest
import respx
from typer.testing import CliRunner


# Ensure the repository-local ``src`` directory is importable when the project is
# not installed as a package.
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def token_getter():
    return lambda: "dummy-token"


@pytest.fixture
def respx_mock():
    with respx.mock(assert_all_called=False) as respx_mgr:
        yield respx_mgr


@pytest.fixture
def cli_runner(monkeypatch, tmp_path):
    """Provide a CLI runner with a dummy access token and an isolated config dir."""

    monkeypatch.setenv("STORAGEBATCH_ACCESS_TOKEN", "test-token")
    monkeypatch.setenv("STORAGEBATCH_HOME", str(tmp_path / ".storagebatch"))
    monkeypatch.delenv("STORAGEBATCH_ACCOUNT_URL", raising=False)
    return CliRunner()
