"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from ssh_tools.transport import ProbeOutcome, TransportResult


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the real ~/.config/ssh-tools/settings.json."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("NO_COLOR", raising=False)
    return config_home


@pytest.fixture
def ok_result() -> TransportResult:
    """A successful probe round-trip."""
    return TransportResult(ProbeOutcome.SUCCESS, 0, b"ssh-ping\n")


@pytest.fixture
def denied_result() -> TransportResult:
    """Host answered but refused the login."""
    return TransportResult(
        ProbeOutcome.AUTH_DENIED, 255, b"", "alice@example.com: Permission denied (publickey).\n"
    )


@pytest.fixture
def down_result() -> TransportResult:
    """ssh could not connect."""
    return TransportResult(
        ProbeOutcome.UNREACHABLE,
        255,
        b"",
        "ssh: connect to host example.com port 22: Connection timed out\n",
    )


@pytest.fixture
def local_file(tmp_path: Path) -> Path:
    """A small local text file to diff."""
    path = tmp_path / "hosts"
    path.write_text("127.0.0.1 localhost\n::1 localhost\n")
    return path
