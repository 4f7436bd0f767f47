"""User settings, read from $XDG_CONFIG_HOME/ssh-tools/settings.json."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

COLOR_MODES = ("auto", "always", "never")


@dataclass
class TransportSettings:
    """How the ssh client is invoked."""

    ssh_bin: str = "ssh"
    batch_mode: bool = True  # never prompt for passwords
    connect_timeout: float = 5.0


@dataclass
class ProbeSettings:
    """Defaults for ssh-ping."""

    count: int = 0  # 0 = until interrupted
    interval: float = 1.0


@dataclass
class DiffSettings:
    """External tools used by ssh-diff."""

    diff_bin: str = "diff"
    colordiff_bin: str = "colordiff"


@dataclass
class AppSettings:
    """Top-level settings."""

    transport: TransportSettings = field(default_factory=TransportSettings)
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    diff: DiffSettings = field(default_factory=DiffSettings)
    color: str = "auto"  # auto | always | never


def _settings_dir() -> str:
    """Return the settings directory path ($XDG_CONFIG_HOME/ssh-tools/)."""
    config_home = os.environ.get("XDG_CONFIG_HOME", "")
    if not config_home:
        config_home = os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(config_home, "ssh-tools")


def _settings_path() -> str:
    """Return the full path to settings.json."""
    return os.path.join(_settings_dir(), "settings.json")


def load_settings() -> AppSettings:
    """Load settings from disk. Returns defaults if file missing or corrupt."""
    path = _settings_path()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, ValueError):
        return AppSettings()

    if not isinstance(data, dict):
        return AppSettings()

    t_data = data.get("transport", {})
    p_data = data.get("probe", {})
    d_data = data.get("diff", {})

    try:
        transport = TransportSettings(
            ssh_bin=str(t_data.get("ssh_bin", "ssh")),
            batch_mode=bool(t_data.get("batch_mode", True)),
            connect_timeout=float(t_data.get("connect_timeout", 5.0)),
        )
        probe = ProbeSettings(
            count=int(p_data.get("count", 0)),
            interval=float(p_data.get("interval", 1.0)),
        )
        diff = DiffSettings(
            diff_bin=str(d_data.get("diff_bin", "diff")),
            colordiff_bin=str(d_data.get("colordiff_bin", "colordiff")),
        )
    except (AttributeError, TypeError, ValueError):
        return AppSettings()

    color = str(data.get("color", "auto"))
    if color not in COLOR_MODES:
        color = "auto"
    return AppSettings(transport=transport, probe=probe, diff=diff, color=color)
