from __future__ import annotations

from pathlib import Path


def town_settings_path(town_root: str | Path) -> Path:
    return Path(town_root) / "settings" / "config.yaml"


def rig_settings_path(rig_path: str | Path) -> Path:
    return Path(rig_path) / "settings" / "config.yaml"
