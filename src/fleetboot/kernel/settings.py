"""Town and rig settings.

Settings live in <town>/settings/config.yaml and <rig>/settings/config.yaml:

    default_agent: claude
    role_agents:
      polecat: codex
    agents:
      codex:
        ready_delay_ms: 5000
      mybot:
        command: mybot
        prompt_mode: none
        hooks: {provider: none}

Rig settings win over town settings; custom agents and overrides are merged
onto the built-in presets.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1 import RuntimeConfig
from ..paths import rig_settings_path, town_settings_path
from ..util.fs import atomic_write_text
from .runtime import DEFAULT_AGENT, default_runtime_config, get_agent_preset

logger = logging.getLogger("fleetboot.settings")

# Flat keys in an `agents:` entry and the nested RuntimeConfig section they land in.
_FLAT_KEYS = {
    "ready_delay_ms": ("tmux", "ready_delay_ms"),
    "config_dir_env": ("session", "config_dir_env"),
    "session_id_env": ("session", "session_id_env"),
}


def load_settings(path: Path) -> Dict[str, Any]:
    """Load one settings file; missing or unreadable files yield {}."""
    if not path.exists():
        return {}
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable settings %s: %s", path, e)
        return {}
    return doc if isinstance(doc, dict) else {}


def save_settings(path: Path, settings: Dict[str, Any]) -> None:
    atomic_write_text(path, yaml.safe_dump(settings, allow_unicode=True, sort_keys=False))


def new_town_settings() -> Dict[str, Any]:
    return {"default_agent": DEFAULT_AGENT, "role_agents": {}, "agents": {}}


def _dict_at(doc: Dict[str, Any], key: str) -> Dict[str, Any]:
    v = doc.get(key)
    return v if isinstance(v, dict) else {}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _agent_entry_doc(entry: Dict[str, Any]) -> Dict[str, Any]:
    doc: Dict[str, Any] = {}
    for k, v in entry.items():
        if k in _FLAT_KEYS:
            section, field = _FLAT_KEYS[k]
            doc.setdefault(section, {})[field] = v
        else:
            doc[k] = v
    return doc


def _merged_settings(town_root: str, rig_path: str) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    if town_root:
        merged = load_settings(town_settings_path(town_root))
    if rig_path:
        merged = _deep_merge(merged, load_settings(rig_settings_path(rig_path)))
    return merged


def agent_for_role(role: str, town_root: str = "", rig_path: str = "") -> str:
    settings = _merged_settings(town_root, rig_path)
    role_agents = _dict_at(settings, "role_agents")
    name = role_agents.get(str(role or "").strip().lower())
    if isinstance(name, str) and name.strip():
        return name.strip()
    default = settings.get("default_agent")
    if isinstance(default, str) and default.strip():
        return default.strip()
    return DEFAULT_AGENT


def resolve_agent_config(name: str, town_root: str = "", rig_path: str = "") -> Optional[RuntimeConfig]:
    """RuntimeConfig for a named agent, or None when the name is unknown."""
    key = str(name or "").strip()
    settings = _merged_settings(town_root, rig_path)
    entry = _dict_at(_dict_at(settings, "agents"), key)
    preset = get_agent_preset(key)
    if preset is None and not entry:
        return None

    doc: Dict[str, Any] = preset.to_doc() if preset is not None else {"provider": key, "command": key}
    doc = _deep_merge(doc, _agent_entry_doc(entry))
    try:
        return RuntimeConfig.model_validate(doc)
    except ValidationError as e:
        logger.warning("invalid settings for agent %s: %s", key, e)
        return RuntimeConfig.model_validate(preset.to_doc()) if preset is not None else None


def resolve_role_agent_config(role: str, town_root: str = "", rig_path: str = "") -> RuntimeConfig:
    """RuntimeConfig for the agent configured for `role`; never None."""
    name = agent_for_role(role, town_root, rig_path)
    rc = resolve_agent_config(name, town_root, rig_path)
    if rc is None:
        logger.warning("role %s configured with unknown agent %s; using %s", role, name, DEFAULT_AGENT, extra={"role": role})
        rc = resolve_agent_config(DEFAULT_AGENT, town_root, rig_path)
    return rc if rc is not None else default_runtime_config()
