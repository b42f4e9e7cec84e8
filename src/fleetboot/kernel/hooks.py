"""Provider hook installation.

Each hook-capable provider registers an installer here; adding a provider is
a new registration, not a new branch. Installers never overwrite a file that
already exists.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..contracts.v1 import RuntimeConfig
from ..util.fs import atomic_write_json, atomic_write_text
from .roles import compose_fallback_command, plan_role
from .runtime import default_runtime_config, get_agent_preset

logger = logging.getLogger("fleetboot.hooks")

# (settings_dir, work_dir, role, hooks_dir, hooks_file) -> None
HookInstaller = Callable[[str, str, str, str, str], None]

_INSTALLERS: Dict[str, HookInstaller] = {}
_INSTALLERS_LOCK = threading.Lock()


def register_hook_installer(provider: str, installer: HookInstaller) -> None:
    key = str(provider or "").strip().lower()
    if not key:
        raise ValueError("missing provider")
    with _INSTALLERS_LOCK:
        _INSTALLERS[key] = installer


def get_hook_installer(provider: str) -> Optional[HookInstaller]:
    return _INSTALLERS.get(str(provider or "").strip().lower())


def registered_hook_providers() -> List[str]:
    return sorted(_INSTALLERS.keys())


def session_start_command(role: str) -> str:
    return compose_fallback_command(plan_role(role))


def _target(base_dir: str, provider: str, hooks_dir: str, hooks_file: str) -> Path:
    preset = get_agent_preset(provider)
    d = hooks_dir or (preset.hooks_dir if preset else "")
    f = hooks_file or (preset.hooks_settings_file if preset else "")
    if not f:
        raise ValueError(f"no hooks settings file configured for {provider}")
    return Path(base_dir) / d / f


def _install_once(path: Path, write: Callable[[Path], None]) -> None:
    if path.exists():
        logger.debug("hook settings already present: %s", path)
        return
    write(path)
    logger.info("installed hook settings: %s", path)


def _command_hook(command: str) -> Dict[str, object]:
    return {"matcher": "", "hooks": [{"type": "command", "command": command}]}


def install_claude_settings(settings_dir: str, work_dir: str, role: str, hooks_dir: str, hooks_file: str) -> None:
    # Claude reads settings through --settings, so they go to settings_dir.
    path = _target(settings_dir, "claude", hooks_dir, hooks_file)
    doc = {
        "hooks": {
            "SessionStart": [_command_hook(session_start_command(role))],
            "PreCompact": [_command_hook(plan_role(role).prime_command)],
        }
    }
    _install_once(path, lambda p: atomic_write_json(p, doc))


def install_gemini_settings(settings_dir: str, work_dir: str, role: str, hooks_dir: str, hooks_file: str) -> None:
    # No --settings flag: settings must sit in the work dir.
    path = _target(work_dir, "gemini", hooks_dir, hooks_file)
    doc = {"hooks": {"SessionStart": [_command_hook(session_start_command(role))]}}
    _install_once(path, lambda p: atomic_write_json(p, doc))


_OPENCODE_PLUGIN = """\
// Installed by fleetboot: runs the startup command when a session is created.
export const FleetbootPlugin = async ({ $ }) => {
  return {
    event: async ({ event }) => {
      if (event.type === "session.created") {
        await $`sh -c ${COMMAND}`;
      }
    },
  };
};
"""


def install_opencode_plugin(settings_dir: str, work_dir: str, role: str, hooks_dir: str, hooks_file: str) -> None:
    path = _target(work_dir, "opencode", hooks_dir, hooks_file)
    text = _OPENCODE_PLUGIN.replace("${COMMAND}", "${" + json.dumps(session_start_command(role)) + "}")
    _install_once(path, lambda p: atomic_write_text(p, text))


def install_copilot_instructions(settings_dir: str, work_dir: str, role: str, hooks_dir: str, hooks_file: str) -> None:
    path = _target(work_dir, "copilot", hooks_dir, hooks_file)
    text = (
        "# Session startup\n\n"
        f"At the start of every session run `{session_start_command(role)}` before doing anything else.\n"
    )
    _install_once(path, lambda p: atomic_write_text(p, text))


register_hook_installer("claude", install_claude_settings)
register_hook_installer("gemini", install_gemini_settings)
register_hook_installer("opencode", install_opencode_plugin)
register_hook_installer("copilot", install_copilot_instructions)


def ensure_settings_for_role(settings_dir: str, work_dir: str, role: str, rc: Optional[RuntimeConfig]) -> bool:
    """Install the provider's hook settings for a role.

    Returns True when an installer ran. Missing hooks config, provider "none"
    and unknown providers are no-ops.
    """
    if rc is None:
        rc = default_runtime_config()
    if rc.hooks is None:
        return False
    provider = rc.hooks.provider
    if provider in ("", "none"):
        return False
    installer = get_hook_installer(provider)
    if installer is None:
        logger.debug("no hook installer for provider %s", provider, extra={"provider": provider})
        return False
    installer(settings_dir, work_dir, role, rc.hooks.dir, rc.hooks.settings_file)
    return True
