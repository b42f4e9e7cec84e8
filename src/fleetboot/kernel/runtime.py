"""Agent runtime presets and capability resolution."""
from __future__ import annotations

import os
import shutil
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..contracts.v1 import CapabilityPair, RuntimeConfig


@dataclass(frozen=True)
class AgentPreset:
    """Built-in description of an agent CLI."""
    name: str
    display_name: str
    command: str
    args: Tuple[str, ...] = ()
    prompt_mode: str = "arg"
    supports_hooks: bool = False
    hooks_provider: str = "none"
    hooks_informational: bool = False
    hooks_dir: str = ""
    hooks_settings_file: str = ""
    ready_delay_ms: int = 0
    config_dir_env: str = ""
    session_id_env: str = ""

    def to_doc(self) -> Dict[str, Any]:
        """Render the preset in RuntimeConfig document shape."""
        return {
            "provider": self.name,
            "command": self.command,
            "args": list(self.args),
            "prompt_mode": self.prompt_mode,
            "hooks": {
                "provider": self.hooks_provider,
                "informational": self.hooks_informational,
                "dir": self.hooks_dir,
                "settings_file": self.hooks_settings_file,
            },
            "tmux": {"ready_delay_ms": self.ready_delay_ms},
            "session": {"config_dir_env": self.config_dir_env, "session_id_env": self.session_id_env},
        }


AGENT_PRESETS: Dict[str, AgentPreset] = {
    "claude": AgentPreset(
        name="claude",
        display_name="Claude Code",
        command="claude",
        args=("--dangerously-skip-permissions",),
        supports_hooks=True,
        hooks_provider="claude",
        hooks_dir=".claude",
        hooks_settings_file="settings.json",
        config_dir_env="CLAUDE_CONFIG_DIR",
        session_id_env="CLAUDE_SESSION_ID",
    ),
    "gemini": AgentPreset(
        name="gemini",
        display_name="Gemini CLI",
        command="gemini",
        args=("--approval-mode", "yolo"),
        supports_hooks=True,
        hooks_provider="gemini",
        hooks_dir=".gemini",
        hooks_settings_file="settings.json",
        session_id_env="GEMINI_SESSION_ID",
    ),
    "codex": AgentPreset(
        name="codex",
        display_name="Codex CLI",
        command="codex",
        args=("--dangerously-bypass-approvals-and-sandbox",),
        ready_delay_ms=3000,
        config_dir_env="CODEX_HOME",
    ),
    "opencode": AgentPreset(
        name="opencode",
        display_name="OpenCode",
        command="opencode",
        prompt_mode="none",
        supports_hooks=True,
        hooks_provider="opencode",
        hooks_dir=".opencode/plugin",
        hooks_settings_file="fleetboot.js",
        ready_delay_ms=2000,
    ),
    "copilot": AgentPreset(
        name="copilot",
        display_name="GitHub Copilot CLI",
        command="copilot",
        args=("--allow-all-tools", "--allow-all-paths"),
        hooks_provider="copilot",
        hooks_informational=True,
        hooks_dir=".github",
        hooks_settings_file="copilot-instructions.md",
        ready_delay_ms=2000,
    ),
    "cursor": AgentPreset(
        name="cursor",
        display_name="Cursor CLI",
        command="cursor-agent",
        args=("-f",),
        ready_delay_ms=2000,
    ),
    "auggie": AgentPreset(
        name="auggie",
        display_name="Auggie (Augment CLI)",
        command="auggie",
        args=("--allow-indexing",),
        prompt_mode="none",
        ready_delay_ms=2000,
    ),
    "amp": AgentPreset(
        name="amp",
        display_name="Amp CLI",
        command="amp",
        args=("--dangerously-allow-all",),
        prompt_mode="none",
        ready_delay_ms=2000,
    ),
}

DEFAULT_AGENT = "claude"


def list_agent_names() -> List[str]:
    return list(AGENT_PRESETS.keys())


def get_agent_preset(name: str) -> Optional[AgentPreset]:
    return AGENT_PRESETS.get(str(name or "").strip().lower())


def default_runtime_config() -> RuntimeConfig:
    """Descriptor used when none is configured: hook- and prompt-capable."""
    return RuntimeConfig.model_validate(AGENT_PRESETS[DEFAULT_AGENT].to_doc())


def runtime_config_for_agent(name: str) -> Optional[RuntimeConfig]:
    preset = get_agent_preset(name)
    if preset is None:
        return None
    return RuntimeConfig.model_validate(preset.to_doc())


def has_executable_hooks(rc: Optional[RuntimeConfig]) -> bool:
    return (
        rc is not None
        and rc.hooks is not None
        and rc.hooks.provider not in ("", "none")
        and not rc.hooks.informational
    )


def resolve_capabilities(rc: Optional[RuntimeConfig]) -> CapabilityPair:
    if rc is None:
        rc = default_runtime_config()
    return CapabilityPair(has_hooks=has_executable_hooks(rc), has_prompt=rc.prompt_mode != "none")


def sleep_for_ready_delay(rc: Optional[RuntimeConfig], sleep_fn: Callable[[float], None] = time.sleep) -> None:
    """Sleep for the runtime's configured readiness delay, if any."""
    if rc is None or rc.ready_delay_ms <= 0:
        return
    sleep_fn(rc.ready_delay_ms / 1000.0)


def session_id_from_env(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the agent session id of the current process, if present.

    Looks at the variable named by GT_SESSION_ID_ENV first, then the session id
    variable of the agent named by GT_AGENT, then CLAUDE_SESSION_ID.
    """
    env = os.environ if environ is None else environ
    indirect = env.get("GT_SESSION_ID_ENV", "")
    if indirect:
        sid = env.get(indirect, "")
        if sid:
            return sid
    preset = get_agent_preset(env.get("GT_AGENT", ""))
    if preset is not None and preset.session_id_env:
        sid = env.get(preset.session_id_env, "")
        if sid:
            return sid
    return env.get("CLAUDE_SESSION_ID", "")


@dataclass
class RuntimeInfo:
    """Availability of an agent runtime on this machine."""
    name: str
    display_name: str
    command: str
    available: bool
    path: Optional[str]
    supports_hooks: bool
    prompt_mode: str
    notes: List[str] = field(default_factory=list)


def detect_runtime(name: str) -> RuntimeInfo:
    preset = get_agent_preset(name)
    if preset is None:
        return RuntimeInfo(
            name=name,
            display_name=name,
            command=name,
            available=False,
            path=None,
            supports_hooks=False,
            prompt_mode="arg",
            notes=["unknown runtime"],
        )
    path = shutil.which(preset.command)
    notes: List[str] = []
    if preset.hooks_informational:
        notes.append("hooks are informational only")
    if preset.prompt_mode == "none":
        notes.append("no launch prompt; beacon is nudged")
    return RuntimeInfo(
        name=preset.name,
        display_name=preset.display_name,
        command=preset.command,
        available=path is not None,
        path=path,
        supports_hooks=preset.supports_hooks,
        prompt_mode=preset.prompt_mode,
        notes=notes,
    )


def detect_all_runtimes() -> List[RuntimeInfo]:
    return [detect_runtime(name) for name in list_agent_names()]
