"""Startup parity check for agents that run without executable hooks.

Catches configurations where a codex-like agent starts, never receives its
prime/mail commands, and idles at the prompt.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .contracts.v1 import CheckResult, RuntimeConfig
from .kernel.fallback import fallback_info
from .kernel.roles import BOOT_TRIAGE_COMMAND, MAIL_INJECT_COMMAND, PRIME_COMMAND, startup_fallback_commands
from .kernel.runtime import get_agent_preset, has_executable_hooks
from .kernel.settings import resolve_role_agent_config

CHECK_NAME = "non-hook-startup-parity"

FIX_HINT = (
    "For codex/non-hook runtimes: set hooks.provider to 'none' (or informational=true for "
    "instruction-only hooks), then ensure startup fallback includes 'gt prime' and "
    "'gt mail check --inject' for autonomous roles."
)


@dataclass(frozen=True)
class StartupRoleTarget:
    role: str
    scope: str
    rig_path: str = ""
    require_mail_check: bool = False
    require_boot_triage: bool = False


def find_rigs(town_root: str) -> List[str]:
    """Directories under the town root that carry rig settings."""
    root = Path(town_root)
    if not root.is_dir():
        return []
    return sorted(str(p) for p in root.iterdir() if p.is_dir() and (p / "settings" / "config.yaml").exists())


def is_known_non_hook_provider(provider: str) -> bool:
    preset = get_agent_preset(provider)
    return preset is not None and not preset.supports_hooks


class NonHookStartupParityCheck:
    name = CHECK_NAME
    description = "Verify non-hook runtimes have startup bootstrap parity"
    category = "config"

    def targets(self, town_root: str, rig_name: str = "") -> List[StartupRoleTarget]:
        targets = [
            StartupRoleTarget(role="deacon", scope="town/deacon", require_mail_check=True),
            StartupRoleTarget(role="boot", scope="town/boot", require_boot_triage=True),
        ]
        for rig_path in self.rig_paths(town_root, rig_name):
            rig = Path(rig_path).name
            targets.extend(
                [
                    StartupRoleTarget(role="polecat", scope=f"{rig}/polecat", rig_path=rig_path, require_mail_check=True),
                    StartupRoleTarget(role="witness", scope=f"{rig}/witness", rig_path=rig_path, require_mail_check=True),
                    StartupRoleTarget(role="refinery", scope=f"{rig}/refinery", rig_path=rig_path, require_mail_check=True),
                    StartupRoleTarget(role="crew", scope=f"{rig}/crew", rig_path=rig_path),
                ]
            )
        return targets

    def rig_paths(self, town_root: str, rig_name: str = "") -> List[str]:
        if rig_name:
            p = Path(town_root) / rig_name
            return [str(p)] if p.is_dir() else []
        return find_rigs(town_root)

    def validate_target(self, target: StartupRoleTarget, rc: Optional[RuntimeConfig]) -> Tuple[List[str], bool]:
        """Issues for one target, and whether it was checked as a non-hook runtime."""
        if rc is None:
            return [f"{target.scope}: unable to resolve runtime config"], False

        hooks_enabled = has_executable_hooks(rc)
        if is_known_non_hook_provider(rc.provider) and hooks_enabled:
            hooks_provider = rc.hooks.provider if rc.hooks is not None and rc.hooks.provider else "none"
            return [
                f"{target.scope}: provider {rc.provider!r} is non-hook but hooks.provider={hooks_provider!r} is executable"
            ], False
        if hooks_enabled:
            return [], False

        issues: List[str] = []
        info = fallback_info(rc)
        if not info.include_prime_in_beacon:
            issues.append(f"{target.scope}: fallback must include prime instruction in beacon")
        if not info.send_startup_nudge:
            issues.append(f"{target.scope}: fallback must send startup nudge for non-hook runtime")
        if info.startup_nudge_delay_ms <= 0:
            issues.append(f"{target.scope}: fallback startup nudge delay must be > 0 for non-hook runtime")
        if rc.prompt_mode == "none" and not info.send_beacon_nudge:
            issues.append(f"{target.scope}: prompt-less non-hook runtime must send beacon via nudge")

        commands = startup_fallback_commands(target.role, rc)
        if not commands:
            issues.append(f"{target.scope}: fallback commands missing for non-hook runtime")
            return issues, True

        joined = " && ".join(commands)
        if PRIME_COMMAND not in joined:
            issues.append(f"{target.scope}: fallback commands must include '{PRIME_COMMAND}'")
        if target.require_mail_check and MAIL_INJECT_COMMAND not in joined:
            issues.append(f"{target.scope}: fallback commands must include '{MAIL_INJECT_COMMAND}'")
        if target.require_boot_triage and BOOT_TRIAGE_COMMAND not in joined:
            issues.append(f"{target.scope}: fallback commands must include '{BOOT_TRIAGE_COMMAND}'")
        return issues, True

    def run(self, town_root: str, rig_name: str = "") -> CheckResult:
        if not town_root:
            return CheckResult(name=self.name, status="ok", message="No town root provided (skipped)", category=self.category)

        issues: List[str] = []
        checked = 0
        for target in self.targets(town_root, rig_name):
            rc = resolve_role_agent_config(target.role, town_root, target.rig_path)
            target_issues, was_checked = self.validate_target(target, rc)
            issues.extend(target_issues)
            if was_checked:
                checked += 1

        if not issues:
            msg = "No non-hook startup roles configured"
            if checked:
                msg = f"Validated non-hook startup parity for {checked} role target(s)"
            return CheckResult(name=self.name, status="ok", message=msg, category=self.category)

        return CheckResult(
            name=self.name,
            status="error",
            message=f"Found {len(issues)} non-hook startup parity issue(s)",
            details=issues,
            fix_hint=FIX_HINT,
            category=self.category,
        )
