"""Per-role startup commands for agents whose hooks cannot run them.

Planners live in a registration table keyed by role; new roles register a
planner instead of growing a conditional. The table is seeded at import time
and only read afterwards.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..contracts.v1 import RoleStartupPlan, RuntimeConfig
from ..errors import SessionConfigError
from .fallback import CLI_NAME, fallback_info, startup_nudge_content
from .runtime import default_runtime_config, has_executable_hooks

PRIME_COMMAND = f"{CLI_NAME} prime"
MAIL_INJECT_COMMAND = f"{CLI_NAME} mail check --inject"
BOOT_TRIAGE_COMMAND = f"{CLI_NAME} boot triage"
DEACON_HEARTBEAT_COMMAND = f'{CLI_NAME} deacon heartbeat "boot patrol"'
BOOT_FALLBACK_COMMAND = f"{PRIME_COMMAND} && {BOOT_TRIAGE_COMMAND}"

DEFAULT_DEACON_STALE_NUDGE = "HEALTH_CHECK: heartbeat is stale, respond to confirm responsiveness"

# Roles that run without a human prompting them; work reaches them through mail injection.
AUTONOMOUS_ROLES = frozenset({"polecat", "witness", "refinery", "deacon"})

TOWN_ROLES = frozenset({"mayor", "deacon", "boot"})
TOWN_PREFIX = "hq"

RolePlanner = Callable[[str], RoleStartupPlan]

_PLANNERS: Dict[str, RolePlanner] = {}
_PLANNERS_LOCK = threading.Lock()


def normalize_role(role: str) -> str:
    return str(role or "").strip().lower()


def is_autonomous_role(role: str) -> bool:
    return normalize_role(role) in AUTONOMOUS_ROLES


def register_role_planner(role: str, planner: RolePlanner) -> None:
    key = normalize_role(role)
    if not key:
        raise ValueError("missing role")
    with _PLANNERS_LOCK:
        _PLANNERS[key] = planner


def _default_plan(role: str) -> RoleStartupPlan:
    return RoleStartupPlan(prime_command=PRIME_COMMAND, auto_mail_inject=is_autonomous_role(role))


def _deacon_plan(role: str) -> RoleStartupPlan:
    # Heartbeat first so the daemon's health check sees the deacon alive
    # even when it starts on a runtime without hooks.
    return RoleStartupPlan(
        pre_prime_command=DEACON_HEARTBEAT_COMMAND,
        prime_command=PRIME_COMMAND,
        auto_mail_inject=True,
    )


def _boot_plan(role: str) -> RoleStartupPlan:
    return RoleStartupPlan(prime_command=PRIME_COMMAND, promptless_command=BOOT_TRIAGE_COMMAND)


register_role_planner("deacon", _deacon_plan)
register_role_planner("boot", _boot_plan)


def plan_role(role: str) -> RoleStartupPlan:
    key = normalize_role(role)
    planner = _PLANNERS.get(key, _default_plan)
    plan = planner(key)
    if not plan.prime_command:
        plan = plan.model_copy(update={"prime_command": PRIME_COMMAND})
    return plan


def compose_fallback_command(plan: RoleStartupPlan) -> str:
    parts = [plan.pre_prime_command, plan.prime_command or PRIME_COMMAND]
    if plan.auto_mail_inject:
        parts.append(MAIL_INJECT_COMMAND)
    parts.append(plan.promptless_command)
    return " && ".join(p for p in parts if p)


def startup_fallback_commands(role: str, rc: Optional[RuntimeConfig]) -> List[str]:
    """Commands that stand in for a SessionStart hook; empty when hooks will run."""
    if rc is None:
        rc = default_runtime_config()
    if has_executable_hooks(rc):
        return []

    key = normalize_role(role)
    if key == "boot":
        # Boot dispatches triage immediately and never drains mail.
        return [BOOT_FALLBACK_COMMAND]
    return [compose_fallback_command(plan_role(key))]


def startup_nudge_commands(role: str, rc: Optional[RuntimeConfig]) -> List[str]:
    """Role-aware startup nudges for the runtime's capabilities."""
    commands = startup_fallback_commands(role, rc)
    if commands:
        return commands
    if fallback_info(rc).send_startup_nudge:
        return [startup_nudge_content()]
    return []


def deacon_stale_nudge_command(rc: Optional[RuntimeConfig]) -> str:
    """What to nudge into a deacon whose heartbeat went stale."""
    if rc is None or has_executable_hooks(rc):
        return DEFAULT_DEACON_STALE_NUDGE
    return " && ".join(
        [
            f'{CLI_NAME} deacon heartbeat "heartbeat stale poke"',
            PRIME_COMMAND,
            MAIL_INJECT_COMMAND,
        ]
    )


@dataclass(frozen=True)
class SessionIdentity:
    prefix: str
    role: str
    name: str = ""

    @property
    def rig(self) -> str:
        return "" if self.prefix == TOWN_PREFIX else self.prefix


def parse_session_name(session_name: str) -> SessionIdentity:
    """Parse `<prefix>-<rest>` tmux session names.

    hq-mayor, hq-deacon and hq-boot are town level; inside a rig,
    <rig>-witness, <rig>-refinery and <rig>-crew-<name> are fixed roles and
    anything else names a polecat.
    """
    s = str(session_name or "").strip()
    prefix, sep, rest = s.partition("-")
    if not prefix or not sep or not rest:
        raise SessionConfigError(f"invalid session name: {session_name!r}")

    if prefix == TOWN_PREFIX:
        if rest not in TOWN_ROLES:
            raise SessionConfigError(f"unknown town session: {session_name!r}")
        return SessionIdentity(prefix=prefix, role=rest)

    if rest in ("witness", "refinery"):
        return SessionIdentity(prefix=prefix, role=rest)
    if rest.startswith("crew-"):
        name = rest[len("crew-"):]
        if not name:
            raise SessionConfigError(f"crew session without a name: {session_name!r}")
        return SessionIdentity(prefix=prefix, role="crew", name=name)
    return SessionIdentity(prefix=prefix, role="polecat", name=rest)


def role_for_session(session_name: str) -> Tuple[str, SessionIdentity]:
    identity = parse_session_name(session_name)
    return identity.role, identity
