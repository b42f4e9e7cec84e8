"""Bring an agent session up: validate, launch, and bootstrap it."""
from __future__ import annotations

import logging
import shlex
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .contracts.v1 import BeaconConfig, BootstrapContract, BootstrapSpec, RuntimeConfig, SessionConfig
from .errors import SessionConfigError
from .kernel.bootstrap import build_contract, fallback_contract
from .kernel.fallback import beacon_prime_instruction, fallback_info, startup_nudge_content
from .kernel.roles import parse_session_name, startup_fallback_commands
from .kernel.runtime import sleep_for_ready_delay
from .kernel.settings import agent_for_role, resolve_agent_config, resolve_role_agent_config
from .runners.delivery import BackgroundRunner, Nudger, SleepFn, execute_contract, schedule_detached
from .runners.tmux import Tmux, env_prefix
from .util.time import beacon_timestamp

logger = logging.getLogger("fleetboot.lifecycle")

BEACON_MARKER = "[GAS TOWN]"


@dataclass
class SessionHandle:
    session_id: str
    role: str
    agent: str
    command: str
    runtime: RuntimeConfig
    contract: BootstrapContract


def validate_session_config(cfg: SessionConfig) -> None:
    if not cfg.session_id:
        raise SessionConfigError("SessionID is required")
    if not cfg.work_dir:
        raise SessionConfigError("WorkDir is required")
    if not cfg.role:
        raise SessionConfigError("Role is required")


def format_beacon(beacon: BeaconConfig, *, now: Optional[datetime] = None) -> str:
    parts = [f"{BEACON_MARKER} {beacon.recipient} <- {beacon.sender}", beacon_timestamp(now)]
    if beacon.topic:
        parts.append(beacon.topic)
    return " • ".join(parts)


def build_prompt(cfg: SessionConfig, *, now: Optional[datetime] = None) -> str:
    prompt = format_beacon(cfg.beacon, now=now)
    if cfg.beacon.include_prime_instruction:
        prompt += beacon_prime_instruction()
    if not cfg.beacon.exclude_work_instructions:
        prompt += "\n\n" + startup_nudge_content()
    if cfg.instructions:
        prompt += "\n\n" + cfg.instructions
    return prompt


def resolve_session_agent(cfg: SessionConfig) -> Tuple[str, RuntimeConfig]:
    """Effective agent for the session: explicit override, else the role's default."""
    name = cfg.agent_override.strip() or agent_for_role(cfg.role, cfg.town_root)
    rc = resolve_agent_config(name, cfg.town_root)
    if rc is None:
        raise SessionConfigError(f"unknown agent: {name}")
    return name, rc


def build_command(cfg: SessionConfig, prompt: str) -> str:
    _, rc = resolve_session_agent(cfg)
    return _launch_line(cfg, rc, prompt)


def _launch_line(cfg: SessionConfig, rc: RuntimeConfig, prompt: str) -> str:
    env: Dict[str, str] = {}
    if rc.config_dir_env and cfg.config_dir:
        env[rc.config_dir_env] = cfg.config_dir
    env["GT_ROLE"] = cfg.role
    env["GT_AGENT"] = rc.provider
    if cfg.session_id:
        env["GT_SESSION"] = cfg.session_id
    env.update(cfg.env)

    argv = [rc.command or rc.provider, *rc.args]
    if prompt and rc.prompt_mode != "none":
        argv.append(prompt)
    return "exec env " + env_prefix(env) + " " + " ".join(shlex.quote(a) for a in argv)


def startup_fallback_plan(cfg: SessionConfig, rc: Optional[RuntimeConfig]) -> Tuple[List[str], bool]:
    """Fallback commands for the planning role and whether to wait before nudging them."""
    if not cfg.run_startup_fallback:
        return [], False
    role = cfg.startup_fallback_role or cfg.role
    commands = startup_fallback_commands(role, rc)
    return commands, bool(commands) and not cfg.ready_delay


def _fallback_runtime(cfg: SessionConfig, rc: RuntimeConfig) -> RuntimeConfig:
    if cfg.agent_override.strip() or not cfg.startup_fallback_role:
        return rc
    return resolve_role_agent_config(cfg.startup_fallback_role, cfg.town_root)


def start_session(tmux: Tmux, cfg: SessionConfig, *, sleep_fn: SleepFn = time.sleep) -> SessionHandle:
    validate_session_config(cfg)

    agent, rc = resolve_session_agent(cfg)
    info = fallback_info(rc)
    beacon = cfg.beacon.model_copy(
        update={
            "include_prime_instruction": cfg.beacon.include_prime_instruction or info.include_prime_in_beacon,
            "exclude_work_instructions": cfg.beacon.exclude_work_instructions or info.send_startup_nudge,
        }
    )
    prompt = build_prompt(cfg.model_copy(update={"beacon": beacon}))
    command = _launch_line(cfg, rc, prompt)

    log_extra = {"session_id": cfg.session_id, "role": cfg.role, "provider": rc.provider}
    tmux.new_session(cfg.session_id, cwd=Path(cfg.work_dir), command=command)
    logger.info("started session with agent %s", agent, extra=log_extra)

    if cfg.ready_delay:
        sleep_for_ready_delay(rc, sleep_fn)

    contract = BootstrapContract(info=info)
    if cfg.run_startup_fallback:
        fallback_rc = _fallback_runtime(cfg, rc)
        commands, _ = startup_fallback_plan(cfg, fallback_rc)
        contract = build_contract(
            BootstrapSpec(
                role=cfg.startup_fallback_role or cfg.role,
                beacon_message=prompt,
                startup_nudge_message="" if commands else startup_nudge_content(),
                include_fallback_commands=True,
                ready_delay_applied=cfg.ready_delay,
            ),
            fallback_rc,
        )
        execute_contract(tmux, cfg.session_id, contract, sleep_fn)
        logger.info("startup bootstrap delivered (%d step(s))", len(contract.steps), extra=log_extra)

    return SessionHandle(
        session_id=cfg.session_id,
        role=cfg.role,
        agent=agent,
        command=command,
        runtime=rc,
        contract=contract,
    )


def kill_existing_session(tmux: Tmux, session_id: str) -> bool:
    """Kill `session_id` if it exists; returns whether it did."""
    if not tmux.has_session(session_id):
        return False
    tmux.kill_session(session_id)
    return True


def runtime_config_for_session(session_name: str, town_root: str = "") -> Tuple[str, RuntimeConfig]:
    identity = parse_session_name(session_name)
    rig_path = ""
    if identity.rig and town_root:
        rig_path = str(Path(town_root) / identity.rig)
    return identity.role, resolve_role_agent_config(identity.role, town_root, rig_path)


def run_respawn_bootstrap(
    nudger: Nudger,
    session_id: str,
    role: str,
    rc: Optional[RuntimeConfig],
    sleep_fn: SleepFn = time.sleep,
) -> BootstrapContract:
    """Wait for the agent to boot, then nudge the role's fallback commands in-process."""
    contract = fallback_contract(role, rc)
    execute_contract(nudger, session_id, contract, sleep_fn)
    return contract


def schedule_respawn_bootstrap(
    session_id: str,
    role: str,
    rc: Optional[RuntimeConfig],
    run_background: BackgroundRunner,
) -> List[str]:
    """Like run_respawn_bootstrap, but detached from this process."""
    return schedule_detached(session_id, fallback_contract(role, rc), run_background)
