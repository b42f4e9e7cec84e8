from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, Optional

from . import __version__
from .contracts.v1 import BeaconConfig, BootstrapContract, BootstrapSpec, RuntimeConfig, SessionConfig
from .doctor import NonHookStartupParityCheck
from .errors import FleetbootError
from .kernel.bootstrap import build_contract
from .kernel.fallback import startup_nudge_content
from .kernel.hooks import ensure_settings_for_role
from .kernel.runtime import detect_all_runtimes
from .kernel.settings import resolve_agent_config, resolve_role_agent_config
from .lifecycle import run_respawn_bootstrap, runtime_config_for_session, schedule_respawn_bootstrap, start_session
from .runners.delivery import lower_contract
from .runners.tmux import Tmux
from .util.obslog import default_level, setup_root_json_logging


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _error(code: str, message: str) -> int:
    _print_json({"ok": False, "error": {"code": code, "message": message}})
    return 2


def _runtime_for(args: argparse.Namespace) -> Optional[RuntimeConfig]:
    town = str(getattr(args, "town", "") or "")
    agent = str(getattr(args, "agent", "") or "").strip()
    if agent:
        return resolve_agent_config(agent, town)
    return resolve_role_agent_config(args.role, town)


def _contract_from_args(args: argparse.Namespace, rc: RuntimeConfig) -> BootstrapContract:
    startup = args.startup
    if startup is None:
        startup = startup_nudge_content()
    spec = BootstrapSpec(
        role=args.role,
        beacon_message=args.beacon or "",
        startup_nudge_message=startup,
        include_fallback_commands=bool(args.fallback),
        ready_delay_applied=bool(args.ready_delay_applied),
    )
    return build_contract(spec, rc)


def _contract_doc(contract: BootstrapContract) -> Dict[str, Any]:
    return contract.model_dump()


def cmd_plan(args: argparse.Namespace) -> int:
    rc = _runtime_for(args)
    if rc is None:
        return _error("unknown_agent", f"unknown agent: {args.agent}")
    contract = _contract_from_args(args, rc)
    _print_json({"ok": True, "result": {"provider": rc.provider, "contract": _contract_doc(contract)}})
    return 0


def cmd_script(args: argparse.Namespace) -> int:
    rc = _runtime_for(args)
    if rc is None:
        return _error("unknown_agent", f"unknown agent: {args.agent}")
    contract = _contract_from_args(args, rc)
    _print_json({"ok": True, "result": {"scripts": lower_contract(args.session, contract)}})
    return 0


def cmd_respawn(args: argparse.Namespace) -> int:
    try:
        role, rc = runtime_config_for_session(args.session, str(args.town or ""))
    except FleetbootError as e:
        return _error("invalid_session", str(e))

    tmux = Tmux()
    try:
        if args.detach:
            scripts = schedule_respawn_bootstrap(args.session, role, rc, tmux.run_shell_background)
            _print_json({"ok": True, "result": {"role": role, "scheduled": scripts}})
        else:
            contract = run_respawn_bootstrap(tmux, args.session, role, rc)
            _print_json({"ok": True, "result": {"role": role, "contract": _contract_doc(contract)}})
    except FleetbootError as e:
        return _error("respawn_bootstrap_failed", str(e))
    return 0


def cmd_start(args: argparse.Namespace) -> int:
    cfg = SessionConfig(
        session_id=args.session,
        work_dir=args.workdir,
        role=args.role,
        beacon=BeaconConfig(
            recipient=args.recipient or args.role,
            sender=args.sender,
            topic=args.topic,
        ),
        instructions=args.instructions,
        agent_override=args.agent,
        town_root=args.town,
        config_dir=args.config_dir,
        run_startup_fallback=bool(args.fallback),
        startup_fallback_role=args.fallback_role,
        ready_delay=bool(args.ready_delay),
    )
    try:
        handle = start_session(Tmux(), cfg)
    except FleetbootError as e:
        return _error("session_start_failed", str(e))
    _print_json(
        {
            "ok": True,
            "result": {
                "session_id": handle.session_id,
                "agent": handle.agent,
                "command": handle.command,
                "contract": _contract_doc(handle.contract),
            },
        }
    )
    return 0


def cmd_hooks_install(args: argparse.Namespace) -> int:
    rc = _runtime_for(args)
    if rc is None:
        return _error("unknown_agent", f"unknown agent: {args.agent}")
    try:
        installed = ensure_settings_for_role(args.settings_dir, args.workdir, args.role, rc)
    except (OSError, ValueError) as e:
        return _error("hooks_install_failed", str(e))
    _print_json({"ok": True, "result": {"provider": rc.provider, "installed": installed}})
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    result = NonHookStartupParityCheck().run(args.town, args.rig)
    _print_json({"ok": result.status == "ok", "result": result.model_dump()})
    return 0 if result.status == "ok" else 2


def cmd_agents(_: argparse.Namespace) -> int:
    rows = [
        {
            "name": r.name,
            "display_name": r.display_name,
            "command": r.command,
            "available": r.available,
            "path": r.path,
            "supports_hooks": r.supports_hooks,
            "prompt_mode": r.prompt_mode,
            "notes": r.notes,
        }
        for r in detect_all_runtimes()
    ]
    _print_json({"ok": True, "result": {"agents": rows}})
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(__version__)
    return 0


def _add_contract_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--role", required=True, help="Role to plan for (polecat, witness, refinery, deacon, boot, crew, mayor)")
    p.add_argument("--agent", default="", help="Agent preset or configured agent (default: role's agent from settings)")
    p.add_argument("--town", default="", help="Town root holding settings/config.yaml")
    p.add_argument("--beacon", default="", help="Beacon text")
    p.add_argument("--startup", default=None, help="Startup nudge text (default: standard hook instructions)")
    p.add_argument("--fallback", action="store_true", help="Include the role's fallback commands")
    p.add_argument("--ready-delay-applied", action="store_true", help="Caller already waited for the ready delay")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fleetboot", description="Startup bootstrap for agent tmux sessions")
    p.add_argument("--log-level", default=default_level(), help="Log level (default: FLEETBOOT_LOG_LEVEL or WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_plan = sub.add_parser("plan", help="Print the bootstrap contract for a role/agent")
    _add_contract_args(p_plan)
    p_plan.set_defaults(func=cmd_plan)

    p_script = sub.add_parser("script", help="Print the detached tmux scripts for a contract without submitting them")
    _add_contract_args(p_script)
    p_script.add_argument("--session", required=True, help="Target tmux session")
    p_script.set_defaults(func=cmd_script)

    p_respawn = sub.add_parser("respawn", help="Deliver fallback startup commands into a respawned session")
    p_respawn.add_argument("session", help="Session name (e.g. gt-toast, hq-boot)")
    p_respawn.add_argument("--town", default="", help="Town root holding settings/config.yaml")
    p_respawn.add_argument("--detach", action="store_true", help="Schedule via tmux run-shell -b instead of waiting")
    p_respawn.set_defaults(func=cmd_respawn)

    p_start = sub.add_parser("start", help="Start an agent session and bootstrap it")
    p_start.add_argument("--session", required=True, help="Session id")
    p_start.add_argument("--workdir", required=True, help="Working directory")
    p_start.add_argument("--role", required=True, help="Role")
    p_start.add_argument("--agent", default="", help="Agent override")
    p_start.add_argument("--town", default="", help="Town root")
    p_start.add_argument("--recipient", default="", help="Beacon recipient (default: role)")
    p_start.add_argument("--sender", default="human", help="Beacon sender (default: human)")
    p_start.add_argument("--topic", default="start", help="Beacon topic (default: start)")
    p_start.add_argument("--instructions", default="", help="Extra instructions appended to the prompt")
    p_start.add_argument("--config-dir", default="", help="Account config dir exported via the agent's config env")
    p_start.add_argument("--fallback", action="store_true", help="Run startup fallback for non-hook agents")
    p_start.add_argument("--fallback-role", default="", help="Plan fallback commands for this role instead")
    p_start.add_argument("--ready-delay", action="store_true", help="Wait for the agent's ready delay before nudging")
    p_start.set_defaults(func=cmd_start)

    p_hooks = sub.add_parser("hooks", help="Hook settings")
    hooks_sub = p_hooks.add_subparsers(dest="action", required=True)
    p_hooks_install = hooks_sub.add_parser("install", help="Install provider hook settings for a role")
    p_hooks_install.add_argument("--role", required=True, help="Role")
    p_hooks_install.add_argument("--agent", default="", help="Agent (default: role's agent from settings)")
    p_hooks_install.add_argument("--town", default="", help="Town root")
    p_hooks_install.add_argument("--settings-dir", required=True, help="Directory passed to the agent via --settings")
    p_hooks_install.add_argument("--workdir", required=True, help="Agent working directory")
    p_hooks_install.set_defaults(func=cmd_hooks_install)

    p_doctor = sub.add_parser("doctor", help="Check non-hook startup parity for a town")
    p_doctor.add_argument("--town", required=True, help="Town root")
    p_doctor.add_argument("--rig", default="", help="Only check this rig")
    p_doctor.set_defaults(func=cmd_doctor)

    p_agents = sub.add_parser("agents", help="List agent presets and availability")
    p_agents.set_defaults(func=cmd_agents)

    p_ver = sub.add_parser("version", help="Show version")
    p_ver.set_defaults(func=cmd_version)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_root_json_logging(component="fleetboot-cli", level=args.log_level, stream=sys.stderr)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
