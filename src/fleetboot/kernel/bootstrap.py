"""Build the ordered startup contract for one session.

The contract is plain data: a list of wait/nudge steps that either executor
in `fleetboot.runners.delivery` can run. Building never fails.
"""
from __future__ import annotations

from typing import List, Optional

from ..contracts.v1 import BootstrapContract, BootstrapSpec, BootstrapStep, RuntimeConfig
from .fallback import fallback_info
from .roles import startup_fallback_commands


def build_contract(spec: BootstrapSpec, rc: Optional[RuntimeConfig]) -> BootstrapContract:
    info = fallback_info(rc)
    steps: List[BootstrapStep] = []

    beacon = spec.beacon_message
    startup = spec.startup_nudge_message

    if info.send_beacon_nudge and info.send_startup_nudge and info.startup_nudge_delay_ms == 0 and beacon and startup:
        # Hooks already primed the agent; one round-trip is enough.
        steps.append(BootstrapStep.nudge(beacon + "\n\n" + startup))
    else:
        if info.send_beacon_nudge and beacon:
            steps.append(BootstrapStep.nudge(beacon))
        if info.send_startup_nudge and startup:
            if info.startup_nudge_delay_ms > 0:
                steps.append(BootstrapStep.wait(info.startup_nudge_delay_ms))
            steps.append(BootstrapStep.nudge(startup))

    if spec.include_fallback_commands:
        commands = startup_fallback_commands(spec.role, rc)
        if commands:
            if not spec.ready_delay_applied and rc is not None and rc.ready_delay_ms > 0:
                # The agent process must finish booting before any input arrives.
                steps.insert(0, BootstrapStep.wait(rc.ready_delay_ms))
            for command in commands:
                steps.append(BootstrapStep.nudge(command))

    return BootstrapContract(info=info, steps=tuple(steps))


def fallback_contract(role: str, rc: Optional[RuntimeConfig], *, ready_delay_applied: bool = False) -> BootstrapContract:
    """Contract carrying only the role's fallback commands (respawn path)."""
    return build_contract(
        BootstrapSpec(role=role, include_fallback_commands=True, ready_delay_applied=ready_delay_applied),
        rc,
    )
