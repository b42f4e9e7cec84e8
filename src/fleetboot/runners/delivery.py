"""Run a bootstrap contract against a live session.

Two interpreters of the same step list:

- `execute_contract` sleeps and nudges in this process, step by step.
- `schedule_detached` lowers the steps to shell fragments and hands them to
  tmux `run-shell -b`, for callers that will not outlive the waits (e.g. a
  session that is about to be respawned).
"""
from __future__ import annotations

import logging
import shlex
import time
from typing import Callable, List, Protocol

from ..contracts.v1 import BootstrapContract
from ..errors import DeliveryError, SchedulingError

logger = logging.getLogger("fleetboot.delivery")

SleepFn = Callable[[float], None]
BackgroundRunner = Callable[[str], None]


class Nudger(Protocol):
    def nudge_session(self, session_id: str, message: str) -> None:
        ...


def execute_contract(
    nudger: Nudger,
    session_id: str,
    contract: BootstrapContract,
    sleep_fn: SleepFn = time.sleep,
) -> None:
    """Run every step in order; the first failed nudge aborts the rest."""
    for i, step in enumerate(contract.steps):
        if step.kind == "wait":
            if step.delay_ms > 0:
                sleep_fn(step.delay_ms / 1000.0)
            continue
        if not step.command:
            continue
        try:
            nudger.nudge_session(session_id, step.command)
        except Exception as e:
            logger.warning(
                "startup nudge failed; %d step(s) not delivered",
                len(contract.steps) - i - 1,
                extra={"session_id": session_id, "step": i},
            )
            raise DeliveryError(f"nudging {session_id}: {e}", session_id=session_id, step_index=i) from e
        logger.debug("delivered startup nudge", extra={"session_id": session_id, "step": i})


def build_deferred_nudge_script(session_id: str, command: str, delay_ms: int = 0) -> str:
    steps: List[str] = []
    if delay_ms > 0:
        steps.append(f"sleep {delay_ms / 1000.0:.3f}")
    quoted_session = shlex.quote(session_id)
    steps.append(f"tmux send-keys -t {quoted_session} -l {shlex.quote(command)}")
    steps.append(f"tmux send-keys -t {quoted_session} Enter")
    return " && ".join(steps)


def lower_contract(session_id: str, contract: BootstrapContract) -> List[str]:
    """One fragment per nudge.

    Fragments run independently once submitted, so each sleeps for the total
    wait preceding its nudge, measured from submission.
    """
    scripts: List[str] = []
    offset_ms = 0
    for step in contract.steps:
        if step.kind == "wait":
            offset_ms += max(step.delay_ms, 0)
            continue
        if not step.command:
            continue
        scripts.append(build_deferred_nudge_script(session_id, step.command, offset_ms))
    return scripts


def schedule_detached(session_id: str, contract: BootstrapContract, run_background: BackgroundRunner) -> List[str]:
    """Submit the contract as background tmux scripts; returns what was submitted.

    Failures inside a submitted script (session gone, etc.) are not visible here.
    """
    submitted: List[str] = []
    for script in lower_contract(session_id, contract):
        try:
            run_background(script)
        except Exception as e:
            raise SchedulingError(f"scheduling startup bootstrap for {session_id}: {e}", session_id=session_id) from e
        submitted.append(script)
    if submitted:
        logger.info("scheduled %d detached startup nudge(s)", len(submitted), extra={"session_id": session_id})
    return submitted
