"""Startup fallback decisions for agents without hooks or a launch prompt.

Fallback matrix:

    | Hooks | Prompt | Beacon                 | Context source      | Work instructions |
    |-------|--------|------------------------|---------------------|-------------------|
    | yes   | yes    | standard (prompt)      | hook runs gt prime  | in beacon         |
    | yes   | no     | standard (nudge)       | hook runs gt prime  | same nudge        |
    | no    | yes    | "run gt prime" (prompt)| agent runs manually | delayed nudge     |
    | no    | no     | "run gt prime" (nudge) | agent runs manually | delayed nudge     |
"""
from __future__ import annotations

from typing import Optional

from ..contracts.v1 import CapabilityPair, FallbackInfo, RuntimeConfig
from .runtime import resolve_capabilities

# In-session CLI; transcripts are scanned for these exact strings.
CLI_NAME = "gt"

# Time a hookless agent gets to finish `gt prime` before work instructions arrive.
DEFAULT_PRIME_WAIT_MS = 2000


def decide(caps: CapabilityPair) -> FallbackInfo:
    if caps.has_hooks and caps.has_prompt:
        return FallbackInfo()
    if caps.has_hooks:
        # Hook runs prime synchronously: greeting and work go out together, no wait.
        return FallbackInfo(send_beacon_nudge=True, send_startup_nudge=True, startup_nudge_delay_ms=0)
    return FallbackInfo(
        include_prime_in_beacon=True,
        send_beacon_nudge=not caps.has_prompt,
        send_startup_nudge=True,
        startup_nudge_delay_ms=DEFAULT_PRIME_WAIT_MS,
    )


def fallback_info(rc: Optional[RuntimeConfig]) -> FallbackInfo:
    return decide(resolve_capabilities(rc))


def startup_nudge_content() -> str:
    """Work instructions sent as the startup nudge."""
    return f"Check your hook with `{CLI_NAME} hook`. If work is present, begin immediately."


def beacon_prime_instruction() -> str:
    """Suffix added to the beacon for agents whose hooks will not run prime."""
    return f"\n\nRun `{CLI_NAME} prime` to initialize your context."
