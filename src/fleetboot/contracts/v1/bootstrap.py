from __future__ import annotations

from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field

StepKind = Literal["wait", "nudge"]


class FallbackInfo(BaseModel):
    """What the startup sequence has to make up for, given an agent's capabilities."""

    include_prime_in_beacon: bool = False
    send_beacon_nudge: bool = False
    send_startup_nudge: bool = False
    startup_nudge_delay_ms: int = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


class RoleStartupPlan(BaseModel):
    pre_prime_command: str = ""
    prime_command: str = ""
    promptless_command: str = ""
    auto_mail_inject: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class BootstrapSpec(BaseModel):
    role: str = ""
    beacon_message: str = ""
    startup_nudge_message: str = ""
    include_fallback_commands: bool = False
    # Caller already slept for the agent's ready delay.
    ready_delay_applied: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class BootstrapStep(BaseModel):
    kind: StepKind
    delay_ms: int = 0
    command: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def wait(cls, delay_ms: int) -> "BootstrapStep":
        return cls(kind="wait", delay_ms=int(delay_ms))

    @classmethod
    def nudge(cls, command: str) -> "BootstrapStep":
        return cls(kind="nudge", command=command)

    def describe(self) -> str:
        if self.kind == "wait":
            return f"wait:{self.delay_ms}ms"
        return f"nudge:{self.command}"


class BootstrapContract(BaseModel):
    info: FallbackInfo = Field(default_factory=FallbackInfo)
    steps: Tuple[BootstrapStep, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def nudges(self) -> Tuple[str, ...]:
        return tuple(s.command for s in self.steps if s.kind == "nudge")
