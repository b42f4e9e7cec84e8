from __future__ import annotations

from .bootstrap import BootstrapContract, BootstrapSpec, BootstrapStep, FallbackInfo, RoleStartupPlan, StepKind
from .doctor import CheckResult, CheckStatus
from .runtime import CapabilityPair, RuntimeConfig, RuntimeHooksConfig, RuntimeSessionConfig, RuntimeTmuxConfig
from .session import BeaconConfig, SessionConfig

__all__ = [
    "BeaconConfig",
    "BootstrapContract",
    "BootstrapSpec",
    "BootstrapStep",
    "CapabilityPair",
    "CheckResult",
    "CheckStatus",
    "FallbackInfo",
    "RoleStartupPlan",
    "RuntimeConfig",
    "RuntimeHooksConfig",
    "RuntimeSessionConfig",
    "RuntimeTmuxConfig",
    "SessionConfig",
    "StepKind",
]
