from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class BeaconConfig(BaseModel):
    recipient: str = ""
    sender: str = ""
    topic: str = ""
    include_prime_instruction: bool = False
    exclude_work_instructions: bool = False

    model_config = ConfigDict(extra="forbid")


class SessionConfig(BaseModel):
    session_id: str = ""
    work_dir: str = ""
    role: str = ""
    beacon: BeaconConfig = Field(default_factory=BeaconConfig)
    instructions: str = ""
    agent_override: str = ""
    town_root: str = ""
    # Account config directory exported through the agent's config_dir_env.
    config_dir: str = ""
    env: Dict[str, str] = Field(default_factory=dict)
    run_startup_fallback: bool = False
    startup_fallback_role: str = ""
    # Sleep for the agent's ready delay before any nudge is sent.
    ready_delay: bool = False

    model_config = ConfigDict(extra="forbid")
