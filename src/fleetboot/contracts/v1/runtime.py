from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...util.conv import coerce_bool, coerce_non_negative_int


# Any prompt mode other than "none" means the agent accepts an initial prompt argument.
PromptMode = str


class RuntimeHooksConfig(BaseModel):
    provider: str = ""
    informational: bool = False  # instruction files only, nothing executes on session start
    dir: str = ""
    settings_file: str = ""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("provider", mode="before")
    @classmethod
    def _norm_provider(cls, v: Any) -> str:
        if not isinstance(v, str):
            return ""
        return v.strip().lower()

    @field_validator("informational", mode="before")
    @classmethod
    def _coerce_informational(cls, v: Any) -> bool:
        # Unrecognised values count as informational: no executable hooks assumed.
        if v is None:
            return False
        return coerce_bool(v, default=True)


class RuntimeTmuxConfig(BaseModel):
    ready_delay_ms: int = 0

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("ready_delay_ms", mode="before")
    @classmethod
    def _non_negative(cls, v: Any) -> int:
        return coerce_non_negative_int(v)


class RuntimeSessionConfig(BaseModel):
    config_dir_env: str = ""
    session_id_env: str = ""

    model_config = ConfigDict(extra="ignore", frozen=True)


class RuntimeConfig(BaseModel):
    """Read-only snapshot of one agent backend as seen by the bootstrap engine."""

    provider: str = ""
    command: str = ""
    args: List[str] = Field(default_factory=list)
    prompt_mode: PromptMode = "arg"
    hooks: Optional[RuntimeHooksConfig] = None
    tmux: Optional[RuntimeTmuxConfig] = None
    session: Optional[RuntimeSessionConfig] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("prompt_mode", mode="before")
    @classmethod
    def _norm_prompt_mode(cls, v: Any) -> str:
        if v is None:
            return "arg"
        if not isinstance(v, str):
            return "none"
        s = v.strip().lower()
        return s or "arg"

    @property
    def ready_delay_ms(self) -> int:
        if self.tmux is None:
            return 0
        return self.tmux.ready_delay_ms

    @property
    def config_dir_env(self) -> str:
        if self.session is None:
            return ""
        return self.session.config_dir_env

    @property
    def session_id_env(self) -> str:
        if self.session is None:
            return ""
        return self.session.session_id_env


class CapabilityPair(BaseModel):
    has_hooks: bool
    has_prompt: bool

    model_config = ConfigDict(extra="forbid", frozen=True)
