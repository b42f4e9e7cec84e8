from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

CheckStatus = Literal["ok", "warning", "error"]


class CheckResult(BaseModel):
    name: str
    status: CheckStatus
    message: str
    details: List[str] = Field(default_factory=list)
    fix_hint: str = ""
    category: str = "config"

    model_config = ConfigDict(extra="forbid")
