"""Exception types raised by fleetboot.

Contract building never raises; these cover session validation, delivery of
nudges into a live session, and submission of detached bootstrap scripts.
"""
from __future__ import annotations

from typing import Optional


class FleetbootError(Exception):
    """Base class for fleetboot errors."""


class SessionConfigError(FleetbootError, ValueError):
    """A session could not be started because its configuration is invalid."""


class TmuxError(FleetbootError, RuntimeError):
    """A tmux invocation exited non-zero or timed out."""

    def __init__(self, message: str, *, returncode: int = 1, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class DeliveryError(FleetbootError, RuntimeError):
    """A nudge could not be delivered; remaining bootstrap steps were skipped."""

    def __init__(self, message: str, *, session_id: str = "", step_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.session_id = session_id
        self.step_index = step_index


class SchedulingError(FleetbootError, RuntimeError):
    """A detached bootstrap script could not be submitted."""

    def __init__(self, message: str, *, session_id: str = "") -> None:
        super().__init__(message)
        self.session_id = session_id
