from __future__ import annotations

from . import delivery, tmux

__all__ = ["delivery", "tmux"]
