from __future__ import annotations

from datetime import datetime
from typing import Optional


def beacon_timestamp(now: Optional[datetime] = None) -> str:
    """Minute-resolution local time shown in session beacons."""
    dt = now or datetime.now()
    return dt.strftime("%Y-%m-%dT%H:%M")
