from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional


EventType = Literal[
    "resize",
    "pointer_move",
    "pointer_leave",
    "click",
    "wheel",
    "drag",
    "filter",
    "metric",
    "group",
]


@dataclass(frozen=True)
class DashboardEvent:
    """One trigger addressed to a dashboard panel (or to every panel when `panel` is None)."""

    event_type: EventType
    timestamp: float
    panel: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    delta_x: Optional[float] = None
    delta_y: Optional[float] = None
    field: Optional[str] = None
    value: Any = None
