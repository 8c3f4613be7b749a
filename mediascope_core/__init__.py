from mediascope_core.clock import AnimationClock
from mediascope_core.dashboard import Dashboard, Panel, default_panels
from mediascope_core.dimension_tracker import Dimensions, DimensionTracker
from mediascope_core.events import DashboardEvent

__all__ = [
    "AnimationClock",
    "Dashboard",
    "DashboardEvent",
    "DimensionTracker",
    "Dimensions",
    "Panel",
    "default_panels",
]
