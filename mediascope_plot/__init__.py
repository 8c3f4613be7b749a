from mediascope_plot.chart import Chart, LayerSpec
from mediascope_plot.colors import ColorMap, ColorStrategy, resolve_color, sequential_color_scale
from mediascope_plot.errors import PlotDataError
from mediascope_plot.lifecycle import JoinResult, MarkLayer, Transition
from mediascope_plot.marks import Mark, Scene
from mediascope_plot.scales import (
    BandScale,
    LinearScale,
    PointScale,
    RadialScale,
    band_scale,
    linear_scale,
    point_scale,
    radial_scale,
    resolve_position,
)
from mediascope_plot.svg import to_svg
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme, validate_theme
from mediascope_plot.tooltip import HoverState, Tooltip, TooltipManager
from mediascope_plot.viewport import Margin, ViewportGeometry

__all__ = [
    "BandScale",
    "Chart",
    "ChartTheme",
    "ColorMap",
    "ColorStrategy",
    "DEFAULT_THEME",
    "HoverState",
    "JoinResult",
    "LayerSpec",
    "LinearScale",
    "Margin",
    "Mark",
    "MarkLayer",
    "PlotDataError",
    "PointScale",
    "RadialScale",
    "Scene",
    "Tooltip",
    "TooltipManager",
    "Transition",
    "ViewportGeometry",
    "band_scale",
    "linear_scale",
    "point_scale",
    "radial_scale",
    "resolve_color",
    "resolve_position",
    "sequential_color_scale",
    "to_svg",
    "validate_theme",
]
