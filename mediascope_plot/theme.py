from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from mediascope_plot.colors import is_color


_COLOR_TOKENS = (
    "background",
    "text",
    "muted_text",
    "axis_stroke",
    "grid_stroke",
    "accent",
    "tooltip_fill",
    "tooltip_stroke",
    "tooltip_text",
    "median_stroke",
    "whisker_stroke",
    "neutral_fill",
)
_POSITIVE_TOKENS = (
    "font_size_px",
    "tick_font_size_px",
    "title_font_size_px",
    "enter_duration_ms",
    "exit_duration_ms",
    "hover_duration_ms",
)


@dataclass(frozen=True)
class ChartTheme:
    """Visual tokens shared by every chart kind."""

    background: str = "#111827"
    text: str = "#ffffff"
    muted_text: str = "#9ca3af"
    axis_stroke: str = "rgba(255,255,255,0.3)"
    grid_stroke: str = "rgba(255,255,255,0.1)"
    accent: str = "#69b3a2"
    tooltip_fill: str = "rgba(31,41,55,0.95)"
    tooltip_stroke: str = "#69b3a2"
    tooltip_text: str = "#ffffff"
    median_stroke: str = "#1f2937"
    whisker_stroke: str = "rgba(255,255,255,0.5)"
    neutral_fill: str = "#cccccc"
    font_family: str = "DejaVu Sans"
    font_size_px: float = 12.0
    tick_font_size_px: float = 11.0
    title_font_size_px: float = 14.0
    enter_duration_ms: float = 500.0
    exit_duration_ms: float = 300.0
    hover_duration_ms: float = 200.0


DEFAULT_THEME = ChartTheme()


def validate_theme(overrides: Mapping[str, Any] | None = None) -> ChartTheme:
    """Merge overrides over the defaults, rejecting unknown tokens and bad values."""

    raw: dict[str, Any] = asdict(DEFAULT_THEME)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ValueError(f"Unknown theme token: {key}")
            raw[key] = value

    for key in _COLOR_TOKENS:
        if not is_color(raw[key]):
            raise ValueError(f"Token `{key}` must be a color (#RRGGBB, #RRGGBBAA or rgba())")

    if not isinstance(raw["font_family"], str) or not raw["font_family"].strip():
        raise ValueError("Token `font_family` must be a non-empty string")

    for key in _POSITIVE_TOKENS:
        value = raw[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or float(value) <= 0:
            raise ValueError(f"Token `{key}` must be a positive number")
        raw[key] = float(value)

    return ChartTheme(**raw)
