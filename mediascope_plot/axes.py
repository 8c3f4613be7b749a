from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from mediascope_plot.marks import Mark
from mediascope_plot.scales import (
    BandScale,
    LinearScale,
    PointScale,
    Scale,
    format_ticks,
    scale_ticks,
)
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme


Orient = Literal["bottom", "left"]

TICK_SIZE = 6.0
TICK_PADDING = 3.0
TITLE_OFFSET = 45.0


def tick_positions(scale: Scale, target: int = 5) -> list[tuple[float, str]]:
    """(pixel, label) pairs along the scale's range."""

    match scale:
        case BandScale():
            return [(scale.center_of(label) or 0.0, label) for label in scale.domain]
        case PointScale():
            return [(scale(label) or 0.0, label) for label in scale.domain]
        case LinearScale():
            values = [float(v) for v in scale_ticks(scale, target)]  # type: ignore[arg-type]
            return list(zip((scale(v) for v in values), format_ticks(values), strict=True))
    raise TypeError(f"axes support band, point and linear scales, not {type(scale).__name__}")


def axis_marks(
    scale: Scale,
    orient: Orient,
    *,
    origin: tuple[float, float],
    length: float,
    theme: ChartTheme = DEFAULT_THEME,
    ticks: int = 5,
    title: str | None = None,
    title_offset: float = TITLE_OFFSET,
    grid: bool = False,
    grid_length: float = 0.0,
    tick_format: Callable[[str], str] | None = None,
    key: str | None = None,
) -> list[Mark]:
    """Domain line, ticks, labels, optional gridlines and title for one axis.

    `origin` is the plot area's top-left corner; `length` is the extent of the
    perpendicular dimension (inner height for a bottom axis).
    """

    positions = tick_positions(scale, ticks)
    prefix = key or f"axis:{orient}"
    ox, oy = origin
    r0, r1 = scale.range  # type: ignore[union-attr]
    lo, hi = min(r0, r1), max(r0, r1)
    stroke = theme.axis_stroke
    out: list[Mark] = []

    if orient == "bottom":
        base = oy + length
        out.append(_line(f"{prefix}:domain", ox + lo, base, ox + hi, base, stroke))
    else:
        base = ox
        out.append(_line(f"{prefix}:domain", base, oy + lo, base, oy + hi, stroke))

    for pos, label in positions:
        text = tick_format(label) if tick_format else label
        tick_key = f"{prefix}:tick:{label}"
        if orient == "bottom":
            x = ox + pos
            out.append(_line(tick_key, x, base, x, base + TICK_SIZE, stroke))
            if grid:
                out.append(_line(f"{prefix}:grid:{label}", x, oy + length, x, oy + length - grid_length, theme.grid_stroke))
            out.append(
                _text(f"{prefix}:label:{label}", x, base + TICK_SIZE + TICK_PADDING, text, theme, anchor="middle", baseline="hanging")
            )
        else:
            y = oy + pos
            out.append(_line(tick_key, base - TICK_SIZE, y, base, y, stroke))
            if grid:
                out.append(_line(f"{prefix}:grid:{label}", base, y, base + grid_length, y, theme.grid_stroke))
            out.append(
                _text(f"{prefix}:label:{label}", base - TICK_SIZE - TICK_PADDING, y, text, theme, anchor="end", baseline="middle")
            )

    if title:
        if orient == "bottom":
            out.append(
                _text(f"{prefix}:title", ox + (lo + hi) / 2.0, oy + length + title_offset, title, theme, anchor="middle", title=True)
            )
        else:
            out.append(
                _text(
                    f"{prefix}:title",
                    ox - title_offset,
                    oy + (lo + hi) / 2.0,
                    title,
                    theme,
                    anchor="middle",
                    rotate=-90,
                    title=True,
                )
            )
    return out


def _line(key: str, x1: float, y1: float, x2: float, y2: float, stroke: str) -> Mark:
    return Mark(
        key=key,
        kind="line",
        attrs={"x1": x1, "y1": y1, "x2": x2, "y2": y2, "stroke": stroke, "stroke_width": 1.0, "opacity": 1.0},
        interactive=False,
    )


def _text(
    key: str,
    x: float,
    y: float,
    text: str,
    theme: ChartTheme,
    *,
    anchor: str,
    baseline: str = "alphabetic",
    rotate: int = 0,
    title: bool = False,
) -> Mark:
    return Mark(
        key=key,
        kind="text",
        attrs={
            "x": x,
            "y": y,
            "text": text,
            "fill": theme.text,
            "font_size": theme.font_size_px if title else theme.tick_font_size_px,
            "anchor": anchor,
            "baseline": baseline,
            "rotate": rotate,
            "bold": title,
            "opacity": 1.0,
        },
        interactive=False,
    )
