from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import math
from typing import Any

from mediascope_data.aggregate import pearson_correlation
from mediascope_data.series import PointDatum
from mediascope_plot.axes import axis_marks
from mediascope_plot.chart import Chart, LayerSpec, ViewportLike, static_layer
from mediascope_plot.colors import parse_color
from mediascope_plot.marks import Mark, Scene
from mediascope_plot.scales import linear_scale
from mediascope_plot.viewport import ViewportGeometry


DOT_RADIUS = 5.0
DOT_HOVER_RADIUS = 8.0
DOT_OPACITY = 0.7
UNSELECTED_OPACITY = 0.2


@dataclass(frozen=True)
class Brush:
    """Rectangular selection in pixel coordinates, normalized so x0<=x1, y0<=y1."""

    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def from_corners(cls, a: tuple[float, float], b: tuple[float, float]) -> "Brush":
        return cls(min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))

    def contains(self, x: float, y: float) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    @property
    def empty(self) -> bool:
        return self.x1 - self.x0 <= 0 or self.y1 - self.y0 <= 0


class ScatterChart(Chart):
    kind = "scatter"
    hit_layers = ("dots",)

    def __init__(
        self,
        *,
        color: str = "#8b5cf6",
        on_brush: Callable[[tuple[PointDatum, ...]], None] | None = None,
        **kwargs: Any,
    ) -> None:
        parse_color(color)
        kwargs.setdefault("x_label", "X Axis")
        kwargs.setdefault("y_label", "Y Axis")
        super().__init__(**kwargs)
        self.color = color
        self.on_brush = on_brush
        self.correlation = 0.0
        self.selection: tuple[PointDatum, ...] = ()
        self._brush: Brush | None = None

    def render(self, series: Any, viewport: ViewportLike, now: float = 0.0) -> Scene:
        geometry = self._geometry(viewport)
        stale = self._brush is not None and self.viewport is not None and geometry != self.viewport
        if stale:
            self._brush = None
            self.selection = ()
        scene = super().render(series, geometry, now)
        if stale and self.on_brush is not None:
            self.on_brush(())
        return scene

    def _snapshot(self, series: Any) -> tuple[PointDatum, ...]:
        # Points whose x is not a number cannot be placed on a linear axis.
        points: list[PointDatum] = []
        for d in series or ():
            if not isinstance(d.x, str):
                points.append(d)
                continue
            try:
                x = float(d.x)
            except ValueError:
                continue
            points.append(PointDatum(x=x if math.isfinite(x) else 0.0, y=d.y, label=d.label))
        return tuple(points)

    def _has_data(self, data: tuple[Any, ...]) -> bool:
        return len(data) >= 2

    def layout(self, data: tuple[PointDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        ox, oy = viewport.margin.left, viewport.margin.top
        w, h = viewport.inner_width, viewport.inner_height
        xs = [float(d.x) for d in data]
        ys = [d.y for d in data]
        x = linear_scale(xs, w)
        y = linear_scale(ys, h, invert=True)
        self.correlation = pearson_correlation(zip(xs, ys, strict=True))

        brush = self._brush
        selected: list[PointDatum] = []
        dots: list[Mark] = []
        seen: dict[str, int] = {}
        for d, dx, dy in zip(data, xs, ys, strict=True):
            base = d.label if d.label is not None else f"{dx:g},{dy:g}"
            n = seen.get(base, 0)
            seen[base] = n + 1
            cx, cy = ox + x(dx), oy + y(dy)
            opacity = DOT_OPACITY
            stroke = self.theme.median_stroke
            if brush is not None:
                if brush.contains(cx, cy):
                    selected.append(d)
                    opacity = 1.0
                    stroke = self.theme.accent
                else:
                    opacity = UNSELECTED_OPACITY
            dots.append(
                Mark(
                    key=f"dot:{base}" if n == 0 else f"dot:{base}#{n}",
                    kind="circle",
                    attrs={
                        "cx": cx,
                        "cy": cy,
                        "r": DOT_RADIUS,
                        "fill": self.color,
                        "stroke": stroke,
                        "stroke_width": 1.0,
                        "opacity": opacity,
                    },
                    datum=d,
                )
            )
        self.selection = tuple(selected)

        annotation = Mark(
            key="correlation",
            kind="text",
            attrs={
                "x": ox + w,
                "y": oy - 5.0,
                "text": f"r = {self.correlation:.3f}",
                "fill": self.theme.accent,
                "font_size": 18.0,
                "bold": True,
                "anchor": "end",
                "baseline": "alphabetic",
                "opacity": 1.0,
            },
            interactive=False,
        )
        axes = axis_marks(x, "bottom", origin=(ox, oy), length=h, theme=self.theme, title=self.x_label)
        axes += axis_marks(y, "left", origin=(ox, oy), length=w, theme=self.theme, title=self.y_label)
        axes.append(annotation)

        brush_marks: list[Mark] = []
        if brush is not None:
            brush_marks.append(
                Mark(
                    key="brush",
                    kind="rect",
                    attrs={
                        "x": brush.x0,
                        "y": brush.y0,
                        "width": brush.x1 - brush.x0,
                        "height": brush.y1 - brush.y0,
                        "fill": "rgba(105,179,162,0.15)",
                        "stroke": self.theme.accent,
                        "stroke_width": 1.0,
                        "opacity": 1.0,
                    },
                    interactive=False,
                )
            )

        def grow(mark: Mark) -> dict[str, Any]:
            return {"r": 0.0, "opacity": 0.0}

        return [
            static_layer("axes", axes),
            static_layer("brush", brush_marks),
            LayerSpec("dots", dots, enter=grow, exit=grow),
        ]

    def brush(self, start: tuple[float, float], end: tuple[float, float], now: float) -> tuple[PointDatum, ...]:
        """Select the dots inside the dragged rectangle (clipped to the plot area)."""

        if self.viewport is None or not self._series:
            return ()
        vp = self.viewport
        left, top = vp.margin.left, vp.margin.top
        right, bottom = left + vp.inner_width, top + vp.inner_height

        def clip(p: tuple[float, float]) -> tuple[float, float]:
            return (min(right, max(left, p[0])), min(bottom, max(top, p[1])))

        box = Brush.from_corners(clip(start), clip(end))
        self._brush = None if box.empty else box
        self.render(self._series, vp, now)
        if self.on_brush is not None:
            self.on_brush(self.selection)
        return self.selection

    def clear_brush(self, now: float) -> Scene:
        self._brush = None
        self.selection = ()
        if self.viewport is None or not self._series:
            return self.scene()
        scene = self.render(self._series, self.viewport, now)
        if self.on_brush is not None:
            self.on_brush(())
        return scene

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"r": DOT_HOVER_RADIUS, "opacity": 1.0}

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{mark.datum.y:.1f}"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        return (mark.attrs["cx"], mark.attrs["cy"] - 15.0)
