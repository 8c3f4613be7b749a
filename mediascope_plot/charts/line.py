from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mediascope_data.series import PointDatum
from mediascope_plot.axes import axis_marks
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import parse_color
from mediascope_plot.marks import Mark, monotone_curve
from mediascope_plot.scales import LinearScale, PointScale, extent, linear_scale, point_scale
from mediascope_plot.viewport import ViewportGeometry


DOT_RADIUS = 4.0
DOT_HOVER_RADIUS = 7.0
LINE_WIDTH = 3.0

XDomain = tuple[float, float] | Sequence[str]


class LineChart(Chart):
    kind = "line"
    hit_layers = ("dots",)

    def __init__(
        self,
        *,
        color: str = "#69b3a2",
        x_domain: XDomain | None = None,
        y_domain: tuple[float, float] | None = None,
        **kwargs: Any,
    ) -> None:
        parse_color(color)
        super().__init__(**kwargs)
        self.color = color
        self.x_domain = x_domain
        self.y_domain = y_domain

    def x_scale(self, data: tuple[PointDatum, ...], span: float) -> LinearScale | PointScale:
        numeric = not isinstance(data[0].x, str)
        if numeric:
            override = self.x_domain
            if override is not None and len(override) == 2 and all(not isinstance(v, str) for v in override):
                domain = (float(override[0]), float(override[1]))  # type: ignore[arg-type]
            else:
                domain = extent(float(d.x) for d in data)
            return linear_scale((), span, domain=domain)
        if self.x_domain is not None and all(isinstance(v, str) for v in self.x_domain):
            return point_scale(self.x_domain, span, padding=0.5)
        return point_scale((str(d.x) for d in data), span, padding=0.5)

    def layout(self, data: tuple[PointDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        ox, oy = viewport.margin.left, viewport.margin.top
        w, h = viewport.inner_width, viewport.inner_height
        x = self.x_scale(data, w)
        y = linear_scale((d.y for d in data), h, domain=self.y_domain, invert=True)

        positioned: list[tuple[PointDatum, float, float]] = []
        for d in data:
            px = x(str(d.x)) if isinstance(x, PointScale) else x(float(d.x))  # type: ignore[arg-type]
            if px is None:
                continue
            positioned.append((d, ox + px, oy + y(d.y)))

        line_points = monotone_curve([(px, py) for _, px, py in positioned])
        path = Mark(
            key="line",
            kind="polyline",
            attrs={"points": line_points, "stroke": self.color, "stroke_width": LINE_WIDTH, "fill": None, "opacity": 0.8},
            interactive=False,
        )
        dots: list[Mark] = []
        seen: dict[str, int] = {}
        for d, px, py in positioned:
            base = str(d.x)
            n = seen.get(base, 0)
            seen[base] = n + 1
            dots.append(
                Mark(
                    key=f"dot:{base}" if n == 0 else f"dot:{base}#{n}",
                    kind="circle",
                    attrs={
                        "cx": px,
                        "cy": py,
                        "r": DOT_RADIUS,
                        "fill": self.color,
                        "stroke": self.theme.median_stroke,
                        "stroke_width": 2.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                )
            )

        def grow(mark: Mark) -> dict[str, Any]:
            return {"r": 0.0, "opacity": 0.0}

        axes = axis_marks(x, "bottom", origin=(ox, oy), length=h, theme=self.theme, title=self.x_label)
        axes += axis_marks(y, "left", origin=(ox, oy), length=w, theme=self.theme, title=self.y_label)
        return [
            static_layer("axes", axes),
            LayerSpec("line", [path] if len(line_points) >= 2 else []),
            LayerSpec("dots", dots, enter=grow, exit=grow),
        ]

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"r": DOT_HOVER_RADIUS}

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{mark.datum.y:.1f}"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        return (mark.attrs["cx"], mark.attrs["cy"] - 15.0)
