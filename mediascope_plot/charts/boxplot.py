from __future__ import annotations

from typing import Any

from mediascope_data.series import BoxDatum
from mediascope_plot.axes import axis_marks
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import DEFAULT_PALETTE, ColorStrategy, resolve_color
from mediascope_plot.errors import PlotDataError
from mediascope_plot.marks import Mark
from mediascope_plot.scales import DEFAULT_HEADROOM, band_scale, linear_scale
from mediascope_plot.viewport import Margin, ViewportGeometry


class BoxPlotChart(Chart):
    kind = "boxplot"
    default_margin = Margin(top=20, right=20, bottom=60, left=50)
    hit_layers = ("boxes",)

    def __init__(self, *, y_max: float | None = None, padding: float = 0.2, **kwargs: Any) -> None:
        if y_max is not None and y_max <= 0:
            raise PlotDataError("y_max must be > 0")
        kwargs.setdefault("colors", ColorStrategy(palette=DEFAULT_PALETTE))
        super().__init__(**kwargs)
        self.y_max = y_max
        self.padding = padding

    def layout(self, data: tuple[BoxDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        ox, oy = viewport.margin.left, viewport.margin.top
        w, h = viewport.inner_width, viewport.inner_height
        keys = [d.key for d in data]
        top = self.y_max
        if top is None:
            top = max((d.quartiles.max for d in data), default=0.0) * DEFAULT_HEADROOM
        x = band_scale(keys, w, padding=self.padding)
        y = linear_scale((), h, domain=(0.0, top if top > 0 else 1.0), invert=True)
        self.color_map = resolve_color(keys, self.color_strategy, domain=self.color_domain)

        whiskers: list[Mark] = []
        boxes: list[Mark] = []
        medians: list[Mark] = []
        for d in data:
            q = d.quartiles
            x0 = ox + (x.start_of(d.key) or 0.0)
            cx = x0 + x.bandwidth / 2.0
            whiskers.append(
                Mark(
                    key=f"whisker:{d.key}",
                    kind="line",
                    attrs={
                        "x1": cx,
                        "y1": oy + y(q.min),
                        "x2": cx,
                        "y2": oy + y(q.max),
                        "stroke": self.theme.whisker_stroke,
                        "stroke_width": 2.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                    interactive=False,
                )
            )
            boxes.append(
                Mark(
                    key=f"box:{d.key}",
                    kind="rect",
                    attrs={
                        "x": x0,
                        "y": oy + y(q.q3),
                        "width": x.bandwidth,
                        "height": max(0.0, y(q.q1) - y(q.q3)),
                        "fill": self.color_map[d.key],
                        "stroke": self.theme.whisker_stroke,
                        "stroke_width": 2.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                )
            )
            medians.append(
                Mark(
                    key=f"median:{d.key}",
                    kind="line",
                    attrs={
                        "x1": x0,
                        "y1": oy + y(q.median),
                        "x2": x0 + x.bandwidth,
                        "y2": oy + y(q.median),
                        "stroke": self.theme.median_stroke,
                        "stroke_width": 3.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                    interactive=False,
                )
            )

        axes = axis_marks(x, "bottom", origin=(ox, oy), length=h, theme=self.theme, title=self.x_label)
        axes += axis_marks(
            y,
            "left",
            origin=(ox, oy),
            length=w,
            theme=self.theme,
            title=self.y_label or "Avg Daily Usage (Hours)",
            title_offset=viewport.margin.left - 10.0,
        )
        return [
            static_layer("axes", axes),
            LayerSpec("whiskers", whiskers),
            LayerSpec("boxes", boxes),
            LayerSpec("medians", medians),
        ]

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"opacity": 0.8}

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{mark.datum.quartiles.median:.1f}"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        return (mark.attrs["x"] + mark.attrs["width"] / 2.0, mark.attrs["y"] - 10.0)
