from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal

from mediascope_data.series import BarDatum
from mediascope_plot.axes import axis_marks
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import BAR_GRADIENT, ColorStrategy, resolve_color
from mediascope_plot.marks import Mark
from mediascope_plot.scales import band_scale, linear_scale
from mediascope_plot.viewport import Margin, ViewportGeometry


Orientation = Literal["vertical", "horizontal"]

VERTICAL_MARGIN = Margin(top=20, right=20, bottom=60, left=60)
HORIZONTAL_MARGIN = Margin(top=20, right=20, bottom=60, left=100)


class BarChart(Chart):
    kind = "bar"
    hit_layers = ("bars",)

    def __init__(
        self,
        *,
        orientation: Orientation = "vertical",
        colours: Sequence[str] | None = None,
        padding: float = 0.1,
        **kwargs: Any,
    ) -> None:
        if orientation not in ("vertical", "horizontal"):
            raise ValueError(f"unsupported orientation: {orientation}")
        kwargs.setdefault("margin", HORIZONTAL_MARGIN if orientation == "horizontal" else VERTICAL_MARGIN)
        if colours:
            kwargs.setdefault("colors", ColorStrategy(palette=tuple(colours)))
        super().__init__(**kwargs)
        self.orientation = orientation
        self.padding = padding

    def layout(self, data: tuple[BarDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        ox, oy = viewport.margin.left, viewport.margin.top
        w, h = viewport.inner_width, viewport.inner_height
        labels = [d.label for d in data]
        top = max((d.value for d in data), default=0.0)
        self.color_map = resolve_color(
            labels,
            self.color_strategy or ColorStrategy(gradient=BAR_GRADIENT),
            domain=self.color_domain,
        )

        bars: list[Mark] = []
        if self.orientation == "vertical":
            x = band_scale(labels, w, padding=self.padding)
            y = linear_scale((), h, domain=(0.0, top if top > 0 else 1.0), invert=True)
            baseline = oy + h
            for d in data:
                x0 = ox + (x.start_of(d.label) or 0.0)
                y0 = oy + y(d.value)
                bars.append(self._bar(d, x0, y0, x.bandwidth, baseline - y0))

            def enter(mark: Mark) -> dict[str, Any]:
                return {"y": baseline, "height": 0.0, "opacity": 0.0}

            exit_fn = enter
            axes = axis_marks(x, "bottom", origin=(ox, oy), length=h, theme=self.theme, title=self.x_label)
            axes += axis_marks(y, "left", origin=(ox, oy), length=w, theme=self.theme, title=self.y_label)
        else:
            x = linear_scale((), w, domain=(0.0, top if top > 0 else 1.0))
            y = band_scale(labels, h, padding=self.padding)
            for d in data:
                y0 = oy + (y.start_of(d.label) or 0.0)
                bars.append(self._bar(d, ox, y0, x(d.value), y.bandwidth))

            def enter(mark: Mark) -> dict[str, Any]:
                return {"x": ox, "width": 0.0, "opacity": 0.0}

            def exit_fn(mark: Mark) -> dict[str, Any]:
                return {"width": 0.0, "opacity": 0.0}

            axes = axis_marks(x, "bottom", origin=(ox, oy), length=h, theme=self.theme, title=self.x_label)
            axes += axis_marks(
                y, "left", origin=(ox, oy), length=w, theme=self.theme, title=self.y_label, title_offset=85.0
            )

        return [
            static_layer("axes", axes),
            LayerSpec("bars", bars, enter=enter, exit=exit_fn),
        ]

    def _bar(self, d: BarDatum, x: float, y: float, width: float, height: float) -> Mark:
        return Mark(
            key=f"bar:{d.label}",
            kind="rect",
            attrs={
                "x": x,
                "y": y,
                "width": max(0.0, width),
                "height": max(0.0, height),
                "fill": self.color_map[d.label],
                "stroke": self.theme.median_stroke,
                "stroke_width": 1.0,
                "opacity": 1.0,
            },
            datum=d,
        )

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"opacity": 0.8}

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{mark.datum.value:.1f}"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        a = mark.attrs
        if self.orientation == "vertical":
            return (a["x"] + a["width"] / 2.0, a["y"] - 10.0)
        return (a["x"] + a["width"], a["y"] + a["height"] / 2.0)
