from __future__ import annotations

from collections.abc import Sequence
import math
from typing import Any

from mediascope_data.series import BarDatum
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import DEFAULT_PALETTE, ColorStrategy, resolve_color
from mediascope_plot.errors import PlotDataError
from mediascope_plot.marks import Mark, arc_point
from mediascope_plot.scales import format_tick
from mediascope_plot.viewport import Margin, ViewportGeometry


RADIUS_INSET = 40.0
HOVER_GROWTH = 10.0
LEGEND_ORIGIN = (20.0, 20.0)
LEGEND_SWATCH = 18.0
LEGEND_SPACING = 25.0


def pie_angles(values: Sequence[float]) -> list[tuple[float, float]]:
    """(start, end) angles in data order, clockwise from 12 o'clock."""

    clean = [v if math.isfinite(v) and v > 0 else 0.0 for v in values]
    total = sum(clean)
    out: list[tuple[float, float]] = []
    angle = 0.0
    for v in clean:
        sweep = 0.0 if total <= 0 else v / total * 2.0 * math.pi
        out.append((angle, angle + sweep))
        angle += sweep
    return out


class PieChart(Chart):
    kind = "pie"
    default_margin = Margin(top=0, right=0, bottom=0, left=0)
    hit_layers = ("slices",)

    def __init__(
        self,
        *,
        inner_radius: float = 0.0,
        colours: Sequence[str] | None = None,
        legend: bool = True,
        **kwargs: Any,
    ) -> None:
        if inner_radius < 0:
            raise PlotDataError("inner_radius must be >= 0")
        kwargs.setdefault("colors", ColorStrategy(palette=tuple(colours) if colours else DEFAULT_PALETTE))
        super().__init__(**kwargs)
        self.inner_radius = inner_radius
        self.legend = legend
        self._total = 0.0

    def layout(self, data: tuple[BarDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        cx, cy = viewport.center
        radius = max(0.0, min(viewport.width, viewport.height) / 2.0 - RADIUS_INSET)
        inner = min(self.inner_radius, radius)
        self.color_map = resolve_color((d.label for d in data), self.color_strategy, domain=self.color_domain)
        self._total = sum(d.value for d in data if d.value > 0)

        slices: list[Mark] = []
        for d, (start, end) in zip(data, pie_angles([d.value for d in data]), strict=True):
            slices.append(
                Mark(
                    key=f"slice:{d.label}",
                    kind="arc",
                    attrs={
                        "cx": cx,
                        "cy": cy,
                        "inner_radius": inner,
                        "outer_radius": radius,
                        "start_angle": start,
                        "end_angle": end,
                        "fill": self.color_map[d.label],
                        "stroke": self.theme.median_stroke,
                        "stroke_width": 2.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                )
            )

        def collapse(mark: Mark) -> dict[str, Any]:
            return {"end_angle": mark.attrs["start_angle"], "opacity": 0.0}

        specs = [LayerSpec("slices", slices, enter=collapse, exit=collapse)]
        if self.legend:
            specs.append(static_layer("legend", self._legend(data)))
        return specs

    def _legend(self, data: tuple[BarDatum, ...]) -> list[Mark]:
        lx, ly = LEGEND_ORIGIN
        out: list[Mark] = []
        for i, d in enumerate(data):
            y = ly + i * LEGEND_SPACING
            out.append(
                Mark(
                    key=f"legend:swatch:{d.label}",
                    kind="rect",
                    attrs={
                        "x": lx,
                        "y": y,
                        "width": LEGEND_SWATCH,
                        "height": LEGEND_SWATCH,
                        "rx": 3.0,
                        "fill": self.color_map[d.label],
                        "opacity": 1.0,
                    },
                    datum=d,
                    interactive=False,
                )
            )
            out.append(
                Mark(
                    key=f"legend:label:{d.label}",
                    kind="text",
                    attrs={
                        "x": lx + 25.0,
                        "y": y + LEGEND_SWATCH / 2.0,
                        "text": f"{d.label} ({format_tick(d.value)})",
                        "fill": self.theme.text,
                        "font_size": self.theme.tick_font_size_px,
                        "anchor": "start",
                        "baseline": "middle",
                        "opacity": 1.0,
                    },
                    datum=d,
                    interactive=False,
                )
            )
        return out

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"outer_radius": mark.attrs["outer_radius"] + HOVER_GROWTH}

    def share(self, datum: BarDatum) -> float:
        if self._total <= 0:
            return 0.0
        return max(0.0, datum.value) / self._total

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{self.share(mark.datum) * 100.0:.1f}%"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        a = mark.attrs
        r = (a["inner_radius"] + a["outer_radius"] + HOVER_GROWTH) / 2.0
        return arc_point(a["cx"], a["cy"], r, (a["start_angle"] + a["end_angle"]) / 2.0)
