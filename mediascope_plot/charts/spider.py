from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from mediascope_data.series import SpiderSeries
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import CATEGORY10, ColorStrategy, resolve_color
from mediascope_plot.errors import PlotDataError
from mediascope_plot.marks import Mark
from mediascope_plot.scales import RadialScale, radial_scale
from mediascope_plot.text import wrap_text
from mediascope_plot.tooltip import TooltipManager
from mediascope_plot.viewport import Margin, ViewportGeometry


DEFAULT_AXES = ("Addiction", "Sleep Loss", "Conflicts", "Academic Impact", "Mental Damage")
SPOKE_OVERSHOOT = 1.1
LABEL_LINE_HEIGHT_EM = 1.4
GRID_COLOR = "#CDCDCD"
LEVEL_LABEL_COLOR = "#737373"
DIMMED_OPACITY = 0.1
HIGHLIGHT_AREA_OPACITY = 0.7
TOOLTIP_MIN_WIDTH = 180.0


@dataclass(frozen=True)
class SpiderConfig:
    max_value: float = 100.0
    levels: int = 5
    label_factor: float = 1.25
    wrap_width: float = 100.0
    opacity_area: float = 0.35
    dot_radius: float = 4.0
    opacity_dots: float = 0.8
    stroke_width: float = 2.0
    margin: float = 50.0
    vertical_offset: float = -20.0

    def __post_init__(self) -> None:
        if self.levels <= 0:
            raise PlotDataError("levels must be > 0")
        if self.max_value < 0:
            raise PlotDataError("max_value must be >= 0")
        for name in ("opacity_area", "opacity_dots"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise PlotDataError(f"{name} must be in [0, 1]")


class SpiderChart(Chart):
    kind = "spider"
    hit_layers = ("outlines",)

    def __init__(self, *, config: SpiderConfig | None = None, **kwargs: Any) -> None:
        self.config = config or SpiderConfig()
        kwargs.setdefault("margin", Margin(*(self.config.margin,) * 4))
        kwargs.setdefault("colors", ColorStrategy(palette=CATEGORY10))
        super().__init__(**kwargs)
        self.tooltip = TooltipManager(self.theme, padding=12.0, line_height=18.0, title_height=22.0, offset=(10.0, -10.0))
        self.scale: RadialScale | None = None

    def _has_data(self, data: tuple[Any, ...]) -> bool:
        return True

    def axes_of(self, data: Sequence[SpiderSeries]) -> tuple[str, ...]:
        if data and data[0].data:
            return tuple(v.axis for v in data[0].data)
        return DEFAULT_AXES

    def layout(self, data: tuple[SpiderSeries, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        cfg = self.config
        axes = self.axes_of(data)
        radius = max(0.0, min(viewport.inner_width / 2.0, viewport.inner_height / 2.0))
        values = [v.value for s in data for v in s.data]
        scale = radial_scale(len(axes), radius, max_value=cfg.max_value or None, values=values)
        self.scale = scale
        cx, cy = viewport.width / 2.0, viewport.height / 2.0 + cfg.vertical_offset
        self.color_map = resolve_color(
            (s.name for s in data),
            ColorStrategy(
                key_colors={s.name: s.color for s in data if s.color},
                palette=(self.color_strategy.palette if self.color_strategy else None) or CATEGORY10,
            ),
            domain=self.color_domain,
        )

        grid = self._grid(axes, scale, cx, cy)
        areas: list[Mark] = []
        outlines: list[Mark] = []
        dots: list[Mark] = []
        for series in data:
            color = self.color_map[series.name]
            points = tuple(
                (cx + px, cy + py) for px, py in (scale.point(i, v.value) for i, v in enumerate(series.data))
            )
            areas.append(
                Mark(
                    key=f"area:{series.name}",
                    kind="polygon",
                    attrs={"points": points, "fill": color, "fill_opacity": cfg.opacity_area, "stroke": None, "opacity": 1.0},
                    datum=series,
                    interactive=False,
                )
            )
            outlines.append(
                Mark(
                    key=f"outline:{series.name}",
                    kind="polygon",
                    attrs={
                        "points": points,
                        "fill": None,
                        "stroke": color,
                        "stroke_width": cfg.stroke_width,
                        "opacity": 1.0,
                    },
                    datum=series,
                )
            )
            for i, v in enumerate(series.data):
                dots.append(
                    Mark(
                        key=f"dot:{series.name}:{v.axis}",
                        kind="circle",
                        attrs={
                            "cx": points[i][0],
                            "cy": points[i][1],
                            "r": cfg.dot_radius,
                            "fill": color,
                            "fill_opacity": cfg.opacity_dots,
                            "opacity": 1.0,
                        },
                        datum=series,
                        interactive=False,
                    )
                )

        def from_center(mark: Mark) -> dict[str, Any]:
            if mark.kind == "circle":
                return {"cx": cx, "cy": cy, "opacity": 0.0}
            return {"points": tuple((cx, cy) for _ in mark.attrs["points"]), "opacity": 0.0}

        return [
            static_layer("grid", grid),
            LayerSpec("areas", areas, enter=from_center, exit=from_center),
            LayerSpec("outlines", outlines, enter=from_center, exit=from_center),
            LayerSpec("dots", dots, enter=from_center, exit=from_center),
        ]

    def _grid(self, axes: Sequence[str], scale: RadialScale, cx: float, cy: float) -> list[Mark]:
        cfg = self.config
        out: list[Mark] = []
        for level in range(cfg.levels, 0, -1):
            out.append(
                Mark(
                    key=f"grid:level:{level}",
                    kind="circle",
                    attrs={
                        "cx": cx,
                        "cy": cy,
                        "r": scale.radius / cfg.levels * level,
                        "fill": GRID_COLOR,
                        "fill_opacity": 0.1,
                        "stroke": GRID_COLOR,
                        "stroke_opacity": 0.75,
                        "stroke_width": 0.3,
                        "opacity": 1.0,
                    },
                    interactive=False,
                )
            )
            out.append(
                _text(
                    f"grid:level-label:{level}",
                    cx + 4.0,
                    cy - level * scale.radius / cfg.levels,
                    f"{scale.max_value * level / cfg.levels:.0f}",
                    LEVEL_LABEL_COLOR,
                    10.0,
                    anchor="start",
                )
            )
        spoke = scale.max_value * SPOKE_OVERSHOOT
        label_at = scale.max_value * cfg.label_factor
        font_size = self.theme.tick_font_size_px
        for i, axis in enumerate(axes):
            sx, sy = scale.point(i, spoke)
            out.append(
                Mark(
                    key=f"grid:spoke:{axis}",
                    kind="line",
                    attrs={"x1": cx, "y1": cy, "x2": cx + sx, "y2": cy + sy, "stroke": "#ffffff", "stroke_width": 1.0, "opacity": 0.5},
                    interactive=False,
                )
            )
            lx, ly = scale.point(i, label_at)
            anchor = "middle" if abs(lx) < 5 else ("start" if lx > 0 else "end")
            lines = wrap_text(axis, cfg.wrap_width, font_family=self.theme.font_family, font_size_px=font_size)
            for j, line in enumerate(lines):
                out.append(
                    _text(
                        f"grid:axis-label:{axis}:{j}",
                        cx + lx,
                        cy + ly + j * LABEL_LINE_HEIGHT_EM * font_size,
                        line,
                        self.theme.text,
                        font_size,
                        anchor=anchor,
                    )
                )
        return out

    # Hover dims every other series and thickens the hovered area.

    def on_hover_start(self, mark: Mark, now: float) -> None:
        self._apply_focus(mark.datum.name, now)

    def on_hover_end(self, key: str, now: float) -> None:
        self._apply_focus(None, now)

    def _apply_focus(self, focused: str | None, now: float) -> None:
        duration = self.theme.hover_duration_ms
        for layer_name in ("areas", "outlines", "dots"):
            layer = self.layer(layer_name)
            if layer is None:
                continue
            for m in layer.marks(now):
                if focused is None:
                    layer.emphasize(m.key, None, now, duration_ms=duration)
                    continue
                name = m.datum.name
                overrides: dict[str, Any] = {"opacity": 1.0 if name == focused else DIMMED_OPACITY}
                if layer_name == "areas" and name == focused:
                    overrides["fill_opacity"] = HIGHLIGHT_AREA_OPACITY
                layer.emphasize(m.key, overrides, now, duration_ms=duration)

    def tooltip_title(self, mark: Mark) -> str | None:
        return mark.datum.name

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{v.axis}: {v.value:.2f}" for v in mark.datum.data]

    def show_tooltip(self, mark: Mark, pointer: tuple[float, float], lines: Sequence[str], **kwargs: Any) -> None:
        super().show_tooltip(mark, pointer, lines, min_width=TOOLTIP_MIN_WIDTH)


def _text(key: str, x: float, y: float, text: str, fill: str, size: float, *, anchor: str) -> Mark:
    return Mark(
        key=key,
        kind="text",
        attrs={
            "x": x,
            "y": y,
            "text": text,
            "fill": fill,
            "font_size": size,
            "anchor": anchor,
            "baseline": "middle",
            "opacity": 1.0,
        },
        interactive=False,
    )
