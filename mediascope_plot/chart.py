from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from mediascope_plot.colors import ColorMap, ColorStrategy
from mediascope_plot.lifecycle import AttrsFn, MarkLayer
from mediascope_plot.marks import Mark, Scene
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme
from mediascope_plot.tooltip import HoverState, TooltipManager
from mediascope_plot.viewport import Margin, ViewportGeometry


ViewportLike = ViewportGeometry | tuple[float, float]


@dataclass(frozen=True)
class LayerSpec:
    """Target marks for one layer plus how they enter and exit."""

    name: str
    marks: Sequence[Mark]
    enter: AttrsFn | None = None
    exit: AttrsFn | None = None
    duration_ms: float | None = None
    exit_duration_ms: float | None = None


def static_layer(name: str, marks: Sequence[Mark]) -> LayerSpec:
    return LayerSpec(name=name, marks=marks, duration_ms=0.0, exit_duration_ms=0.0)


class Chart:
    """Shared render pipeline: series + viewport -> keyed marks -> scene.

    Subclasses implement `layout`; hover emphasis and tooltip text come from
    `hover_attrs` and `tooltip_lines`.
    """

    kind: ClassVar[str] = "chart"
    default_margin: ClassVar[Margin] = Margin()
    hit_layers: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        *,
        theme: ChartTheme | None = None,
        margin: Margin | None = None,
        colors: ColorStrategy | None = None,
        x_label: str | None = None,
        y_label: str | None = None,
    ) -> None:
        self.theme = theme or DEFAULT_THEME
        self.margin = margin or self.default_margin
        self.color_strategy = colors
        self.x_label = x_label
        self.y_label = y_label
        self.tooltip = TooltipManager(self.theme)
        self.hover = HoverState()
        self.color_map: ColorMap = ColorMap()
        self.color_domain: tuple[str, ...] = ()
        self.viewport: ViewportGeometry | None = None
        self._layers: dict[str, MarkLayer] = {}
        self._series: tuple[Any, ...] = ()
        self._now = 0.0

    # Rendering ---------------------------------------------------------------

    def render(self, series: Any, viewport: ViewportLike, now: float = 0.0) -> Scene:
        data = self._snapshot(series)
        geometry = self._geometry(viewport)
        self._now = max(self._now, float(now))
        self._end_hover(self._now)
        if geometry.is_empty or not self._has_data(data):
            self.reset()
            self.viewport = geometry
            return self.scene()
        self.viewport = geometry
        self._series = data
        specs = self.layout(data, geometry)
        ordered: dict[str, MarkLayer] = {}
        for spec in specs:
            layer = self._layers.get(spec.name) or self._new_layer(spec.name)
            layer.join(
                spec.marks,
                self._now,
                enter=spec.enter,
                exit=spec.exit,
                duration_ms=spec.duration_ms,
                exit_duration_ms=spec.exit_duration_ms,
            )
            ordered[spec.name] = layer
        for name, layer in self._layers.items():
            if name not in ordered:
                layer.join((), self._now)
                ordered[name] = layer
        self._layers = ordered
        return self.scene()

    def layout(self, data: tuple[Any, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        raise NotImplementedError

    def set_color_domain(self, keys: Iterable[object]) -> None:
        """Fix the key set that index-based colors are assigned over."""

        self.color_domain = tuple(sorted({str(k) for k in keys}))

    def advance(self, now: float) -> Scene:
        self._now = max(self._now, float(now))
        for layer in self._layers.values():
            layer.advance(self._now)
        return self.scene()

    def scene(self) -> Scene:
        marks: list[Mark] = []
        for layer in self._layers.values():
            marks.extend(layer.marks(self._now))
        marks.extend(self.tooltip.marks())
        width = self.viewport.width if self.viewport else 0.0
        height = self.viewport.height if self.viewport else 0.0
        return Scene(width=width, height=height, marks=tuple(marks), background=self.theme.background)

    @property
    def settled(self) -> bool:
        return all(layer.settled for layer in self._layers.values())

    def layer(self, name: str) -> MarkLayer | None:
        return self._layers.get(name)

    def reset(self) -> None:
        self._layers = {}
        self._series = ()
        self.tooltip.hide()
        self.hover.clear()

    # Interaction -------------------------------------------------------------

    def pointer_move(self, x: float, y: float, now: float) -> Scene:
        self.advance(now)
        mark = self.hit_test(x, y)
        ended, started = self.hover.update(mark.key if mark is not None else None)
        if ended is not None:
            self.on_hover_end(ended, self._now)
            self.tooltip.hide()
        if started is not None and mark is not None:
            self.on_hover_start(mark, self._now)
            lines = self.tooltip_lines(mark)
            if lines and self.viewport is not None:
                self.show_tooltip(mark, (x, y), lines)
        return self.scene()

    def pointer_leave(self, now: float) -> Scene:
        self.advance(now)
        self._end_hover(self._now)
        return self.scene()

    def click(self, x: float, y: float, now: float) -> Mark | None:
        self.advance(now)
        mark = self.hit_test(x, y)
        if mark is not None:
            self.on_click(mark)
        return mark

    def hit_test(self, x: float, y: float) -> Mark | None:
        names = self.hit_layers or tuple(self._layers)
        for name in reversed(names):
            layer = self._layers.get(name)
            if layer is None:
                continue
            mark = layer.hit_test(x, y, self._now)
            if mark is not None:
                return mark
        return None

    def hover_attrs(self, mark: Mark) -> Mapping[str, Any] | None:
        return None

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return []

    def tooltip_title(self, mark: Mark) -> str | None:
        return None

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        return pointer

    def on_hover_start(self, mark: Mark, now: float) -> None:
        attrs = self.hover_attrs(mark)
        layer = self._layer_of(mark.key)
        if attrs and layer is not None:
            layer.emphasize(mark.key, attrs, now, duration_ms=self.theme.hover_duration_ms)

    def on_hover_end(self, key: str, now: float) -> None:
        layer = self._layer_of(key)
        if layer is not None:
            layer.emphasize(key, None, now, duration_ms=self.theme.hover_duration_ms)

    def on_click(self, mark: Mark) -> None:
        return None

    def show_tooltip(self, mark: Mark, pointer: tuple[float, float], lines: Sequence[str], **kwargs: Any) -> None:
        assert self.viewport is not None
        self.tooltip.show(
            self.tooltip_anchor(mark, pointer),
            lines,
            (self.viewport.width, self.viewport.height),
            title=self.tooltip_title(mark),
            owner=mark.key,
            **kwargs,
        )

    # Helpers -----------------------------------------------------------------

    def _end_hover(self, now: float) -> None:
        ended = self.hover.clear()
        if ended is not None:
            self.on_hover_end(ended, now)
        self.tooltip.hide()

    def _layer_of(self, key: str) -> MarkLayer | None:
        return next((layer for layer in self._layers.values() if key in layer), None)

    def _new_layer(self, name: str) -> MarkLayer:
        return MarkLayer(
            name,
            duration_ms=self.theme.enter_duration_ms,
            exit_duration_ms=self.theme.exit_duration_ms,
        )

    def _geometry(self, viewport: ViewportLike) -> ViewportGeometry:
        if isinstance(viewport, ViewportGeometry):
            return viewport if viewport.margin == self.margin else viewport.with_margin(self.margin)
        width, height = viewport
        return ViewportGeometry(width=max(0.0, float(width)), height=max(0.0, float(height)), margin=self.margin)

    def _snapshot(self, series: Any) -> tuple[Any, ...]:
        return tuple(series or ())

    def _has_data(self, data: tuple[Any, ...]) -> bool:
        return len(data) > 0


ValueFormatter = Callable[[float], str]


def fixed(decimals: int) -> ValueFormatter:
    return lambda v: f"{v:.{decimals}f}"
