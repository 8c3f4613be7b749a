from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
import math
from typing import Any

from mediascope_core.dimension_tracker import Dimensions, DimensionTracker
from mediascope_core.events import DashboardEvent
from mediascope_data.aggregate import (
    COUNT,
    box_series,
    bubble_series,
    rollup_points,
    rollup_series,
    spider_series,
    to_points,
)
from mediascope_data.filters import (
    DEFAULT_RANGE_FIELDS,
    FilterCriteria,
    filter_records,
    range_bounds,
    selection_ratio,
    unique_values,
)
from mediascope_data.insights import Insights, generate_insights
from mediascope_data.records import Record, resolve_field
from mediascope_plot.chart import Chart
from mediascope_plot.charts import (
    BarChart,
    Basemap,
    BoxPlotChart,
    BubbleChart,
    ChoroplethChart,
    LineChart,
    PieChart,
    ScatterChart,
    SpiderChart,
    SpiderConfig,
)
from mediascope_plot.charts.choropleth import region_values
from mediascope_plot.marks import Mark, Scene
from mediascope_plot.theme import ChartTheme

LOGGER = logging.getLogger(__name__)

WHEEL_ZOOM_RATE = 0.002

SeriesBuilder = Callable[[tuple[Record, ...], "Panel"], Any]


class Panel:
    """One chart on the dashboard plus the selections that feed its series."""

    def __init__(
        self,
        name: str,
        chart: Chart,
        build: SeriesBuilder,
        *,
        group: str | None = None,
        metric: str = COUNT,
        click_filters: bool = False,
    ) -> None:
        if not name:
            raise ValueError("panel name must be non-empty")
        self.name = name
        self.chart = chart
        self.build = build
        self.group = group
        self.metric = metric
        self.click_filters = click_filters
        self.size: Dimensions | None = None
        self.tracker = DimensionTracker(on_change=self._on_size)
        self.last_scene: Scene | None = None

    def _on_size(self, dims: Dimensions) -> None:
        self.size = dims


class Dashboard:
    """Runs filter -> aggregate -> scale -> render for every panel on each trigger.

    Triggers are the one-shot data load, debounced resizes, filter changes,
    metric/group selection and pointer interaction. Every trigger recomputes
    series from the records; nothing derived is cached between triggers.
    """

    def __init__(
        self,
        panels: Sequence[Panel],
        *,
        range_fields: Iterable[str] = DEFAULT_RANGE_FIELDS,
    ) -> None:
        names = [p.name for p in panels]
        if len(set(names)) != len(names):
            raise ValueError("panel names must be unique")
        self.panels: dict[str, Panel] = {p.name: p for p in panels}
        self.records: tuple[Record, ...] = ()
        self.criteria = FilterCriteria(range_fields=range_fields)
        self.filtered: tuple[Record, ...] = ()
        self.loaded = False
        self._now = 0.0

    # Triggers ------------------------------------------------------------------

    def load(self, records: Sequence[Record], now: float) -> dict[str, Scene]:
        if self.loaded:
            LOGGER.warning("dashboard data reloaded; previous records replaced")
        self.records = tuple(records)
        self.loaded = True
        LOGGER.info("loaded %d records into %d panels", len(self.records), len(self.panels))
        return self.refresh(now)

    def resize(self, panel: str, width: float, height: float, now: float) -> Scene | None:
        """Record a size notification; only the first one renders right away."""

        p = self.panel(panel)
        if p.tracker.observe(width, height) is None:
            return None
        return self._render_panel(p, self._tick(now))

    def flush_resizes(self, now: float) -> dict[str, Scene]:
        now = self._tick(now)
        out: dict[str, Scene] = {}
        for p in self.panels.values():
            if p.tracker.flush() is not None:
                LOGGER.debug("panel %s resized to %.0fx%.0f", p.name, p.size.width, p.size.height)
                out[p.name] = self._render_panel(p, now)
        return out

    def set_criteria(self, criteria: FilterCriteria, now: float) -> dict[str, Scene]:
        self.criteria = criteria
        return self.refresh(now)

    def toggle_filter(self, field: str, value: object, now: float) -> dict[str, Scene]:
        return self.set_criteria(self.criteria.toggle_value(field, value), now)

    def set_range(self, field: str, low: float, high: float, now: float) -> dict[str, Scene]:
        full = range_bounds(self.records, field) if self.records else None
        return self.set_criteria(self.criteria.with_range(field, low, high, full_bounds=full), now)

    def clear_filters(self, now: float) -> dict[str, Scene]:
        return self.set_criteria(self.criteria.cleared(), now)

    def select_metric(self, panel: str, metric: str, now: float) -> Scene | None:
        p = self.panel(panel)
        p.metric = metric
        if isinstance(p.chart, ChoroplethChart):
            p.chart.set_metric(metric)
        return self._render_panel(p, self._tick(now))

    def select_group(self, panel: str, field: str, now: float) -> Scene | None:
        p = self.panel(panel)
        resolve_field(field)
        p.group = field
        return self._render_panel(p, self._tick(now))

    def pointer_move(self, panel: str, x: float, y: float, now: float) -> Scene:
        p = self.panel(panel)
        p.last_scene = p.chart.pointer_move(x, y, self._tick(now))
        return p.last_scene

    def pointer_leave(self, panel: str, now: float) -> Scene:
        p = self.panel(panel)
        p.last_scene = p.chart.pointer_leave(self._tick(now))
        return p.last_scene

    def click(self, panel: str, x: float, y: float, now: float) -> Mark | None:
        p = self.panel(panel)
        now = self._tick(now)
        mark = p.chart.click(x, y, now)
        label = getattr(mark.datum, "label", None) if mark is not None else None
        if p.click_filters and p.group is not None and label is not None:
            self.toggle_filter(p.group, label, now)
        return mark

    def wheel(self, panel: str, x: float, y: float, delta_y: float, now: float) -> Scene:
        p = self.panel(panel)
        now = self._tick(now)
        if isinstance(p.chart, ChoroplethChart):
            p.chart.zoom_by(math.pow(2.0, -delta_y * WHEEL_ZOOM_RATE), (x, y), now)
        p.last_scene = p.chart.scene()
        return p.last_scene

    def drag(self, panel: str, x: float, y: float, dx: float, dy: float, now: float) -> Scene:
        p = self.panel(panel)
        now = self._tick(now)
        if isinstance(p.chart, ChoroplethChart):
            p.chart.pan_by(dx, dy, now)
        elif isinstance(p.chart, ScatterChart):
            p.chart.brush((x, y), (x + dx, y + dy), now)
        p.last_scene = p.chart.scene()
        return p.last_scene

    def dispatch(self, event: DashboardEvent) -> Any:
        now = event.timestamp
        match event.event_type:
            case "resize":
                return self.resize(self._target(event), event.width or 0.0, event.height or 0.0, now)
            case "pointer_move":
                return self.pointer_move(self._target(event), event.x or 0.0, event.y or 0.0, now)
            case "pointer_leave":
                return self.pointer_leave(self._target(event), now)
            case "click":
                return self.click(self._target(event), event.x or 0.0, event.y or 0.0, now)
            case "wheel":
                return self.wheel(self._target(event), event.x or 0.0, event.y or 0.0, event.delta_y or 0.0, now)
            case "drag":
                return self.drag(
                    self._target(event),
                    event.x or 0.0,
                    event.y or 0.0,
                    event.delta_x or 0.0,
                    event.delta_y or 0.0,
                    now,
                )
            case "filter":
                if event.field is None:
                    return self.clear_filters(now)
                value = event.value
                if isinstance(value, (tuple, list)) and len(value) == 2 and resolve_field(event.field) in self.criteria.range_fields:
                    return self.set_range(event.field, float(value[0]), float(value[1]), now)
                return self.toggle_filter(event.field, value, now)
            case "metric":
                return self.select_metric(self._target(event), str(event.value), now)
            case "group":
                return self.select_group(self._target(event), str(event.value), now)
        raise ValueError(f"unsupported event type: {event.event_type}")

    # Pipeline ------------------------------------------------------------------

    def refresh(self, now: float) -> dict[str, Scene]:
        now = self._tick(now)
        self.filtered = filter_records(self.records, self.criteria)
        LOGGER.debug(
            "filtered %d/%d records with %d constraints",
            len(self.filtered),
            len(self.records),
            len(self.criteria),
        )
        out: dict[str, Scene] = {}
        for p in self.panels.values():
            scene = self._render_panel(p, now, refilter=False)
            if scene is not None:
                out[p.name] = scene
        return out

    def advance(self, now: float) -> dict[str, Scene]:
        now = self._tick(now)
        out: dict[str, Scene] = {}
        for p in self.panels.values():
            if p.size is not None:
                p.last_scene = p.chart.advance(now)
                out[p.name] = p.last_scene
        return out

    def scenes(self) -> dict[str, Scene]:
        return {name: p.last_scene for name, p in self.panels.items() if p.last_scene is not None}

    @property
    def settled(self) -> bool:
        return all(p.chart.settled for p in self.panels.values())

    @property
    def selection_ratio(self) -> float:
        return selection_ratio(self.filtered, self.records)

    def insights(self) -> Insights:
        return generate_insights(self.filtered)

    def panel(self, name: str) -> Panel:
        try:
            return self.panels[name]
        except KeyError:
            raise ValueError(f"unknown panel: {name}") from None

    def _render_panel(self, p: Panel, now: float, *, refilter: bool = True) -> Scene | None:
        if p.size is None or not self.loaded:
            return None
        if refilter:
            self.filtered = filter_records(self.records, self.criteria)
        if p.group is not None:
            p.chart.set_color_domain(unique_values(self.records, p.group))
        series = p.build(self.filtered, p)
        p.last_scene = p.chart.render(series, (p.size.width, p.size.height), now)
        LOGGER.debug("rendered panel %s: %d marks", p.name, len(p.last_scene.marks))
        return p.last_scene

    def _target(self, event: DashboardEvent) -> str:
        if event.panel is None:
            raise ValueError(f"{event.event_type} event needs a panel")
        return event.panel

    def _tick(self, now: float) -> float:
        self._now = max(self._now, float(now))
        return self._now


def default_panels(basemap: Basemap | None = None, *, theme: ChartTheme | None = None) -> list[Panel]:
    """The survey dashboard layout: one panel per chart kind."""

    panels = [
        Panel(
            "platforms",
            BarChart(theme=theme, x_label="Platform", y_label="Users"),
            lambda records, p: rollup_series(records, p.group, p.metric, sort="value_desc"),
            group="Most_Used_Platform",
            click_filters=True,
        ),
        Panel(
            "usage_by_level",
            BoxPlotChart(theme=theme, x_label="Academic Level"),
            lambda records, p: box_series(
                records,
                p.group,
                "Avg_Daily_Usage_Hours" if p.metric == COUNT else p.metric,
            ),
            group="Academic_Level",
        ),
        Panel(
            "usage_by_age",
            LineChart(theme=theme, x_label="Age", y_label="Avg Usage (hours)"),
            lambda records, p: rollup_points(records, p.group, "Avg_Daily_Usage_Hours" if p.metric == COUNT else p.metric),
            group="Age",
        ),
        Panel(
            "sleep_vs_addiction",
            ScatterChart(theme=theme, x_label="Sleep Hours/Night", y_label="Addiction Score"),
            lambda records, p: to_points(records, "Sleep_Hours_Per_Night", "Addicted_Score", label_field="Student_ID"),
        ),
        Panel(
            "gender",
            PieChart(theme=theme),
            lambda records, p: rollup_series(records, p.group, p.metric),
            group="Gender",
            click_filters=True,
        ),
        Panel(
            "profiles",
            SpiderChart(theme=theme, config=SpiderConfig(max_value=10.0)),
            lambda records, p: spider_series(records, p.group),
            group="Academic_Level",
        ),
        Panel(
            "platform_bubbles",
            BubbleChart(theme=theme),
            lambda records, p: bubble_series(records, p.group, p.metric),
            group="Most_Used_Platform",
        ),
    ]
    if basemap is not None:
        panels.append(
            Panel(
                "world",
                ChoroplethChart(basemap, theme=theme),
                lambda records, p: region_values(records, p.metric),
            )
        )
    return panels
