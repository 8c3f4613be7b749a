from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
import json
import logging
import math
from pathlib import Path
from typing import Any

import numpy as np

from mediascope_data.aggregate import COUNT, choropleth_values
from mediascope_data.records import Record
from mediascope_plot.chart import Chart, LayerSpec, static_layer
from mediascope_plot.colors import metric_ramp, sequential_color_scale
from mediascope_plot.errors import PlotDataError
from mediascope_plot.marks import Mark, Point
from mediascope_plot.viewport import Margin, ViewportGeometry


LOGGER = logging.getLogger(__name__)

REGION_ALIASES: dict[str, str] = {
    "USA": "United States of America",
    "UK": "United Kingdom",
    "South Korea": "Republic of Korea",
    "Bosnia": "Bosnia and Herzegovina",
    "Czech Republic": "Czechia",
    "UAE": "United Arab Emirates",
    "Syria": "Syrian Arab Republic",
    "Trinidad": "Trinidad and Tobago",
    "Vatican City": "Vatican",
}

METRIC_OPTIONS: tuple[tuple[str, str], ...] = (
    (COUNT, "Number of Students"),
    ("Addicted_Score", "Addiction Score"),
    ("Avg_Daily_Usage_Hours", "Daily Usage (hours)"),
    ("Sleep_Hours_Per_Night", "Sleep (hours)"),
    ("Mental_Health_Score", "Mental Health Score"),
)

MAP_TOP = 40.0
FIT_INSET = 2.0
LEGEND_SPACE = 80.0
LEGEND_WIDTH = 300.0
LEGEND_HEIGHT = 12.0
LEGEND_STOPS = 10
SCALE_EXTENT = (1.0, 5.0)
NO_DATA = "No data"


def metric_label(metric: str) -> str:
    return next((label for key, label in METRIC_OPTIONS if key == metric), metric)


def map_region_name(country: str, aliases: Mapping[str, str] = REGION_ALIASES) -> str:
    return aliases.get(country, country)


def region_values(records: Sequence[Record], metric: str = COUNT) -> dict[str, float]:
    """Aggregate records per basemap region name (dataset names go through REGION_ALIASES)."""

    return choropleth_values(records, metric, aliases=REGION_ALIASES)


# Basemap ----------------------------------------------------------------------

Ring = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class Region:
    name: str
    rings: tuple[Ring, ...]


@dataclass(frozen=True)
class Basemap:
    regions: tuple[Region, ...]

    def names(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.regions)


def basemap_from_geojson(obj: Mapping[str, Any]) -> Basemap:
    """Build a basemap from a GeoJSON FeatureCollection with `properties.name`."""

    if not isinstance(obj, Mapping) or obj.get("type") != "FeatureCollection":
        raise PlotDataError("basemap must be a GeoJSON FeatureCollection")
    features = obj.get("features")
    if not isinstance(features, list):
        raise PlotDataError("basemap `features` must be a list")
    regions: list[Region] = []
    for i, feature in enumerate(features):
        if not isinstance(feature, Mapping):
            raise PlotDataError(f"feature {i} must be an object")
        props = feature.get("properties") or {}
        name = props.get("name") if isinstance(props, Mapping) else None
        if not isinstance(name, str) or not name:
            raise PlotDataError(f"feature {i} is missing properties.name")
        geometry = feature.get("geometry")
        if geometry is None:
            continue
        regions.append(Region(name=name, rings=_rings(geometry, name)))
    return Basemap(regions=tuple(regions))


def load_basemap(path: str | Path) -> Basemap:
    p = Path(path)
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PlotDataError(f"invalid basemap JSON in {p}: {exc}") from exc
    basemap = basemap_from_geojson(obj)
    LOGGER.info("loaded basemap %s with %d regions", p, len(basemap.regions))
    return basemap


def _rings(geometry: Mapping[str, Any], name: str) -> tuple[Ring, ...]:
    kind = geometry.get("type")
    coords = geometry.get("coordinates")
    try:
        if kind == "Polygon":
            polygons = [coords]
        elif kind == "MultiPolygon":
            polygons = list(coords)
        else:
            raise PlotDataError(f"region {name!r}: unsupported geometry type {kind!r}")
        return tuple(
            tuple((float(lon), float(lat)) for lon, lat, *_ in ring) for polygon in polygons for ring in polygon
        )
    except (TypeError, ValueError) as exc:
        raise PlotDataError(f"region {name!r}: malformed coordinates") from exc


# Equal Earth projection ---------------------------------------------------------

_A1, _A2, _A3, _A4 = 1.340264, -0.081106, 0.000893, 0.003796
_M = math.sqrt(3.0) / 2.0


def equal_earth(lon_deg: np.ndarray, lat_deg: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Unit Equal Earth projection; y grows downward like screen coordinates."""

    lam = np.radians(lon_deg)
    phi = np.radians(np.clip(lat_deg, -90.0, 90.0))
    theta = np.arcsin(_M * np.sin(phi))
    l2 = theta * theta
    l6 = l2 * l2 * l2
    x = lam * np.cos(theta) / (_M * (_A1 + 3.0 * _A2 * l2 + l6 * (7.0 * _A3 + 9.0 * _A4 * l2)))
    y = theta * (_A1 + _A2 * l2 + l6 * (_A3 + _A4 * l2))
    return x, -y


@dataclass(frozen=True)
class FittedProjection:
    scale: float
    tx: float
    ty: float

    def __call__(self, lon: Iterable[float], lat: Iterable[float]) -> list[Point]:
        x, y = equal_earth(np.asarray(list(lon), dtype=np.float64), np.asarray(list(lat), dtype=np.float64))
        return list(zip((x * self.scale + self.tx).tolist(), (y * self.scale + self.ty).tolist(), strict=True))


def fit_equal_earth(x0: float, y0: float, x1: float, y1: float) -> FittedProjection:
    """Scale and center the whole sphere into the extent [[x0, y0], [x1, y1]]."""

    lon = np.concatenate([np.full(91, -180.0), np.full(91, 180.0), np.linspace(-180, 180, 181)])
    lat = np.concatenate([np.linspace(-90, 90, 91), np.linspace(-90, 90, 91), np.zeros(181)])
    sx, sy = equal_earth(lon, lat)
    bw = float(sx.max() - sx.min())
    bh = float(sy.max() - sy.min())
    w, h = max(0.0, x1 - x0), max(0.0, y1 - y0)
    k = min(w / bw, h / bh) if bw > 0 and bh > 0 else 0.0
    tx = x0 + (w - k * (sx.max() + sx.min())) / 2.0
    ty = y0 + (h - k * (sy.max() + sy.min())) / 2.0
    return FittedProjection(scale=k, tx=float(tx), ty=float(ty))


# Chart --------------------------------------------------------------------------

@dataclass(frozen=True)
class ZoomTransform:
    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.k, self.x, self.y)


class ChoroplethChart(Chart):
    kind = "choropleth"
    default_margin = Margin(top=0, right=0, bottom=0, left=0)
    hit_layers = ("regions",)

    def __init__(
        self,
        basemap: Basemap,
        *,
        metric: str = COUNT,
        on_select: Callable[[str, float | None], None] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.basemap = basemap
        self.metric = metric
        self.on_select = on_select
        self.zoom = ZoomTransform()
        self.values: dict[str, float] = {}
        self.tooltip.offset = (3.0, 3.0)
        self._projected: dict[str, tuple[tuple[Point, ...], ...]] = {}
        self._projection_size: tuple[float, float] | None = None

    def _snapshot(self, series: Any) -> tuple[Any, ...]:
        return tuple((str(k), float(v)) for k, v in dict(series or {}).items())

    def set_metric(self, metric: str) -> None:
        self.metric = metric

    def layout(self, data: tuple[tuple[str, float], ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        self.values = {name: value for name, value in data if math.isfinite(value)}
        width, height = viewport.width, viewport.height
        map_bottom = max(MAP_TOP + FIT_INSET, height - LEGEND_SPACE)
        rings_by_region = self._project(width, map_bottom)

        finite = list(self.values.values())
        lo, hi = (min(finite), max(finite)) if finite else (0.0, 1.0)
        start, end = metric_ramp(self.metric)
        color = sequential_color_scale((lo, hi), start, end)
        transform = self.zoom.as_tuple()

        regions: list[Mark] = []
        for region in self.basemap.regions:
            value = self.values.get(region.name)
            regions.append(
                Mark(
                    key=f"region:{region.name}",
                    kind="polygon",
                    attrs={
                        "rings": rings_by_region[region.name],
                        "fill": color(value) if value is not None else self.theme.neutral_fill,
                        "stroke": "#222222",
                        "stroke_width": 0.35,
                        "transform": transform,
                        "opacity": 1.0,
                    },
                    datum=(region.name, value),
                )
            )
        legend = self._legend(width, map_bottom, lo, hi, color) if finite else []
        return [static_layer("regions", regions), static_layer("legend", legend)]

    def _project(self, width: float, map_bottom: float) -> dict[str, tuple[tuple[Point, ...], ...]]:
        if self._projection_size != (width, map_bottom):
            fitted = fit_equal_earth(FIT_INSET, MAP_TOP + FIT_INSET, width - FIT_INSET, map_bottom)
            self._projected = {
                region.name: tuple(
                    tuple(fitted([p[0] for p in ring], [p[1] for p in ring])) for ring in region.rings
                )
                for region in self.basemap.regions
            }
            self._projection_size = (width, map_bottom)
            LOGGER.debug("projected %d regions into %.0fx%.0f", len(self._projected), width, map_bottom)
        return self._projected

    def _legend(
        self,
        width: float,
        map_bottom: float,
        lo: float,
        hi: float,
        color: Callable[[float], str],
    ) -> list[Mark]:
        x0 = (width - LEGEND_WIDTH) / 2.0
        y0 = map_bottom + 25.0
        stops = tuple(color(lo + i / (LEGEND_STOPS - 1) * (hi - lo)) for i in range(LEGEND_STOPS))
        text = {"fill": self.theme.text, "font_size": 12.0, "baseline": "alphabetic", "opacity": 1.0}
        return [
            Mark(
                key="legend:bar",
                kind="rect",
                attrs={
                    "x": x0,
                    "y": y0,
                    "width": LEGEND_WIDTH,
                    "height": LEGEND_HEIGHT,
                    "gradient": stops,
                    "fill": stops[0],
                    "stroke": "#ffffff",
                    "stroke_width": 0.5,
                    "rx": 4.0,
                    "opacity": 1.0,
                },
                interactive=False,
            ),
            Mark(
                key="legend:min",
                kind="text",
                attrs={"x": x0, "y": y0 + LEGEND_HEIGHT + 16.0, "text": f"{lo:.1f}", "anchor": "start", **text},
                interactive=False,
            ),
            Mark(
                key="legend:max",
                kind="text",
                attrs={"x": x0 + LEGEND_WIDTH, "y": y0 + LEGEND_HEIGHT + 16.0, "text": f"{hi:.1f}", "anchor": "end", **text},
                interactive=False,
            ),
            Mark(
                key="legend:title",
                kind="text",
                attrs={
                    "x": x0 + LEGEND_WIDTH / 2.0,
                    "y": y0 - 6.0,
                    "text": f"Scale: {metric_label(self.metric)}",
                    "anchor": "middle",
                    **{**text, "font_size": 13.0},
                },
                interactive=False,
            ),
        ]

    # Zoom and pan only touch the view transform; projected rings stay cached.

    def zoom_by(self, factor: float, center: tuple[float, float], now: float) -> ZoomTransform:
        z = self.zoom
        k = min(SCALE_EXTENT[1], max(SCALE_EXTENT[0], z.k * float(factor)))
        px, py = (center[0] - z.x) / z.k, (center[1] - z.y) / z.k
        self.zoom = ZoomTransform(k=k, x=center[0] - px * k, y=center[1] - py * k)
        self._refresh(now)
        return self.zoom

    def pan_by(self, dx: float, dy: float, now: float) -> ZoomTransform:
        self.zoom = ZoomTransform(k=self.zoom.k, x=self.zoom.x + dx, y=self.zoom.y + dy)
        self._refresh(now)
        return self.zoom

    def reset_zoom(self, now: float) -> None:
        self.zoom = ZoomTransform()
        self._refresh(now)

    def _refresh(self, now: float) -> None:
        if self.viewport is not None and self._series:
            self.render(dict(self._series), self.viewport, now)

    def tooltip_title(self, mark: Mark) -> str | None:
        return mark.datum[0]

    def tooltip_lines(self, mark: Mark) -> list[str]:
        value = mark.datum[1]
        return [f"{metric_label(self.metric)}: {value:.1f}" if value is not None else f"{metric_label(self.metric)}: {NO_DATA}"]

    def on_click(self, mark: Mark) -> None:
        if self.on_select is not None:
            name, value = mark.datum
            self.on_select(name, value)
