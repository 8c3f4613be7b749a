from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

import numpy as np

from mediascope_data.records import Record, resolve_field
from mediascope_data.series import (
    BarDatum,
    BoxDatum,
    BoxSummary,
    BubbleDatum,
    PointDatum,
    Quartiles,
    SpiderAxisValue,
    SpiderSeries,
    Whiskers,
)


K = TypeVar("K", bound=Hashable)
A = TypeVar("A")

COUNT = "Count"
WHISKER_IQR_FACTOR = 1.5


def _finite_array(values: Iterable[Any]) -> np.ndarray:
    out: list[float] = []
    for raw in values:
        if raw is None or isinstance(raw, str):
            continue
        try:
            v = float(raw)
        except (TypeError, ValueError):
            continue
        out.append(v)
    arr = np.asarray(out, dtype=np.float64)
    return arr[np.isfinite(arr)]


def group_reduce(
    records: Iterable[Record],
    key_fn: Callable[[Record], K],
    reduce_fn: Callable[[list[Record]], A],
) -> dict[K, A]:
    """Group by `key_fn` (first-occurrence order) and reduce each group."""

    groups: dict[K, list[Record]] = {}
    for record in records:
        groups.setdefault(key_fn(record), []).append(record)
    return {key: reduce_fn(members) for key, members in groups.items()}


def mean(values: Iterable[Any]) -> float:
    arr = _finite_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def quartiles(values: Iterable[Any]) -> Quartiles:
    """Linear-interpolation quantiles at p=0.25/0.5/0.75 over the sorted sample."""

    arr = np.sort(_finite_array(values))
    if arr.size == 0:
        return Quartiles(q1=0.0, median=0.0, q3=0.0)
    q1, median, q3 = (_quantile_sorted(arr, p) for p in (0.25, 0.5, 0.75))
    return Quartiles(q1=q1, median=median, q3=q3)


def _quantile_sorted(arr: np.ndarray, p: float) -> float:
    h = (arr.size - 1) * p
    lo = int(np.floor(h))
    hi = min(lo + 1, arr.size - 1)
    return float(arr[lo] + (arr[hi] - arr[lo]) * (h - lo))


def iqr_whiskers(values: Iterable[Any], q1: float, q3: float) -> Whiskers:
    arr = _finite_array(values)
    sample_max = float(np.max(arr)) if arr.size else 0.0
    iqr = q3 - q1
    low = max(0.0, q1 - WHISKER_IQR_FACTOR * iqr)
    high = min(sample_max, q3 + WHISKER_IQR_FACTOR * iqr)
    return Whiskers(min=low, max=high)


def box_summary(values: Iterable[Any]) -> BoxSummary:
    arr = _finite_array(values)
    q = quartiles(arr)
    w = iqr_whiskers(arr, q.q1, q.q3)
    return BoxSummary(q1=q.q1, median=q.median, q3=q.q3, min=w.min, max=w.max)


def pearson_correlation(pairs: Iterable[tuple[Any, Any]]) -> float:
    """Sample Pearson r; 0 for fewer than two pairs or a zero deviation."""

    xs: list[float] = []
    ys: list[float] = []
    for x, y in pairs:
        try:
            fx, fy = float(x), float(y)
        except (TypeError, ValueError):
            continue
        if np.isfinite(fx) and np.isfinite(fy):
            xs.append(fx)
            ys.append(fy)
    n = len(xs)
    if n < 2:
        return 0.0
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    x_dev = float(np.std(x, ddof=1))
    y_dev = float(np.std(y, ddof=1))
    if x_dev == 0.0 or y_dev == 0.0:
        return 0.0
    covariance = float(np.sum((x - x.mean()) * (y - y.mean()))) / (n - 1)
    return float(np.clip(covariance / (x_dev * y_dev), -1.0, 1.0))


# Reducers -----------------------------------------------------------------

def count(records: Sequence[Record]) -> float:
    return float(len(records))


def mean_of(field: str) -> Callable[[Sequence[Record]], float]:
    attr = resolve_field(field)

    def _reduce(records: Sequence[Record]) -> float:
        return mean(getattr(r, attr) for r in records)

    return _reduce


def share_of(field: str, scale: float = 1.0) -> Callable[[Sequence[Record]], float]:
    attr = resolve_field(field)

    def _reduce(records: Sequence[Record]) -> float:
        if not records:
            return 0.0
        return scale * sum(1 for r in records if getattr(r, attr)) / len(records)

    return _reduce


def quartiles_of(field: str) -> Callable[[Sequence[Record]], Quartiles]:
    attr = resolve_field(field)

    def _reduce(records: Sequence[Record]) -> Quartiles:
        return quartiles(getattr(r, attr) for r in records)

    return _reduce


def box_summary_of(field: str) -> Callable[[Sequence[Record]], BoxSummary]:
    attr = resolve_field(field)

    def _reduce(records: Sequence[Record]) -> BoxSummary:
        return box_summary(getattr(r, attr) for r in records)

    return _reduce


def metric_reducer(metric: str) -> Callable[[Sequence[Record]], float]:
    if metric == COUNT:
        return count
    return mean_of(metric)


def field_key(field: str) -> Callable[[Record], Any]:
    attr = resolve_field(field)
    return lambda r: getattr(r, attr)


# Series builders ------------------------------------------------------------

SortOrder = Literal["value_desc", "value_asc", "label"] | None


def rollup_series(
    records: Sequence[Record],
    key: str | Callable[[Record], Any],
    metric: str = COUNT,
    *,
    sort: SortOrder = None,
) -> tuple[BarDatum, ...]:
    key_fn = field_key(key) if isinstance(key, str) else key
    grouped = group_reduce(records, key_fn, metric_reducer(metric))
    data = tuple(BarDatum(label=_label(k), value=v) for k, v in grouped.items())
    if sort == "value_desc":
        return sort_by_value(data, descending=True)
    if sort == "value_asc":
        return sort_by_value(data)
    if sort == "label":
        return sort_by_label(data)
    return data


def rollup_points(
    records: Sequence[Record],
    key: str | Callable[[Record], Any],
    value_field: str,
    *,
    sort_keys: bool = True,
) -> tuple[PointDatum, ...]:
    key_fn = field_key(key) if isinstance(key, str) else key
    grouped = group_reduce(records, key_fn, metric_reducer(value_field))
    items = list(grouped.items())
    if sort_keys:
        items.sort(key=lambda kv: _sort_key(kv[0]))
    return tuple(PointDatum(x=k if isinstance(k, str) else float(k), y=v) for k, v in items)


def to_points(
    records: Sequence[Record],
    x_field: str,
    y_field: str,
    *,
    label_field: str | None = None,
) -> tuple[PointDatum, ...]:
    x_attr = resolve_field(x_field)
    y_attr = resolve_field(y_field)
    label_attr = resolve_field(label_field) if label_field else None
    return tuple(
        PointDatum(
            x=getattr(r, x_attr),
            y=getattr(r, y_attr),
            label=str(getattr(r, label_attr)) if label_attr else None,
        )
        for r in records
    )


def box_series(
    records: Sequence[Record],
    key: str,
    value_field: str,
    *,
    order: Sequence[str] | None = None,
) -> tuple[BoxDatum, ...]:
    grouped = group_reduce(records, field_key(key), box_summary_of(value_field))
    data = {_label(k): v for k, v in grouped.items()}
    keys = [k for k in order if k in data] if order is not None else list(data)
    return tuple(BoxDatum(key=k, quartiles=data[k]) for k in keys)


@dataclass(frozen=True)
class SpiderMetric:
    axis: str
    reduce: Callable[[Sequence[Record]], float]


def _sleep_loss(records: Sequence[Record], target_hours: float = 8.0) -> float:
    return mean(max(0.0, target_hours - r.sleep_hours_per_night) for r in records)


def _mental_damage(records: Sequence[Record]) -> float:
    return max(0.0, 10.0 - mean(r.mental_health_score for r in records))


DEFAULT_SPIDER_METRICS: tuple[SpiderMetric, ...] = (
    SpiderMetric("Addiction", mean_of("addicted_score")),
    SpiderMetric("Sleep Loss", _sleep_loss),
    SpiderMetric("Conflicts", mean_of("conflicts_over_social_media")),
    SpiderMetric("Academic Impact", share_of("affects_academic_performance", scale=10.0)),
    SpiderMetric("Mental Damage", _mental_damage),
)


def spider_series(
    records: Sequence[Record],
    group_field: str,
    *,
    metrics: Sequence[SpiderMetric] = DEFAULT_SPIDER_METRICS,
    groups: Sequence[str] | None = None,
    colors: Mapping[str, str] | None = None,
    normalize_to: float | None = None,
) -> tuple[SpiderSeries, ...]:
    """One series per group with one value per metric axis.

    With `normalize_to`, every axis is rescaled so its largest group value
    equals `normalize_to` (all-zero axes stay at zero).
    """

    grouped = group_reduce(records, field_key(group_field), list)
    by_label = {_label(k): v for k, v in grouped.items()}
    names = [g for g in groups if g in by_label] if groups is not None else list(by_label)
    values = {name: [m.reduce(by_label[name]) for m in metrics] for name in names}
    if normalize_to is not None:
        if normalize_to <= 0:
            raise ValueError("normalize_to must be > 0")
        for i in range(len(metrics)):
            top = max((row[i] for row in values.values()), default=0.0)
            if top > 0:
                for row in values.values():
                    row[i] = row[i] / top * normalize_to
    return tuple(
        SpiderSeries(
            name=name,
            data=tuple(SpiderAxisValue(axis=m.axis, value=v) for m, v in zip(metrics, values[name], strict=True)),
            color=(colors or {}).get(name),
        )
        for name in names
    )


def bubble_series(records: Sequence[Record], field: str, metric: str = COUNT) -> tuple[BubbleDatum, ...]:
    grouped = group_reduce(records, field_key(field), metric_reducer(metric))
    return tuple(BubbleDatum(id=_label(k), value=v, group=_label(k)) for k, v in grouped.items())


def choropleth_values(
    records: Sequence[Record],
    metric: str = COUNT,
    *,
    aliases: Mapping[str, str] | None = None,
) -> dict[str, float]:
    alias_map = aliases or {}
    return group_reduce(
        records,
        lambda r: alias_map.get(r.country, r.country),
        metric_reducer(metric),
    )


def sort_by_value(data: Sequence[BarDatum], *, descending: bool = False) -> tuple[BarDatum, ...]:
    return tuple(sorted(data, key=lambda d: d.value, reverse=descending))


def sort_by_label(data: Sequence[BarDatum]) -> tuple[BarDatum, ...]:
    return tuple(sorted(data, key=lambda d: _sort_key(d.label)))


def _label(key: Any) -> str:
    if isinstance(key, bool):
        return "Yes" if key else "No"
    if isinstance(key, float) and key.is_integer():
        return str(int(key))
    return str(key)


def _sort_key(key: Any) -> tuple[int, Any]:
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        return (0, float(key))
    try:
        return (0, float(key))
    except (TypeError, ValueError):
        return (1, str(key))
