"""Survey records, filtering and the aggregation engine."""

from mediascope_data.aggregate import (
    COUNT,
    DEFAULT_SPIDER_METRICS,
    SpiderMetric,
    box_series,
    box_summary,
    box_summary_of,
    bubble_series,
    choropleth_values,
    count,
    group_reduce,
    iqr_whiskers,
    mean,
    mean_of,
    pearson_correlation,
    quartiles,
    quartiles_of,
    rollup_points,
    rollup_series,
    sort_by_label,
    sort_by_value,
    spider_series,
    to_points,
)
from mediascope_data.filters import FilterCriteria, RangeBounds, criteria_from_raw, filter_records
from mediascope_data.insights import Insights, generate_insights
from mediascope_data.loader import RecordLoadError, load_records
from mediascope_data.records import Record
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

__all__ = [
    "BarDatum",
    "BoxDatum",
    "BoxSummary",
    "BubbleDatum",
    "COUNT",
    "DEFAULT_SPIDER_METRICS",
    "FilterCriteria",
    "Insights",
    "PointDatum",
    "Quartiles",
    "RangeBounds",
    "Record",
    "RecordLoadError",
    "SpiderAxisValue",
    "SpiderMetric",
    "SpiderSeries",
    "Whiskers",
    "box_series",
    "box_summary",
    "box_summary_of",
    "bubble_series",
    "choropleth_values",
    "count",
    "criteria_from_raw",
    "filter_records",
    "generate_insights",
    "group_reduce",
    "iqr_whiskers",
    "load_records",
    "mean",
    "mean_of",
    "pearson_correlation",
    "quartiles",
    "quartiles_of",
    "rollup_points",
    "rollup_series",
    "sort_by_label",
    "sort_by_value",
    "spider_series",
    "to_points",
]
