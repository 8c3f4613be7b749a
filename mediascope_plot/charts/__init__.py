from mediascope_plot.charts.bar import BarChart
from mediascope_plot.charts.boxplot import BoxPlotChart
from mediascope_plot.charts.bubble import BubbleChart, pack_layout
from mediascope_plot.charts.choropleth import (
    REGION_ALIASES,
    Basemap,
    ChoroplethChart,
    Region,
    ZoomTransform,
    basemap_from_geojson,
    load_basemap,
)
from mediascope_plot.charts.line import LineChart
from mediascope_plot.charts.pie import PieChart, pie_angles
from mediascope_plot.charts.scatter import Brush, ScatterChart
from mediascope_plot.charts.spider import SpiderChart, SpiderConfig

CHART_KINDS = {
    "bar": BarChart,
    "box": BoxPlotChart,
    "bubble": BubbleChart,
    "choropleth": ChoroplethChart,
    "line": LineChart,
    "pie": PieChart,
    "scatter": ScatterChart,
    "spider": SpiderChart,
}

__all__ = [
    "BarChart",
    "Basemap",
    "BoxPlotChart",
    "Brush",
    "BubbleChart",
    "CHART_KINDS",
    "ChoroplethChart",
    "LineChart",
    "PieChart",
    "REGION_ALIASES",
    "Region",
    "ScatterChart",
    "SpiderChart",
    "SpiderConfig",
    "ZoomTransform",
    "basemap_from_geojson",
    "load_basemap",
    "pack_layout",
    "pie_angles",
]
