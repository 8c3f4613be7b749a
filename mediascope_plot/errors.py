from __future__ import annotations


class PlotDataError(ValueError):
    pass
