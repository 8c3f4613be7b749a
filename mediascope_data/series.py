from __future__ import annotations

from dataclasses import dataclass
import math


def _finite_or_zero(value: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return 0.0
    return out if math.isfinite(out) else 0.0


@dataclass(frozen=True)
class BarDatum:
    label: str
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _finite_or_zero(self.value))


@dataclass(frozen=True)
class PointDatum:
    x: float | str
    y: float
    label: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.x, str):
            object.__setattr__(self, "x", _finite_or_zero(self.x))
        object.__setattr__(self, "y", _finite_or_zero(self.y))


@dataclass(frozen=True)
class Quartiles:
    q1: float
    median: float
    q3: float


@dataclass(frozen=True)
class Whiskers:
    min: float
    max: float


@dataclass(frozen=True)
class BoxSummary:
    q1: float
    median: float
    q3: float
    min: float
    max: float


@dataclass(frozen=True)
class BoxDatum:
    key: str
    quartiles: BoxSummary


@dataclass(frozen=True)
class SpiderAxisValue:
    axis: str
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _finite_or_zero(self.value))


@dataclass(frozen=True)
class SpiderSeries:
    name: str
    data: tuple[SpiderAxisValue, ...]
    color: str | None = None


@dataclass(frozen=True)
class BubbleDatum:
    id: str
    value: float
    group: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", _finite_or_zero(self.value))


# Region name (basemap spelling) -> value.
ChoroplethSeries = dict[str, float]
