from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import math
from typing import Union

import numpy as np


DEFAULT_HEADROOM = 1.1


@dataclass(frozen=True)
class BandScale:
    """Categorical axis: evenly spaced bands in encounter order."""

    domain: tuple[str, ...]
    range: tuple[float, float]
    padding: float = 0.1

    @property
    def step(self) -> float:
        n = len(self.domain)
        span = self.range[1] - self.range[0]
        return span / max(1.0, n - self.padding + 2.0 * self.padding)

    @property
    def bandwidth(self) -> float:
        return self.step * (1.0 - self.padding)

    def start_of(self, label: str) -> float | None:
        try:
            i = self.domain.index(label)
        except ValueError:
            return None
        n = len(self.domain)
        span = self.range[1] - self.range[0]
        start = self.range[0] + (span - self.step * (n - self.padding)) * 0.5
        return start + self.step * i

    def center_of(self, label: str) -> float | None:
        start = self.start_of(label)
        return None if start is None else start + self.bandwidth / 2.0


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2.0
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)


@dataclass(frozen=True)
class PointScale:
    """Ordered-categorical axis: evenly spaced points with edge padding."""

    domain: tuple[str, ...]
    range: tuple[float, float]
    padding: float = 0.5

    @property
    def step(self) -> float:
        n = len(self.domain)
        span = self.range[1] - self.range[0]
        return span / max(1.0, n - 1 + 2.0 * self.padding)

    def __call__(self, label: str) -> float | None:
        try:
            i = self.domain.index(str(label))
        except ValueError:
            return None
        n = len(self.domain)
        span = self.range[1] - self.range[0]
        start = self.range[0] + (span - self.step * (n - 1)) * 0.5
        return start + self.step * i


@dataclass(frozen=True)
class RadialScale:
    """Spoke layout for n axes; values map to radius against an explicit max."""

    n_axes: int
    radius: float
    max_value: float
    base_angle: float = math.pi / 2.0

    def angle(self, i: int) -> float:
        if self.n_axes <= 0:
            return self.base_angle
        return self.base_angle + 2.0 * math.pi * i / self.n_axes

    def radius_of(self, value: float) -> float:
        if self.max_value <= 0:
            return 0.0
        return float(value) / self.max_value * self.radius

    def point(self, i: int, value: float) -> tuple[float, float]:
        r = self.radius_of(value)
        a = self.angle(i)
        return (r * math.cos(a), r * math.sin(a))


Scale = Union[BandScale, LinearScale, PointScale, RadialScale]


def resolve_position(scale: Scale, value: object) -> float | None:
    """Domain value -> pixel position along the scale's primary axis.

    Band scales return the band start; radial scales return the radius.
    """

    match scale:
        case BandScale():
            return scale.start_of(str(value))
        case PointScale():
            return scale(str(value))
        case LinearScale():
            return scale(float(value))  # type: ignore[arg-type]
        case RadialScale():
            return scale.radius_of(float(value))  # type: ignore[arg-type]
    raise TypeError(f"unsupported scale: {type(scale)!r}")


def ordered_labels(labels: Iterable[object], *, sort: bool = False) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for label in labels:
        seen.setdefault(str(label), None)
    out = tuple(seen)
    return tuple(sorted(out)) if sort else out


def band_scale(
    labels: Iterable[object],
    span: float,
    *,
    padding: float = 0.1,
    sort: bool = False,
    start: float = 0.0,
) -> BandScale:
    if not 0.0 <= padding < 1.0:
        raise ValueError("band padding must be in [0, 1)")
    return BandScale(domain=ordered_labels(labels, sort=sort), range=(start, start + max(0.0, span)), padding=padding)


def point_scale(
    labels: Iterable[object],
    span: float,
    *,
    padding: float = 0.5,
    start: float = 0.0,
) -> PointScale:
    if padding < 0.0:
        raise ValueError("point padding must be >= 0")
    return PointScale(domain=ordered_labels(labels), range=(start, start + max(0.0, span)), padding=padding)


def linear_scale(
    values: Iterable[float],
    span: float,
    *,
    domain: tuple[float, float] | None = None,
    headroom: float = DEFAULT_HEADROOM,
    invert: bool = False,
    start: float = 0.0,
) -> LinearScale:
    """Linear map with default domain `[0, observed_max * headroom]`."""

    if domain is None:
        finite = _finite(values)
        top = float(np.max(finite)) * headroom if finite.size else 0.0
        domain = (0.0, top if top > 0 else 1.0)
    lo, hi = float(domain[0]), float(domain[1])
    r = (start + max(0.0, span), start) if invert else (start, start + max(0.0, span))
    return LinearScale(domain=(lo, hi), range=r)


def extent(values: Iterable[float], default: tuple[float, float] = (0.0, 1.0)) -> tuple[float, float]:
    finite = _finite(values)
    if finite.size == 0:
        return default
    return (float(np.min(finite)), float(np.max(finite)))


def radial_scale(
    n_axes: int,
    radius: float,
    *,
    max_value: float | None = None,
    values: Iterable[float] = (),
    base_angle: float = math.pi / 2.0,
) -> RadialScale:
    if n_axes < 0:
        raise ValueError("n_axes must be >= 0")
    if max_value is None or max_value <= 0:
        finite = _finite(values)
        max_value = float(np.max(finite)) if finite.size else 0.0
    return RadialScale(n_axes=n_axes, radius=max(0.0, radius), max_value=max_value, base_angle=base_angle)


def _finite(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray([float(v) for v in values], dtype=np.float64)
    return arr[np.isfinite(arr)]


# Ticks -------------------------------------------------------------------------

def nice_ticks(vmin: float, vmax: float, target: int = 5) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if not (math.isfinite(vmin) and math.isfinite(vmax)):
        return np.asarray([], dtype=np.float64)
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)
    lo, hi = min(vmin, vmax), max(vmin, vmax)
    step = _nice_number((hi - lo) / max(target, 1), round_result=True)
    first = math.ceil(lo / step - 1e-9) * step
    ticks = np.arange(first, hi + step * 1e-9, step, dtype=np.float64)
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def scale_ticks(scale: Scale, target: int = 5) -> tuple[object, ...]:
    match scale:
        case BandScale() | PointScale():
            return scale.domain
        case LinearScale():
            return tuple(float(t) for t in nice_ticks(scale.domain[0], scale.domain[1], target))
        case RadialScale():
            return tuple(float(t) for t in nice_ticks(0.0, scale.max_value, target))
    raise TypeError(f"unsupported scale: {type(scale)!r}")


def format_tick(value: float, *, step: float | None = None) -> str:
    if not math.isfinite(value):
        return str(value)
    if step is not None and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    decimals = _decimals_from_step(step) if step is not None else 6
    if value != 0 and abs(value) >= 1e6:
        return f"{value:.3e}"
    try:
        q = Decimal(str(value)).quantize(Decimal("1").scaleb(-decimals))
    except InvalidOperation:
        q = Decimal(str(value))
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    return "0" if out == "-0" else out


def format_ticks(ticks: Sequence[float]) -> list[str]:
    if len(ticks) == 0:
        return []
    if len(ticks) == 1:
        return [format_tick(float(ticks[0]))]
    step = abs(float(ticks[1]) - float(ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = math.floor(math.log10(value))
    frac = value / (10**exp)
    if round_result:
        bounds = ((1.5, 1.0), (3.0, 2.0), (7.0, 5.0))
        nice = next((n for limit, n in bounds if frac < limit), 10.0)
    else:
        bounds = ((1.0, 1.0), (2.0, 2.0), (5.0, 5.0))
        nice = next((n for limit, n in bounds if frac <= limit), 10.0)
    return float(nice * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not math.isfinite(step):
        return 6
    exp = Decimal(str(step)).normalize().as_tuple().exponent
    return min(12, max(0, -int(exp)))
