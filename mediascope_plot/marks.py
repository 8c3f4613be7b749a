from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
import math
from typing import Any, Literal


MarkKind = Literal["rect", "circle", "line", "polyline", "polygon", "arc", "text"]
Point = tuple[float, float]

# Arc angles are radians measured clockwise from 12 o'clock.
HIT_SLOP_PX = 3.0


@dataclass(frozen=True)
class Mark:
    """One keyed visual element with its attributes and the datum behind it."""

    key: str
    kind: MarkKind
    attrs: Mapping[str, Any] = field(default_factory=dict)
    datum: Any = None
    interactive: bool = True

    def with_attrs(self, **attrs: Any) -> "Mark":
        merged = dict(self.attrs)
        merged.update(attrs)
        return replace(self, attrs=merged)

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def contains(self, x: float, y: float) -> bool:
        return hit_test(self, x, y)


@dataclass(frozen=True)
class Scene:
    width: float
    height: float
    marks: tuple[Mark, ...] = ()
    background: str | None = None

    def find(self, key: str) -> Mark | None:
        return next((m for m in self.marks if m.key == key), None)

    def by_prefix(self, prefix: str) -> tuple[Mark, ...]:
        return tuple(m for m in self.marks if m.key.startswith(prefix))


def hit_test(mark: Mark, x: float, y: float) -> bool:
    a = mark.attrs
    if a.get("transform") is not None:
        x, y = invert_transform(a["transform"], x, y)
    match mark.kind:
        case "rect":
            x0, y0 = float(a.get("x", 0.0)), float(a.get("y", 0.0))
            return x0 <= x <= x0 + float(a.get("width", 0.0)) and y0 <= y <= y0 + float(a.get("height", 0.0))
        case "circle":
            r = float(a.get("r", 0.0))
            return r > 0 and math.hypot(x - float(a.get("cx", 0.0)), y - float(a.get("cy", 0.0))) <= r
        case "arc":
            return _in_arc(a, x, y)
        case "polygon":
            rings = polygon_rings(a)
            if a.get("fill") is not None:
                return sum(point_in_polygon(ring, x, y) for ring in rings) % 2 == 1
            tol = float(a.get("stroke_width", 1.0)) / 2.0 + HIT_SLOP_PX
            for pts in rings:
                ring = tuple(pts) + tuple(pts[:1])
                if any(_segment_distance(p, q, (x, y)) <= tol for p, q in zip(ring[:-1], ring[1:], strict=False)):
                    return True
            return False
        case "polyline" | "line":
            pts = a.get("points") or ((a.get("x1", 0.0), a.get("y1", 0.0)), (a.get("x2", 0.0), a.get("y2", 0.0)))
            tol = float(a.get("stroke_width", 1.0)) / 2.0 + HIT_SLOP_PX
            return any(
                _segment_distance(p, q, (x, y)) <= tol for p, q in zip(pts[:-1], pts[1:], strict=False)
            )
        case "text":
            return False
    return False


def polygon_rings(attrs: Mapping[str, Any]) -> tuple[Sequence[Point], ...]:
    """A polygon carries either `points` (one ring) or `rings` (even-odd fill)."""

    rings = attrs.get("rings")
    if rings is not None:
        return tuple(rings)
    return (tuple(attrs.get("points", ())),)


def apply_transform(transform: tuple[float, float, float] | None, x: float, y: float) -> Point:
    """View transform `(k, tx, ty)`: screen = k * p + t."""

    if transform is None:
        return (x, y)
    k, tx, ty = transform
    return (k * x + tx, k * y + ty)


def invert_transform(transform: tuple[float, float, float], x: float, y: float) -> Point:
    k, tx, ty = transform
    if k == 0:
        return (x, y)
    return ((x - tx) / k, (y - ty) / k)


def arc_point(cx: float, cy: float, radius: float, angle: float) -> Point:
    return (cx + radius * math.sin(angle), cy - radius * math.cos(angle))


def _in_arc(a: Mapping[str, Any], x: float, y: float) -> bool:
    dx = x - float(a.get("cx", 0.0))
    dy = y - float(a.get("cy", 0.0))
    dist = math.hypot(dx, dy)
    if not float(a.get("inner_radius", 0.0)) <= dist <= float(a.get("outer_radius", 0.0)):
        return False
    angle = math.atan2(dx, -dy) % (2.0 * math.pi)
    start = float(a.get("start_angle", 0.0))
    end = float(a.get("end_angle", 0.0))
    if end - start >= 2.0 * math.pi:
        return True
    rel = (angle - start) % (2.0 * math.pi)
    return rel <= (end - start)


def point_in_polygon(points: Sequence[Point], x: float, y: float) -> bool:
    inside = False
    n = len(points)
    if n < 3:
        return False
    j = n - 1
    for i in range(n):
        xi, yi = points[i]
        xj, yj = points[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def _segment_distance(p: Point, q: Point, r: Point) -> float:
    px, py = float(p[0]), float(p[1])
    qx, qy = float(q[0]), float(q[1])
    dx, dy = qx - px, qy - py
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(r[0] - px, r[1] - py)
    t = max(0.0, min(1.0, ((r[0] - px) * dx + (r[1] - py) * dy) / length_sq))
    return math.hypot(r[0] - (px + t * dx), r[1] - (py + t * dy))


def monotone_curve(points: Sequence[Point], samples_per_segment: int = 8) -> tuple[Point, ...]:
    """Sample a monotone-in-x cubic through `points` (Fritsch-Carlson tangents)."""

    pts = [(float(x), float(y)) for x, y in points]
    n = len(pts)
    if n < 3:
        return tuple(pts)
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    h = [xs[i + 1] - xs[i] for i in range(n - 1)]
    slopes = [(ys[i + 1] - ys[i]) / h[i] if h[i] != 0 else 0.0 for i in range(n - 1)]
    tangents = [slopes[0]] + [0.0] * (n - 2) + [slopes[-1]]
    for i in range(1, n - 1):
        if slopes[i - 1] * slopes[i] <= 0:
            tangents[i] = 0.0
        else:
            w1 = 2 * h[i] + h[i - 1]
            w2 = h[i] + 2 * h[i - 1]
            tangents[i] = (w1 + w2) / (w1 / slopes[i - 1] + w2 / slopes[i])
    out: list[Point] = [pts[0]]
    for i in range(n - 1):
        for s in range(1, samples_per_segment + 1):
            t = s / samples_per_segment
            t2, t3 = t * t, t * t * t
            h00 = 2 * t3 - 3 * t2 + 1
            h10 = t3 - 2 * t2 + t
            h01 = -2 * t3 + 3 * t2
            h11 = t3 - t2
            x = xs[i] + h[i] * t
            y = h00 * ys[i] + h10 * h[i] * tangents[i] + h01 * ys[i + 1] + h11 * h[i] * tangents[i + 1]
            out.append((x, y))
    return tuple(out)
