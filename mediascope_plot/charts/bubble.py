from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import Any

from mediascope_data.series import BubbleDatum
from mediascope_plot.chart import Chart, LayerSpec
from mediascope_plot.colors import SOCIAL_MEDIA_COLORS, ColorStrategy, resolve_color
from mediascope_plot.marks import Mark
from mediascope_plot.scales import format_tick
from mediascope_plot.viewport import Margin, ViewportGeometry


PACK_PADDING = 5.0
PACK_MARGIN = 5.0
FILL_OPACITY = 0.72
MAX_LABEL_SIZE = 16.0


@dataclass(frozen=True)
class PackedCircle:
    x: float
    y: float
    r: float


def pack_circles(radii: Sequence[float]) -> list[PackedCircle]:
    """Place circles of the given radii without overlap, tightly around the origin.

    Each circle after the first goes to the candidate tangent position (to one or
    two placed circles) nearest the origin that overlaps nothing.
    """

    placed: list[PackedCircle] = []
    for r in radii:
        r = max(0.0, float(r))
        if not placed:
            placed.append(PackedCircle(0.0, 0.0, r))
            continue
        if len(placed) == 1:
            a = placed[0]
            placed.append(PackedCircle(a.x + a.r + r, a.y, r))
            continue
        best: tuple[float, float] | None = None
        best_d = math.inf
        for cx, cy in _candidates(placed, r):
            if any(math.hypot(cx - c.x, cy - c.y) < c.r + r - 1e-9 for c in placed):
                continue
            d = math.hypot(cx, cy)
            if d < best_d:
                best, best_d = (cx, cy), d
        if best is None:
            far = max(math.hypot(c.x, c.y) + c.r for c in placed)
            best = (far + r, 0.0)
        placed.append(PackedCircle(best[0], best[1], r))
    return placed


def _candidates(placed: Sequence[PackedCircle], r: float) -> list[tuple[float, float]]:
    out: list[tuple[float, float]] = []
    for i, a in enumerate(placed):
        for k in range(8):
            theta = k * math.pi / 4.0
            out.append((a.x + (a.r + r) * math.cos(theta), a.y + (a.r + r) * math.sin(theta)))
        for b in placed[i + 1 :]:
            out.extend(_tangent_to_both(a, b, r))
    return out


def _tangent_to_both(a: PackedCircle, b: PackedCircle, r: float) -> list[tuple[float, float]]:
    ra, rb = a.r + r, b.r + r
    dx, dy = b.x - a.x, b.y - a.y
    d = math.hypot(dx, dy)
    if d == 0 or d > ra + rb or d < abs(ra - rb):
        return []
    along = (ra * ra - rb * rb + d * d) / (2.0 * d)
    h = math.sqrt(max(0.0, ra * ra - along * along))
    mx, my = a.x + along * dx / d, a.y + along * dy / d
    return [(mx - h * dy / d, my + h * dx / d), (mx + h * dy / d, my - h * dx / d)]


def enclose(circles: Sequence[PackedCircle]) -> PackedCircle:
    if not circles:
        return PackedCircle(0.0, 0.0, 0.0)
    x0 = min(c.x - c.r for c in circles)
    x1 = max(c.x + c.r for c in circles)
    y0 = min(c.y - c.r for c in circles)
    y1 = max(c.y + c.r for c in circles)
    cx, cy = (x0 + x1) / 2.0, (y0 + y1) / 2.0
    return PackedCircle(cx, cy, max(math.hypot(c.x - cx, c.y - cy) + c.r for c in circles))


def pack_layout(
    values: Sequence[float],
    width: float,
    height: float,
    *,
    padding: float = PACK_PADDING,
) -> list[PackedCircle]:
    """Circle pack sized by area (radius ~ sqrt(value)) and scaled into width x height."""

    size = min(width, height)
    radii = [math.sqrt(v) if math.isfinite(v) and v > 0 else 0.0 for v in values]
    if size <= 0 or not any(radii):
        return [PackedCircle(width / 2.0, height / 2.0, 0.0) for _ in values]
    loose = enclose(pack_circles(radii))
    pad = padding * loose.r / size
    padded = pack_circles([r + pad if r > 0 else 0.0 for r in radii])
    root = enclose(padded)
    root_r = root.r + pad
    k = size / (2.0 * root_r)
    return [
        PackedCircle(width / 2.0 + (c.x - root.x) * k, height / 2.0 + (c.y - root.y) * k, max(0.0, c.r - pad) * k if c.r > 0 else 0.0)
        for c in padded
    ]


class BubbleChart(Chart):
    kind = "bubble"
    default_margin = Margin(top=PACK_MARGIN, right=PACK_MARGIN, bottom=PACK_MARGIN, left=PACK_MARGIN)
    hit_layers = ("bubbles",)

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("colors", ColorStrategy(lookup=SOCIAL_MEDIA_COLORS))
        super().__init__(**kwargs)

    def layout(self, data: tuple[BubbleDatum, ...], viewport: ViewportGeometry) -> list[LayerSpec]:
        ox, oy = viewport.margin.left, viewport.margin.top
        self.color_map = resolve_color((d.group or d.id for d in data), self.color_strategy, domain=self.color_domain)
        packed = pack_layout([d.value for d in data], viewport.inner_width, viewport.inner_height)

        bubbles: list[Mark] = []
        labels: list[Mark] = []
        for d, c in zip(data, packed, strict=True):
            cx, cy = ox + c.x, oy + c.y
            bubbles.append(
                Mark(
                    key=f"bubble:{d.id}",
                    kind="circle",
                    attrs={
                        "cx": cx,
                        "cy": cy,
                        "r": c.r,
                        "fill": self.color_map[d.group or d.id],
                        "fill_opacity": FILL_OPACITY,
                        "stroke": "rgba(255,255,255,0.4)",
                        "stroke_width": 2.0,
                        "opacity": 1.0,
                    },
                    datum=d,
                )
            )
            size = min(c.r / 3.0, MAX_LABEL_SIZE)
            labels.append(
                Mark(
                    key=f"bubble-label:{d.id}",
                    kind="text",
                    attrs={
                        "x": cx,
                        "y": cy + size,
                        "text": d.id,
                        "fill": self.theme.text,
                        "font_size": size,
                        "anchor": "middle",
                        "baseline": "alphabetic",
                        "opacity": 1.0 if size >= 1.0 else 0.0,
                    },
                    datum=d,
                    interactive=False,
                )
            )

        def shrink(mark: Mark) -> dict[str, Any]:
            if mark.kind == "circle":
                return {"r": 0.0, "opacity": 0.0}
            return {"opacity": 0.0}

        return [
            LayerSpec("bubbles", bubbles, enter=shrink, exit=shrink),
            LayerSpec("labels", labels, enter=shrink, exit=shrink),
        ]

    def hover_attrs(self, mark: Mark) -> dict[str, Any]:
        return {"opacity": 0.8}

    def tooltip_lines(self, mark: Mark) -> list[str]:
        return [f"{mark.datum.id}: {format_tick(mark.datum.value)}"]

    def tooltip_anchor(self, mark: Mark, pointer: tuple[float, float]) -> tuple[float, float]:
        return (pointer[0], pointer[1] - 20.0)
