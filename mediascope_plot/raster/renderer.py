from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image, ImageDraw

from mediascope_plot.colors import parse_color, with_opacity
from mediascope_plot.marks import Mark, Point, Scene, apply_transform, arc_point, polygon_rings
from mediascope_plot.raster.canvas import RGBA, blit, draw_hline, draw_vline, new_canvas
from mediascope_plot.raster.draw_text import draw_text
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme

LOGGER = logging.getLogger(__name__)

ARC_SEGMENTS_PER_RADIAN = 24


class RasterRenderer:
    """Rasterize a `Scene` into an RGBA frame (H x W x 4, uint8).

    Marks paint in scene order. Each mark is drawn with Pillow into a patch
    covering its bounding box and alpha-composited onto the frame, so
    overlapping translucent marks blend the way they do in a browser.
    """

    def __init__(self, theme: ChartTheme = DEFAULT_THEME) -> None:
        self.theme = theme

    def render(self, scene: Scene) -> np.ndarray:
        width = max(0, int(math.ceil(scene.width)))
        height = max(0, int(math.ceil(scene.height)))
        bg = scene.background or self.theme.background
        frame = new_canvas(width, height, parse_color(bg))
        if width == 0 or height == 0:
            return frame
        drawn = 0
        for mark in scene.marks:
            if _visible(mark.attrs):
                self._draw_mark(frame, mark)
                drawn += 1
        LOGGER.debug("rasterized %d/%d marks at %dx%d", drawn, len(scene.marks), width, height)
        return frame

    def to_image(self, scene: Scene) -> Image.Image:
        return Image.fromarray(self.render(scene), mode="RGBA")

    def save_png(self, scene: Scene, path: str | Path) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.to_image(scene).save(out, format="PNG")
        LOGGER.info("wrote %s", out)
        return out

    def _draw_mark(self, frame: np.ndarray, mark: Mark) -> None:
        a = mark.attrs
        transform = a.get("transform")
        k = float(transform[0]) if transform is not None else 1.0
        fill = _paint(a, "fill")
        stroke = _paint(a, "stroke")
        stroke_width = max(0.0, float(a.get("stroke_width", 1.0)) * k)

        match mark.kind:
            case "text":
                self._draw_text(frame, a, transform, k, fill)
            case "rect":
                x0, y0 = apply_transform(transform, float(a.get("x", 0.0)), float(a.get("y", 0.0)))
                w = float(a.get("width", 0.0)) * k
                h = float(a.get("height", 0.0)) * k
                if w <= 0 or h <= 0:
                    return
                radius = float(a.get("rx", 0.0)) * k
                if a.get("gradient") and fill is not None:
                    _gradient_rect(frame, x0, y0, w, h, a["gradient"], _opacity(a, "fill"), radius)
                elif fill is not None:
                    _shape(frame, (x0, y0, x0 + w, y0 + h), lambda d, o: d.rounded_rectangle(_shift_box(o, x0, y0, w, h), radius=radius, fill=fill))
                if stroke is not None and stroke_width > 0:
                    _shape(
                        frame,
                        (x0, y0, x0 + w, y0 + h),
                        lambda d, o: d.rounded_rectangle(_shift_box(o, x0, y0, w, h), radius=radius, outline=stroke, width=_px(stroke_width)),
                        pad=stroke_width,
                    )
            case "circle":
                cx, cy = apply_transform(transform, float(a.get("cx", 0.0)), float(a.get("cy", 0.0)))
                r = float(a.get("r", 0.0)) * k
                if r <= 0:
                    return
                box = (cx - r, cy - r, cx + r, cy + r)
                if fill is not None:
                    _shape(frame, box, lambda d, o: d.ellipse(_offset_box(box, o), fill=fill))
                if stroke is not None and stroke_width > 0:
                    _shape(frame, box, lambda d, o: d.ellipse(_offset_box(box, o), outline=stroke, width=_px(stroke_width)), pad=stroke_width)
            case "line":
                p = apply_transform(transform, float(a.get("x1", 0.0)), float(a.get("y1", 0.0)))
                q = apply_transform(transform, float(a.get("x2", 0.0)), float(a.get("y2", 0.0)))
                if stroke is not None and stroke_width > 0:
                    _polyline(frame, (p, q), stroke, stroke_width)
            case "polyline":
                pts = [apply_transform(transform, float(x), float(y)) for x, y in a.get("points", ())]
                if stroke is not None and stroke_width > 0 and len(pts) >= 2:
                    _polyline(frame, pts, stroke, stroke_width)
            case "polygon":
                rings = [[apply_transform(transform, float(x), float(y)) for x, y in ring] for ring in polygon_rings(a)]
                rings = [r for r in rings if len(r) >= 3]
                if not rings:
                    return
                if fill is not None:
                    _fill_rings(frame, rings, fill)
                if stroke is not None and stroke_width > 0:
                    for ring in rings:
                        _polyline(frame, [*ring, ring[0]], stroke, stroke_width)
            case "arc":
                ring = [apply_transform(transform, x, y) for x, y in arc_outline(a)]
                if len(ring) < 3:
                    return
                if fill is not None:
                    _fill_rings(frame, [ring], fill)
                if stroke is not None and stroke_width > 0:
                    _polyline(frame, [*ring, ring[0]], stroke, stroke_width)

    def _draw_text(
        self,
        frame: np.ndarray,
        a: Mapping[str, Any],
        transform: tuple[float, float, float] | None,
        k: float,
        fill: RGBA | None,
    ) -> None:
        if fill is None:
            return
        x, y = apply_transform(transform, float(a.get("x", 0.0)), float(a.get("y", 0.0)))
        size = float(a.get("font_size", self.theme.font_size_px)) * k
        if size < 1.0:
            return
        draw_text(
            frame,
            x,
            y,
            str(a.get("text", "")),
            fill,
            font_family=self.theme.font_family,
            font_size_px=size,
            anchor=str(a.get("anchor", "start")),
            baseline=str(a.get("baseline", "alphabetic")),
            bold=bool(a.get("bold", False)),
            rotate_deg=int(a.get("rotate", 0)),
        )


def arc_outline(a: Mapping[str, Any]) -> list[Point]:
    """Closed outline of an annular sector: outer edge forward, inner edge back."""

    cx = float(a.get("cx", 0.0))
    cy = float(a.get("cy", 0.0))
    r0 = max(0.0, float(a.get("inner_radius", 0.0)))
    r1 = max(0.0, float(a.get("outer_radius", 0.0)))
    start = float(a.get("start_angle", 0.0))
    end = float(a.get("end_angle", 0.0))
    sweep = min(end - start, 2.0 * math.pi)
    if sweep <= 0 or r1 <= r0:
        return []
    n = max(2, int(math.ceil(sweep * ARC_SEGMENTS_PER_RADIAN)))
    angles = [start + sweep * i / n for i in range(n + 1)]
    outer = [arc_point(cx, cy, r1, t) for t in angles]
    if r0 <= 0:
        return [(cx, cy), *outer]
    inner = [arc_point(cx, cy, r0, t) for t in reversed(angles)]
    return [*outer, *inner]


def _visible(a: Mapping[str, Any]) -> bool:
    opacity = a.get("opacity", 1.0)
    return opacity is None or float(opacity) > 0.0


def _opacity(a: Mapping[str, Any], channel: str) -> float:
    base = float(a.get("opacity", 1.0) if a.get("opacity") is not None else 1.0)
    part = a.get(f"{channel}_opacity")
    return base * (1.0 if part is None else float(part))


def _paint(a: Mapping[str, Any], channel: str) -> RGBA | None:
    color = a.get(channel)
    if color is None or color == "none":
        return None
    rgba = with_opacity(str(color), _opacity(a, channel))
    return None if rgba[3] == 0 else rgba


def _px(width: float) -> int:
    return max(1, int(round(width)))


def _bounds(box: tuple[float, float, float, float], pad: float) -> tuple[int, int, int, int]:
    x0, y0, x1, y1 = box
    return (
        int(math.floor(x0 - pad)) - 1,
        int(math.floor(y0 - pad)) - 1,
        int(math.ceil(x1 + pad)) + 1,
        int(math.ceil(y1 + pad)) + 1,
    )


def _shape(frame: np.ndarray, box: tuple[float, float, float, float], paint, *, pad: float = 0.0) -> None:
    """Run `paint(draw, origin)` on a transparent patch covering `box`, then composite it."""

    bx0, by0, bx1, by1 = _bounds(box, pad)
    bx0, by0 = max(bx0, -1), max(by0, -1)
    bx1, by1 = min(bx1, frame.shape[1] + 1), min(by1, frame.shape[0] + 1)
    if bx1 <= bx0 or by1 <= by0:
        return
    patch = Image.new("RGBA", (bx1 - bx0, by1 - by0), (0, 0, 0, 0))
    paint(ImageDraw.Draw(patch), (bx0, by0))
    blit(frame, np.asarray(patch, dtype=np.uint8), bx0, by0)


def _offset_box(box: tuple[float, float, float, float], origin: tuple[int, int]) -> tuple[float, float, float, float]:
    ox, oy = origin
    return (box[0] - ox, box[1] - oy, box[2] - ox, box[3] - oy)


def _shift_box(origin: tuple[int, int], x: float, y: float, w: float, h: float) -> tuple[float, float, float, float]:
    return _offset_box((x, y, max(x, x + w - 1.0), max(y, y + h - 1.0)), origin)


def _offset_points(points: Sequence[Point], origin: tuple[int, int]) -> list[Point]:
    ox, oy = origin
    return [(x - ox, y - oy) for x, y in points]


def _points_box(points: Sequence[Point]) -> tuple[float, float, float, float]:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def _polyline(frame: np.ndarray, points: Sequence[Point], color: RGBA, width: float) -> None:
    if len(points) == 2 and width <= 1.0:
        (x0, y0), (x1, y1) = points
        if round(y0) == round(y1):
            draw_hline(frame, int(round(x0)), int(round(x1)), int(round(y0)), color)
            return
        if round(x0) == round(x1):
            draw_vline(frame, int(round(x0)), int(round(y0)), int(round(y1)), color)
            return
    _shape(
        frame,
        _points_box(points),
        lambda d, o: d.line(_offset_points(points, o), fill=color, width=_px(width), joint="curve"),
        pad=width,
    )


def _fill_rings(frame: np.ndarray, rings: Sequence[Sequence[Point]], color: RGBA) -> None:
    """Fill rings with the even-odd rule by XOR-ing per-ring coverage masks."""

    box = _points_box([p for ring in rings for p in ring])
    bx0, by0, bx1, by1 = _bounds(box, 0.0)
    bx0, by0 = max(bx0, 0), max(by0, 0)
    bx1, by1 = min(bx1, frame.shape[1]), min(by1, frame.shape[0])
    if bx1 <= bx0 or by1 <= by0:
        return
    size = (bx1 - bx0, by1 - by0)
    coverage = np.zeros((size[1], size[0]), dtype=bool)
    for ring in rings:
        mask = Image.new("1", size, 0)
        ImageDraw.Draw(mask).polygon(_offset_points(ring, (bx0, by0)), fill=1)
        coverage ^= np.asarray(mask, dtype=bool)
    if not coverage.any():
        return
    patch = np.zeros((size[1], size[0], 4), dtype=np.uint8)
    patch[coverage] = np.asarray(color, dtype=np.uint8)
    blit(frame, patch, bx0, by0)


def _gradient_rect(
    frame: np.ndarray,
    x: float,
    y: float,
    w: float,
    h: float,
    stops: Sequence[str],
    opacity: float,
    radius: float,
) -> None:
    """Horizontal gradient through evenly spaced color stops, clipped to a rounded rect."""

    x0, y0 = int(round(x)), int(round(y))
    iw, ih = max(1, int(round(w))), max(1, int(round(h)))
    colors = np.asarray([parse_color(s) for s in stops], dtype=np.float32)
    if len(colors) == 1:
        colors = np.repeat(colors, 2, axis=0)
    pos = np.linspace(0.0, 1.0, len(colors))
    t = np.linspace(0.0, 1.0, iw)
    row = np.stack([np.interp(t, pos, colors[:, c]) for c in range(4)], axis=-1)
    patch = np.repeat(row[None, :, :], ih, axis=0)
    clip = Image.new("L", (iw, ih), 0)
    ImageDraw.Draw(clip).rounded_rectangle((0, 0, iw - 1, ih - 1), radius=radius, fill=255)
    patch[:, :, 3] *= (np.asarray(clip, dtype=np.float32) / 255.0) * min(1.0, max(0.0, opacity))
    blit(frame, np.clip(patch, 0, 255).astype(np.uint8), x0, y0)
