from __future__ import annotations

from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from mediascope_plot.raster.canvas import RGBA
from mediascope_plot.text import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE_PX, load_font


def draw_text(
    dst: np.ndarray,
    x: float,
    y: float,
    text: str,
    color: RGBA,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size_px: float = DEFAULT_FONT_SIZE_PX,
    anchor: str = "start",
    baseline: str = "alphabetic",
    bold: bool = False,
    rotate_deg: int = 0,
) -> None:
    """Blend `text` into `dst`; (x, y) is the anchor point in unrotated text space."""

    if not text or color[3] == 0:
        return
    font = load_font(font_family=font_family, font_size_px=font_size_px)
    mask = _render_mask(text=text, font=font)
    if bold:
        mask = _embolden(mask, 2)
    h, w = mask.shape
    dx = {"start": 0.0, "middle": -w / 2.0, "end": -float(w)}.get(anchor, 0.0)
    dy = {"hanging": 0.0, "middle": -h / 2.0}.get(baseline, -float(h))
    ox, oy = _rotated_origin(x, y, dx, dy, w, h, _normalize_quarter_turns(rotate_deg))
    mask = _rotate_mask(mask, rotate_deg=rotate_deg)
    _blend_mask(dst, int(round(ox)), int(round(oy)), mask, color)


def _blend_mask(dst: np.ndarray, x: int, y: int, mask: np.ndarray, color: RGBA) -> None:
    h, w = mask.shape
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(dst.shape[1], x + w)
    y1 = min(dst.shape[0], y + h)
    if x1 <= x0 or y1 <= y0:
        return

    cov = mask[y0 - y : y1 - y, x0 - x : x1 - x].astype(np.float32) / 255.0
    src_alpha = (color[3] / 255.0) * cov
    if not np.any(src_alpha > 0):
        return
    patch = dst[y0:y1, x0:x1]
    src_rgb = np.asarray(color[:3], dtype=np.float32).reshape(1, 1, 3)
    dst_rgb = patch[:, :, :3].astype(np.float32)
    out_rgb = src_rgb * src_alpha[:, :, None] + dst_rgb * (1.0 - src_alpha[:, :, None])
    patch[:, :, :3] = np.clip(out_rgb, 0, 255).astype(np.uint8)
    patch[:, :, 3] = np.maximum(patch[:, :, 3], np.clip(src_alpha * 255.0, 0, 255).astype(np.uint8))


def _embolden(mask: np.ndarray, embolden_px: int) -> np.ndarray:
    out = mask.copy()
    for shift in range(1, embolden_px):
        src = mask[:, : max(0, mask.shape[1] - shift)]
        view = out[:, shift:]
        if src.size == 0 or view.size == 0:
            break
        np.maximum(view, src, out=view)
    return out


@lru_cache(maxsize=256)
def _render_mask(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> np.ndarray:
    left, top, right, bottom = font.getbbox(text)
    width = max(1, int(right - left))
    height = max(1, int(bottom - top))
    image = Image.new("L", (width, height), 0)
    ImageDraw.Draw(image).text((-left, -top), text, fill=255, font=font)
    return np.asarray(image, dtype=np.uint8)


def _normalize_quarter_turns(rotate_deg: int) -> int:
    if rotate_deg % 90 != 0:
        raise ValueError("rotate_deg must be a multiple of 90")
    return (rotate_deg // 90) % 4


def _rotate_mask(mask: np.ndarray, *, rotate_deg: int) -> np.ndarray:
    # Screen rotation is clockwise for positive degrees; np.rot90 turns counter-clockwise.
    turns = _normalize_quarter_turns(-rotate_deg)
    if turns == 0:
        return mask
    return np.rot90(mask, k=turns)


def _rotated_origin(x: float, y: float, dx: float, dy: float, w: int, h: int, turns: int) -> tuple[float, float]:
    # Top-left of the mask box after rotating the offset (dx, dy) about the anchor.
    if turns == 0:
        return (x + dx, y + dy)
    if turns == 1:
        return (x - dy - h, y + dx)
    if turns == 2:
        return (x - dx - w, y - dy - h)
    return (x + dy, y - dx - w)
