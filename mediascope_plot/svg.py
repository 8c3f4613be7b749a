from __future__ import annotations

from collections.abc import Mapping
from html import escape as html_escape
from pathlib import Path
from typing import Any

from mediascope_plot.marks import Mark, Scene, polygon_rings
from mediascope_plot.raster.renderer import arc_outline
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme


_ANCHORS = {"start": "start", "middle": "middle", "end": "end"}
_BASELINES = {"hanging": "hanging", "middle": "middle", "alphabetic": "alphabetic"}


def to_svg(scene: Scene, theme: ChartTheme = DEFAULT_THEME) -> str:
    """Serialize a scene as a standalone SVG document."""

    defs: list[str] = []
    body: list[str] = []
    for mark in scene.marks:
        a = mark.attrs
        if a.get("opacity") is not None and float(a["opacity"]) <= 0:
            continue
        if a.get("gradient"):
            gid = f"grad{len(defs)}"
            defs.append(_gradient_def(gid, a["gradient"]))
            body.append(_element(mark, theme, fill_ref=f"url(#{gid})"))
        else:
            body.append(_element(mark, theme))
    w, h = _num(scene.width), _num(scene.height)
    bg = html_escape(scene.background or theme.background)
    head = (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" viewBox="0 0 {w} {h}" '
        f'font-family="{html_escape(theme.font_family)}">'
    )
    parts = [head, f'<rect width="{w}" height="{h}" fill="{bg}"/>']
    if defs:
        parts.append("<defs>" + "".join(defs) + "</defs>")
    parts.extend(p for p in body if p)
    parts.append("</svg>")
    return "\n".join(parts)


def save_svg(scene: Scene, path: str | Path, theme: ChartTheme = DEFAULT_THEME) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(to_svg(scene, theme), encoding="utf-8")
    return out


def _element(mark: Mark, theme: ChartTheme, *, fill_ref: str | None = None) -> str:
    a = mark.attrs
    style = _paint_attrs(a, fill_ref)
    t = a.get("transform")
    if t is not None:
        style += f' transform="translate({_num(t[1])},{_num(t[2])}) scale({_num(t[0])})"'
    key = f' data-key="{html_escape(mark.key)}"'
    match mark.kind:
        case "rect":
            rx = f' rx="{_num(a["rx"])}"' if a.get("rx") else ""
            return (
                f'<rect{key} x="{_num(a.get("x", 0))}" y="{_num(a.get("y", 0))}" '
                f'width="{_num(max(0.0, float(a.get("width", 0))))}" height="{_num(max(0.0, float(a.get("height", 0))))}"{rx}{style}/>'
            )
        case "circle":
            return f'<circle{key} cx="{_num(a.get("cx", 0))}" cy="{_num(a.get("cy", 0))}" r="{_num(max(0.0, float(a.get("r", 0))))}"{style}/>'
        case "line":
            return (
                f'<line{key} x1="{_num(a.get("x1", 0))}" y1="{_num(a.get("y1", 0))}" '
                f'x2="{_num(a.get("x2", 0))}" y2="{_num(a.get("y2", 0))}"{style}/>'
            )
        case "polyline":
            return f'<polyline{key} points="{_points(a.get("points", ()))}" fill="none"{style}/>'
        case "polygon":
            d = " ".join(f"M{_points(ring, sep=' L')}Z" for ring in polygon_rings(a) if len(ring) >= 3)
            return f'<path{key} d="{d}" fill-rule="evenodd"{style}/>' if d else ""
        case "arc":
            ring = arc_outline(a)
            if len(ring) < 3:
                return ""
            return f'<path{key} d="M{_points(ring, sep=" L")}Z"{style}/>'
        case "text":
            x, y = _num(a.get("x", 0)), _num(a.get("y", 0))
            extra = f' text-anchor="{_ANCHORS.get(a.get("anchor"), "start")}"'
            extra += f' dominant-baseline="{_BASELINES.get(a.get("baseline"), "alphabetic")}"'
            extra += f' font-size="{_num(a.get("font_size", theme.font_size_px))}"'
            if a.get("bold"):
                extra += ' font-weight="bold"'
            if a.get("rotate"):
                extra += f' transform="rotate({_num(a["rotate"])},{x},{y})"'
            return f'<text{key} x="{x}" y="{y}"{extra}{style}>{html_escape(str(a.get("text", "")))}</text>'
    return ""


def _paint_attrs(a: Mapping[str, Any], fill_ref: str | None) -> str:
    out = ""
    fill = fill_ref or a.get("fill")
    out += f' fill="{html_escape(str(fill)) if fill is not None else "none"}"'
    stroke = a.get("stroke")
    if stroke is not None:
        out += f' stroke="{html_escape(str(stroke))}" stroke-width="{_num(a.get("stroke_width", 1.0))}"'
    for name, attr in (("opacity", "opacity"), ("fill_opacity", "fill-opacity"), ("stroke_opacity", "stroke-opacity")):
        if a.get(name) is not None and float(a[name]) < 1.0:
            out += f' {attr}="{_num(a[name])}"'
    return out


def _gradient_def(gid: str, stops: tuple[str, ...]) -> str:
    n = max(1, len(stops) - 1)
    inner = "".join(f'<stop offset="{_num(100.0 * i / n)}%" stop-color="{html_escape(c)}"/>' for i, c in enumerate(stops))
    return f'<linearGradient id="{gid}" x1="0%" x2="100%" y1="0%" y2="0%">{inner}</linearGradient>'


def _points(points, *, sep: str = " ") -> str:
    return sep.join(f"{_num(x)},{_num(y)}" for x, y in points)


def _num(v: Any) -> str:
    text = f"{float(v):.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text
