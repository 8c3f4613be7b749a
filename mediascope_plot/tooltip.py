from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mediascope_plot.marks import Mark
from mediascope_plot.text import text_width
from mediascope_plot.theme import DEFAULT_THEME, ChartTheme


@dataclass(frozen=True)
class Tooltip:
    x: float
    y: float
    width: float
    height: float
    lines: tuple[str, ...]
    title: str | None = None
    owner: str | None = None


class TooltipManager:
    """Owns the single floating tooltip of one chart."""

    def __init__(
        self,
        theme: ChartTheme = DEFAULT_THEME,
        *,
        padding: float = 8.0,
        line_height: float = 18.0,
        title_height: float = 22.0,
        offset: tuple[float, float] = (10.0, -28.0),
    ) -> None:
        self.theme = theme
        self.padding = float(padding)
        self.line_height = float(line_height)
        self.title_height = float(title_height)
        self.offset = offset
        self._current: Tooltip | None = None

    @property
    def current(self) -> Tooltip | None:
        return self._current

    def show(
        self,
        anchor: tuple[float, float],
        lines: Sequence[str],
        bounds: tuple[float, float],
        *,
        title: str | None = None,
        min_width: float = 0.0,
        owner: str | None = None,
    ) -> Tooltip:
        """Replace any visible tooltip with one fitted to its text and clamped into `bounds`."""

        self.hide()
        text_lines = tuple(str(line) for line in lines)
        measured = [
            text_width(line, font_family=self.theme.font_family, font_size_px=self.theme.font_size_px)
            for line in (*text_lines, *((title,) if title else ()))
        ]
        box_w = max(float(min_width), max(measured, default=0) + 2.0 * self.padding)
        box_h = 2.0 * self.padding + len(text_lines) * self.line_height + (self.title_height if title else 0.0)
        bound_w, bound_h = float(bounds[0]), float(bounds[1])
        x = anchor[0] + self.offset[0]
        y = anchor[1] + self.offset[1]
        x = min(max(0.0, x), max(0.0, bound_w - box_w))
        y = min(max(0.0, y), max(0.0, bound_h - box_h))
        self._current = Tooltip(x=x, y=y, width=box_w, height=box_h, lines=text_lines, title=title, owner=owner)
        return self._current

    def hide(self) -> None:
        self._current = None

    def marks(self) -> tuple[Mark, ...]:
        tip = self._current
        if tip is None:
            return ()
        out = [
            Mark(
                key="tooltip",
                kind="rect",
                attrs={
                    "x": tip.x,
                    "y": tip.y,
                    "width": tip.width,
                    "height": tip.height,
                    "fill": self.theme.tooltip_fill,
                    "stroke": self.theme.tooltip_stroke,
                    "stroke_width": 1.0,
                    "rx": 8.0,
                    "opacity": 1.0,
                },
                interactive=False,
            )
        ]
        y = tip.y + self.padding
        if tip.title:
            out.append(self._text_mark("tooltip:title", tip.x + self.padding, y, tip.title, bold=True))
            y += self.title_height
        for i, line in enumerate(tip.lines):
            out.append(self._text_mark(f"tooltip:line:{i}", tip.x + self.padding, y, line))
            y += self.line_height
        return tuple(out)

    def _text_mark(self, key: str, x: float, y: float, text: str, *, bold: bool = False) -> Mark:
        return Mark(
            key=key,
            kind="text",
            attrs={
                "x": x,
                "y": y,
                "text": text,
                "fill": self.theme.tooltip_text,
                "font_size": self.theme.font_size_px,
                "anchor": "start",
                "baseline": "hanging",
                "bold": bold,
                "opacity": 1.0,
            },
            interactive=False,
        )


class HoverState:
    """Tracks the hovered key and reports start/end transitions on change."""

    def __init__(self) -> None:
        self.key: str | None = None

    def update(self, key: str | None) -> tuple[str | None, str | None]:
        """Return `(ended, started)`; both None when the hovered key is unchanged."""

        if key == self.key:
            return (None, None)
        ended, self.key = self.key, key
        return (ended, key)

    def clear(self) -> str | None:
        ended, self.key = self.key, None
        return ended
