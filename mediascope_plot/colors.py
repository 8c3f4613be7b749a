from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import math
import re


RGBA = tuple[int, int, int, int]

NEUTRAL = "#cccccc"
DEFAULT_PALETTE = ("#3b82f6", "#8b5cf6", "#ec4899", "#f97316", "#14b8a6", "#f59e0b")
CATEGORY10 = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)
BAR_GRADIENT = ("#ec4899", "#f97316")

SOCIAL_MEDIA_COLORS: dict[str, str] = {
    "Instagram": "#dd4a6cff",
    "Twitter": "#38bdf8",
    "TikTok": "#24233bff",
    "YouTube": "#ee615aff",
    "Facebook": "#38bdf8",
    "LinkedIn": "#223485ff",
    "Snapchat": "#d99a41ff",
    "LINE": "#54c776ff",
    "KakaoTalk": "#d99a41ff",
    "VKontakte": "#38bdf8",
    "WhatsApp": "#54c776ff",
    "WeChat": "#54c776ff",
}

METRIC_COLOR_RAMPS: dict[str, tuple[str, str]] = {
    "Addicted_Score": ("#5eead4", "#c2410c"),
    "Avg_Daily_Usage_Hours": ("#bfdbfe", "#1e3a8a"),
    "Sleep_Hours_Per_Night": ("#7c3aed", "#67e8f9"),
    "Mental_Health_Score": ("#1e3a8a", "#fef08a"),
    "Count": ("#e9d5ff", "#581c87"),
}
DEFAULT_RAMP = ("#521db9", "#00e8a2")

_RGBA_FN = re.compile(
    r"^rgba?\(\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)\s*(?:,\s*(\d*\.?\d+)\s*)?\)$"
)


def parse_color(value: str) -> RGBA:
    """Parse `#RGB`, `#RRGGBB`, `#RRGGBBAA` or `rgb[a](...)` into 8-bit RGBA."""

    raw = value.strip()
    if raw.startswith("#"):
        h = raw[1:]
        if len(h) == 3:
            h = "".join(c * 2 for c in h)
        try:
            if len(h) == 6:
                return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), 255)
            if len(h) == 8:
                return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16))
        except ValueError:
            pass
        raise ValueError(f"invalid color: {value}")
    m = _RGBA_FN.match(raw)
    if m is None:
        raise ValueError(f"invalid color: {value}")
    r, g, b = (_clamp_byte(float(m.group(i))) for i in (1, 2, 3))
    a = 255 if m.group(4) is None else _clamp_byte(float(m.group(4)) * 255.0)
    return (r, g, b, a)


def is_color(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_color(value)
    except ValueError:
        return False
    return True


def to_hex(value: RGBA) -> str:
    if value[3] >= 255:
        return f"#{value[0]:02x}{value[1]:02x}{value[2]:02x}"
    return f"#{value[0]:02x}{value[1]:02x}{value[2]:02x}{value[3]:02x}"


def interpolate_color(start: str, end: str, t: float) -> str:
    a = parse_color(start)
    b = parse_color(end)
    t = 0.0 if math.isnan(t) else min(1.0, max(0.0, t))
    return to_hex(tuple(_clamp_byte(a[i] + (b[i] - a[i]) * t) for i in range(4)))  # type: ignore[arg-type]


def with_opacity(color: str, opacity: float) -> RGBA:
    r, g, b, a = parse_color(color)
    return (r, g, b, _clamp_byte(a * min(1.0, max(0.0, opacity))))


def _clamp_byte(v: float) -> int:
    return int(min(255, max(0, round(v))))


@dataclass(frozen=True)
class ColorStrategy:
    """How categorical keys become colors.

    Priority: `key_colors`, then `palette` by sorted index, then `lookup`
    (unknown keys take `fallback`), then the `gradient` endpoints by sorted index.
    """

    key_colors: Mapping[str, str] | None = None
    palette: Sequence[str] | None = None
    lookup: Mapping[str, str] | None = None
    fallback: str = NEUTRAL
    gradient: tuple[str, str] = BAR_GRADIENT

    def __post_init__(self) -> None:
        if self.palette is not None and len(self.palette) == 0:
            object.__setattr__(self, "palette", None)
        for color in (self.fallback, *self.gradient, *(self.palette or ())):
            if not is_color(color):
                raise ValueError(f"invalid color in strategy: {color!r}")


@dataclass(frozen=True)
class ColorMap:
    colors: Mapping[str, str] = field(default_factory=dict)
    fallback: str = NEUTRAL

    def __getitem__(self, key: object) -> str:
        return self.colors.get(str(key), self.fallback)

    def get(self, key: object) -> str:
        return self[key]

    def __contains__(self, key: object) -> bool:
        return str(key) in self.colors

    def __len__(self) -> int:
        return len(self.colors)


def resolve_color(
    keys: Iterable[object],
    strategy: ColorStrategy | None = None,
    *,
    domain: Iterable[object] | None = None,
) -> ColorMap:
    """Assign one color per distinct key; computed once and shared by legend and marks.

    Index-based colors are positioned within the sorted `domain` (plus any key
    outside it), so a key keeps its color while other keys come and go.
    """

    strategy = strategy or ColorStrategy()
    present = {str(k) for k in keys}
    ordered = sorted(present | {str(k) for k in (domain or ())})
    n = len(ordered)
    explicit = {str(k): v for k, v in (strategy.key_colors or {}).items()}
    out: dict[str, str] = {}
    for i, key in enumerate(ordered):
        if key not in present:
            continue
        if key in explicit:
            out[key] = explicit[key]
        elif strategy.palette is not None:
            out[key] = strategy.palette[i % len(strategy.palette)]
        elif strategy.lookup is not None:
            out[key] = strategy.lookup.get(key, strategy.fallback)
        else:
            t = 0.0 if n <= 1 else i / (n - 1)
            out[key] = interpolate_color(strategy.gradient[0], strategy.gradient[1], t)
    return ColorMap(colors=out, fallback=strategy.fallback)


def sequential_color_scale(
    domain: tuple[float, float],
    start: str,
    end: str,
) -> Callable[[float], str]:
    """Clamped RGB ramp over `domain`; a degenerate domain maps to `start`."""

    lo, hi = float(domain[0]), float(domain[1])
    parse_color(start)
    parse_color(end)

    def _scale(value: float) -> str:
        if hi == lo or math.isnan(float(value)):
            return interpolate_color(start, end, 0.0)
        return interpolate_color(start, end, (float(value) - lo) / (hi - lo))

    return _scale


def metric_ramp(metric: str) -> tuple[str, str]:
    return METRIC_COLOR_RAMPS.get(metric, DEFAULT_RAMP)
