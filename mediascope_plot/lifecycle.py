from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
import logging
from typing import Any

from mediascope_plot.colors import interpolate_color, is_color
from mediascope_plot.errors import PlotDataError
from mediascope_plot.marks import Mark


LOGGER = logging.getLogger(__name__)

ENTER_DURATION_MS = 500.0
EXIT_DURATION_MS = 300.0
HOVER_DURATION_MS = 200.0

AttrsFn = Callable[[Mark], Mapping[str, Any]]


def ease_cubic_in_out(t: float) -> float:
    t = min(1.0, max(0.0, t))
    if t < 0.5:
        return 4.0 * t * t * t
    u = 2.0 * t - 2.0
    return 0.5 * u * u * u + 1.0


def interpolate_value(a: Any, b: Any, t: float) -> Any:
    if t >= 1.0:
        return b
    if isinstance(a, bool) or isinstance(b, bool):
        return a if t < 1.0 else b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return float(a) + (float(b) - float(a)) * t
    if isinstance(a, str) and isinstance(b, str):
        if a == b:
            return b
        if is_color(a) and is_color(b):
            return interpolate_color(a, b, t)
        return a
    if isinstance(a, (tuple, list)) and isinstance(b, (tuple, list)) and len(a) == len(b):
        return tuple(interpolate_value(x, y, t) for x, y in zip(a, b, strict=True))
    return a


def interpolate_attrs(start: Mapping[str, Any], end: Mapping[str, Any], t: float) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, target in end.items():
        out[key] = interpolate_value(start[key], target, t) if key in start else target
    return out


@dataclass(frozen=True)
class Transition:
    start_attrs: Mapping[str, Any]
    end_attrs: Mapping[str, Any]
    start_ms: float
    duration_ms: float
    blocks_interaction: bool = True

    def progress(self, now: float) -> float:
        if self.duration_ms <= 0:
            return 1.0
        return min(1.0, max(0.0, (now - self.start_ms) / self.duration_ms))

    def attrs_at(self, now: float) -> dict[str, Any]:
        return interpolate_attrs(self.start_attrs, self.end_attrs, ease_cubic_in_out(self.progress(now)))

    def done(self, now: float) -> bool:
        return self.progress(now) >= 1.0


@dataclass(frozen=True)
class JoinResult:
    enter: tuple[str, ...] = ()
    update: tuple[str, ...] = ()
    exit: tuple[str, ...] = ()


class _Entry:
    __slots__ = ("target", "attrs", "transition", "exiting", "emphasis")

    def __init__(self, target: Mark, attrs: Mapping[str, Any]) -> None:
        self.target = target
        self.attrs: dict[str, Any] = dict(attrs)
        self.transition: Transition | None = None
        self.exiting = False
        self.emphasis: dict[str, Any] = {}

    def attrs_at(self, now: float) -> dict[str, Any]:
        if self.transition is None:
            return dict(self.attrs)
        return self.transition.attrs_at(now)

    def final_attrs(self) -> dict[str, Any]:
        out = dict(self.target.attrs)
        out.update(self.emphasis)
        return out


def _fade_in(mark: Mark) -> dict[str, Any]:
    return {**mark.attrs, "opacity": 0.0}


def _fade_out(mark: Mark) -> dict[str, Any]:
    return {"opacity": 0.0}


class MarkLayer:
    """Keyed set of marks diffed against each new target list."""

    def __init__(
        self,
        name: str = "",
        *,
        duration_ms: float = ENTER_DURATION_MS,
        exit_duration_ms: float = EXIT_DURATION_MS,
    ) -> None:
        self.name = name
        self.duration_ms = float(duration_ms)
        self.exit_duration_ms = float(exit_duration_ms)
        self._entries: dict[str, _Entry] = {}
        self._now = 0.0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def join(
        self,
        targets: Iterable[Mark],
        now: float,
        *,
        enter: AttrsFn | None = None,
        exit: AttrsFn | None = None,
        duration_ms: float | None = None,
        exit_duration_ms: float | None = None,
    ) -> JoinResult:
        """Diff `targets` against the live marks by key and start transitions."""

        enter_fn = enter or _fade_in
        exit_fn = exit or _fade_out
        duration = self.duration_ms if duration_ms is None else float(duration_ms)
        exit_duration = self.exit_duration_ms if exit_duration_ms is None else float(exit_duration_ms)
        self._now = max(self._now, now)

        target_list = list(targets)
        seen: set[str] = set()
        for mark in target_list:
            if mark.key in seen:
                raise PlotDataError(f"duplicate mark key in layer {self.name!r}: {mark.key}")
            seen.add(mark.key)

        entered: list[str] = []
        updated: list[str] = []
        exited: list[str] = []
        rebuilt: dict[str, _Entry] = {}

        for mark in target_list:
            entry = self._entries.get(mark.key)
            if entry is None:
                start = {**mark.attrs, **enter_fn(mark)}
                entry = _Entry(mark, start)
                entry.transition = self._transition(start, mark.attrs, now, duration)
                if entry.transition is None:
                    entry.attrs = dict(mark.attrs)
                entered.append(mark.key)
            elif entry.exiting:
                current = entry.attrs_at(now)
                entry.target = mark
                entry.exiting = False
                entry.emphasis = {}
                entry.attrs = current
                entry.transition = self._transition(current, mark.attrs, now, duration)
                if entry.transition is None:
                    entry.attrs = dict(mark.attrs)
                entered.append(mark.key)
            else:
                unchanged = entry.target.attrs == mark.attrs
                entry.target = mark
                if not unchanged:
                    current = entry.attrs_at(now)
                    entry.attrs = current
                    entry.transition = self._transition(current, entry.final_attrs(), now, duration)
                    if entry.transition is None:
                        entry.attrs = entry.final_attrs()
                updated.append(mark.key)
            rebuilt[mark.key] = entry

        for key, entry in self._entries.items():
            if key in rebuilt:
                continue
            if not entry.exiting:
                current = entry.attrs_at(now)
                collapsed = {**current, **exit_fn(entry.target)}
                entry.exiting = True
                entry.attrs = current
                entry.transition = self._transition(current, collapsed, now, exit_duration)
                exited.append(key)
                if entry.transition is None:
                    continue
            rebuilt[key] = entry

        self._entries = rebuilt
        self.advance(now)
        LOGGER.debug(
            "layer %s join: enter=%d update=%d exit=%d",
            self.name or "<anon>",
            len(entered),
            len(updated),
            len(exited),
        )
        return JoinResult(enter=tuple(entered), update=tuple(updated), exit=tuple(exited))

    def emphasize(
        self,
        key: str,
        overrides: Mapping[str, Any] | None,
        now: float,
        *,
        duration_ms: float = HOVER_DURATION_MS,
    ) -> bool:
        """Animate a live mark toward its target plus `overrides` (None reverts)."""

        entry = self._entries.get(key)
        if entry is None or entry.exiting:
            return False
        entry.emphasis = dict(overrides or {})
        current = entry.attrs_at(now)
        blocks = entry.transition is not None and entry.transition.blocks_interaction
        entry.attrs = current
        entry.transition = self._transition(current, entry.final_attrs(), now, duration_ms, blocks_interaction=blocks)
        if entry.transition is None:
            entry.attrs = entry.final_attrs()
        self._now = max(self._now, now)
        return True

    def advance(self, now: float) -> tuple[Mark, ...]:
        self._now = max(self._now, now)
        for key in list(self._entries):
            entry = self._entries[key]
            if entry.transition is None or not entry.transition.done(now):
                continue
            entry.attrs = dict(entry.transition.end_attrs)
            entry.transition = None
            if entry.exiting:
                del self._entries[key]
        return self.marks(now)

    @property
    def settled(self) -> bool:
        return all(e.transition is None for e in self._entries.values())

    def marks(self, now: float | None = None) -> tuple[Mark, ...]:
        at = self._now if now is None else now
        out: list[Mark] = []
        for entry in self._entries.values():
            busy = entry.exiting or (entry.transition is not None and entry.transition.blocks_interaction)
            out.append(
                replace(
                    entry.target,
                    attrs=entry.attrs_at(at),
                    interactive=entry.target.interactive and not busy,
                )
            )
        return tuple(out)

    def get(self, key: str, now: float | None = None) -> Mark | None:
        return next((m for m in self.marks(now) if m.key == key), None)

    def hit_test(self, x: float, y: float, now: float | None = None) -> Mark | None:
        for mark in reversed(self.marks(now)):
            if mark.interactive and mark.contains(x, y):
                return mark
        return None

    def clear(self) -> None:
        self._entries.clear()

    @staticmethod
    def _transition(
        start: Mapping[str, Any],
        end: Mapping[str, Any],
        now: float,
        duration: float,
        *,
        blocks_interaction: bool = True,
    ) -> Transition | None:
        if duration <= 0 or dict(start) == dict(end):
            return None
        return Transition(
            start_attrs=dict(start),
            end_attrs=dict(end),
            start_ms=float(now),
            duration_ms=float(duration),
            blocks_interaction=blocks_interaction,
        )
