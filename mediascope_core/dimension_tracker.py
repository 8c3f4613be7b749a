from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("dimensions must be >= 0")


class DimensionTracker:
    """Turns raw size notifications into at most one emission per flush.

    The first observation always emits immediately (first paint). Later
    observations are held until `flush()`, which emits the latest size only if
    it differs from the last emitted one.
    """

    def __init__(self, on_change: Callable[[Dimensions], None] | None = None) -> None:
        self._on_change = on_change
        self._emitted: Dimensions | None = None
        self._pending: Dimensions | None = None

    @property
    def current(self) -> Dimensions | None:
        return self._emitted

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending != self._emitted

    def observe(self, width: float, height: float) -> Dimensions | None:
        dims = Dimensions(float(width), float(height))
        if self._emitted is None:
            self._pending = None
            return self._emit(dims)
        self._pending = dims
        return None

    def flush(self) -> Dimensions | None:
        dims, self._pending = self._pending, None
        if dims is None or dims == self._emitted:
            return None
        return self._emit(dims)

    def _emit(self, dims: Dimensions) -> Dimensions:
        self._emitted = dims
        if self._on_change is not None:
            self._on_change(dims)
        return dims
