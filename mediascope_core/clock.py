from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass
class AnimationClock:
    """Frame cadence for stepping mark transitions, in milliseconds."""

    target_fps: int = 60
    _next_frame_at: float | None = None

    def __post_init__(self) -> None:
        if self.target_fps <= 0:
            raise ValueError("target_fps must be > 0")

    @property
    def frame_ms(self) -> float:
        return 1000.0 / float(self.target_fps)

    def should_present(self, now_ms: float) -> bool:
        if self._next_frame_at is None:
            self._next_frame_at = now_ms
        if now_ms < self._next_frame_at:
            return False
        dt = self.frame_ms
        while self._next_frame_at <= now_ms:
            self._next_frame_at += dt
        return True

    def frames(self, start_ms: float, until_ms: float) -> Iterator[float]:
        """Frame timestamps from `start_ms` up to and including `until_ms`."""

        if until_ms < start_ms:
            return
        dt = self.frame_ms
        t = start_ms
        while t < until_ms:
            yield t
            t += dt
        yield until_ms
