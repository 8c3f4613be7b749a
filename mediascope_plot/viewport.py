from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Margin:
    top: float = 20.0
    right: float = 20.0
    bottom: float = 60.0
    left: float = 60.0

    def __post_init__(self) -> None:
        if min(self.top, self.right, self.bottom, self.left) < 0:
            raise ValueError("margins must be >= 0")


@dataclass(frozen=True)
class ViewportGeometry:
    """Allocated drawing-surface size plus the plot-area margins."""

    width: float
    height: float
    margin: Margin = field(default_factory=Margin)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("viewport width/height must be >= 0")

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def inner_width(self) -> float:
        return max(0.0, self.width - self.margin.left - self.margin.right)

    @property
    def inner_height(self) -> float:
        return max(0.0, self.height - self.margin.top - self.margin.bottom)

    @property
    def drawable(self) -> bool:
        return not self.is_empty and self.inner_width > 0 and self.inner_height > 0

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    def with_size(self, width: float, height: float) -> "ViewportGeometry":
        return ViewportGeometry(width=float(width), height=float(height), margin=self.margin)

    def with_margin(self, margin: Margin) -> "ViewportGeometry":
        return ViewportGeometry(width=self.width, height=self.height, margin=margin)
