"""Geometry primitives used by layout and block placement."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(slots=True)
class Size:
    width: float
    height: float

    @classmethod
    def from_tuple(cls, value: Iterable[float]) -> "Size":
        width, height = value
        return cls(float(width), float(height))

    def scaled(self, factor: float) -> "Size":
        return Size(self.width * factor, self.height * factor)


@dataclass(slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Ensure non-negative dimensions."""
        if self.width < 0:
            self.x += self.width
            self.width = abs(self.width)
        if self.height < 0:
            self.y += self.height
            self.height = abs(self.height)

    @classmethod
    def from_box(cls, box: Sequence[float]) -> "Rect":
        """Build from a PDF rectangle ``[x0 y0 x1 y1]`` in any corner order."""
        x0, y0, x1, y1 = (float(v) for v in box)
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def to_box(self) -> list:
        return [self.left, self.bottom, self.right, self.top]

    def union(self, other: "Rect") -> "Rect":
        left = min(self.left, other.left)
        bottom = min(self.bottom, other.bottom)
        right = max(self.right, other.right)
        top = max(self.top, other.top)
        return Rect(left, bottom, right - left, top - bottom)

    def intersects(self, other: "Rect") -> bool:
        return not (
            other.left >= self.right
            or other.right <= self.left
            or other.bottom >= self.top
            or other.top <= self.bottom
        )
