"""Multi-page layout strategies."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..exceptions import LayoutArityError, LayoutError


class GridFillOrder(Enum):
    ROW_FIRST = "row_first"
    COLUMN_FIRST = "column_first"


class LayoutStrategy:
    """Base class for placement strategies.

    ``offsets`` receives the scaled ``(width, height)`` of every selected page
    and returns one offset per page. The meaning of the offset is defined by
    each strategy; see :meth:`anchors_top_left`.
    """

    name = "layout"

    def check_arity(self, page_count: int) -> None:
        if page_count < 1:
            raise LayoutArityError(self.name, 1, page_count)

    def offsets(self, sizes: Sequence[Tuple[float, float]]) -> List[Tuple[float, float]]:
        raise NotImplementedError

    def page_scale(self, index: int) -> Optional[Tuple[float, float]]:
        """Per-page ``(sx, sy)`` overriding the options' scale, or None."""
        return None

    @property
    def anchors_top_left(self) -> bool:
        """True when offsets place page top-left corners relative to page 0."""
        return True

    @property
    def normalizes(self) -> bool:
        """True when the placed group is shifted to start at the origin."""
        return True


@dataclass(frozen=True)
class SinglePage(LayoutStrategy):
    """One page with its origin at ``(x, y)``."""

    x: float = 0.0
    y: float = 0.0

    name = "SinglePage"

    def check_arity(self, page_count: int) -> None:
        if page_count != 1:
            raise LayoutArityError(self.name, 1, page_count)

    def offsets(self, sizes):
        self.check_arity(len(sizes))
        return [(self.x, self.y)]

    @property
    def anchors_top_left(self) -> bool:
        return False

    @property
    def normalizes(self) -> bool:
        return False


@dataclass(frozen=True)
class Vertical(LayoutStrategy):
    """Pages stacked top to bottom, ``gap`` points apart."""

    gap: float = 0.0

    name = "Vertical"

    def __post_init__(self):
        if self.gap < 0:
            raise LayoutError("Vertical gap must be >= 0", str(self.gap))

    def offsets(self, sizes):
        offsets = []
        consumed = 0.0
        for index, (_, height) in enumerate(sizes):
            offsets.append((0.0, -(consumed + index * self.gap)))
            consumed += height
        return offsets


@dataclass(frozen=True)
class Horizontal(LayoutStrategy):
    """Pages side by side, left to right, ``gap`` points apart."""

    gap: float = 0.0

    name = "Horizontal"

    def __post_init__(self):
        if self.gap < 0:
            raise LayoutError("Horizontal gap must be >= 0", str(self.gap))

    def offsets(self, sizes):
        offsets = []
        consumed = 0.0
        for index, (width, _) in enumerate(sizes):
            offsets.append((consumed + index * self.gap, 0.0))
            consumed += width
        return offsets


@dataclass(frozen=True)
class Grid(LayoutStrategy):
    """Uniform cells sized to the largest page plus ``spacing``.

    ``gap_x`` and ``gap_y`` override ``spacing`` for one axis.
    """

    columns: int = 2
    spacing: float = 0.0
    fill_order: GridFillOrder = GridFillOrder.ROW_FIRST
    gap_x: Optional[float] = None
    gap_y: Optional[float] = None

    name = "Grid"

    def __post_init__(self):
        if self.columns < 1:
            raise LayoutError("Grid needs at least one column", str(self.columns))
        for label, value in (("spacing", self.spacing), ("gap_x", self.gap_x), ("gap_y", self.gap_y)):
            if value is not None and value < 0:
                raise LayoutError(f"Grid {label} must be >= 0", str(value))

    @property
    def gaps(self) -> Tuple[float, float]:
        gap_x = self.spacing if self.gap_x is None else self.gap_x
        gap_y = self.spacing if self.gap_y is None else self.gap_y
        return gap_x, gap_y

    def cell_size(self, sizes: Sequence[Tuple[float, float]]) -> Tuple[float, float]:
        gap_x, gap_y = self.gaps
        cell_width = max(width for width, _ in sizes) + gap_x
        cell_height = max(height for _, height in sizes) + gap_y
        return cell_width, cell_height

    def position(self, index: int, count: int) -> Tuple[int, int]:
        """``(row, column)`` of the page at ``index``."""
        if self.fill_order is GridFillOrder.COLUMN_FIRST:
            rows = math.ceil(count / self.columns)
            return index % rows, index // rows
        return index // self.columns, index % self.columns

    def offsets(self, sizes):
        if not sizes:
            return []
        cell_width, cell_height = self.cell_size(sizes)
        offsets = []
        for index in range(len(sizes)):
            row, column = self.position(index, len(sizes))
            offsets.append((column * cell_width, -row * cell_height))
        return offsets


PositionFunction = Callable[[int, float, float], Tuple[float, float]]
ScaleFunction = Callable[[int], Tuple[float, float]]


@dataclass(frozen=True)
class Custom(LayoutStrategy):
    """Caller-supplied placement.

    ``position_fn(index, width, height)`` receives the page's scaled size
    and returns where its origin goes on the target page. The optional
    ``scale_fn(index)`` returns ``(sx, sy)`` for a page, replacing the
    options' scale; size limits still apply on top of it.
    """

    position_fn: PositionFunction
    scale_fn: Optional[ScaleFunction] = None

    name = "Custom"

    def offsets(self, sizes):
        return [tuple(self.position_fn(index, width, height)) for index, (width, height) in enumerate(sizes)]

    def page_scale(self, index: int) -> Optional[Tuple[float, float]]:
        if self.scale_fn is None:
            return None
        scale_x, scale_y = self.scale_fn(index)
        if not (scale_x > 0 and scale_y > 0):
            raise LayoutError("Custom layout scale must be > 0", f"page {index}: ({scale_x}, {scale_y})")
        return scale_x, scale_y

    @property
    def anchors_top_left(self) -> bool:
        return False

    @property
    def normalizes(self) -> bool:
        return False
