"""Layout engine: placement transforms for selected source pages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..exceptions import LayoutArityError
from ..geometry import Rect
from ..transform import Transform, compose
from .options import EmbedOptions

logger = logging.getLogger(__name__)


@dataclass
class PagePlacement:
    """Where one source page lands on the target page.

    Attributes:
        index: Position of the page within the selection
        width: Unscaled page width
        height: Unscaled page height
        scale: Effective horizontal scale (the uniform scale when equal to ``scale_y``)
        offset: Strategy offset (see :class:`LayoutStrategy`)
        transform: Full page-space to target-space transform
        scale_y: Effective vertical scale, None when uniform
    """

    index: int
    width: float
    height: float
    scale: float
    offset: Tuple[float, float]
    transform: Transform
    scale_y: Optional[float] = None

    @property
    def scale_xy(self) -> Tuple[float, float]:
        return (self.scale, self.scale if self.scale_y is None else self.scale_y)

    @property
    def bounds(self) -> Rect:
        return self.transform.apply_rect(Rect(0.0, 0.0, self.width, self.height))


@dataclass
class LayoutResult:
    placements: List[PagePlacement]
    width: float
    height: float

    @property
    def size(self) -> Tuple[float, float]:
        return (self.width, self.height)


class LayoutEngine:
    """Computes page placements for an :class:`EmbedOptions` layout."""

    def compute(self, page_sizes: Sequence[Tuple[float, float]], options: EmbedOptions) -> LayoutResult:
        """Place pages of the given ``(width, height)`` sizes.

        Raises:
            LayoutArityError: If the strategy cannot place this many pages
        """
        strategy = options.layout
        strategy.check_arity(len(page_sizes))
        if not page_sizes:
            raise LayoutArityError(strategy.name, 1, 0)

        scales = [
            options.effective_scale_xy(width, height, strategy.page_scale(index))
            for index, (width, height) in enumerate(page_sizes)
        ]
        scaled = [(width * sx, height * sy) for (width, height), (sx, sy) in zip(page_sizes, scales)]
        offsets = strategy.offsets(scaled)

        placements = []
        for index, ((width, height), (scale_x, scale_y), (dx, dy)) in enumerate(zip(page_sizes, scales, offsets)):
            if strategy.anchors_top_left:
                # Offsets move the top-left corner; the page hangs below it
                tx, ty = dx, dy - scaled[index][1]
            else:
                tx, ty = dx, dy
            transform = Transform.full(tx, ty, scale_x, scale_y, options.rotation)
            placements.append(PagePlacement(
                index, width, height, scale_x, (dx, dy), transform,
                None if scale_y == scale_x else scale_y,
            ))

        bounds = placements[0].bounds
        for placement in placements[1:]:
            bounds = bounds.union(placement.bounds)

        if strategy.normalizes:
            shift = Transform.translate(-bounds.left, -bounds.bottom)
            for placement in placements:
                placement.transform = compose(placement.transform, shift)
            width, height = bounds.width, bounds.height
        else:
            width, height = max(bounds.right, 0.0), max(bounds.top, 0.0)

        logger.debug(f"{strategy.name} layout of {len(placements)} page(s) needs {width:.2f} x {height:.2f}")
        return LayoutResult(placements, width, height)
