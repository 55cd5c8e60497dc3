"""Options for placing source pages on a target page."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from ..exceptions import InvalidScaleError, LayoutError
from .strategies import Grid, LayoutStrategy, SinglePage


@dataclass(frozen=True)
class PageRange:
    """Selection of 0-based source page indexes.

    Use the constructors :meth:`single`, :meth:`span`, :meth:`pages` and
    :meth:`all` rather than building instances directly.
    """

    indexes: Optional[Tuple[int, ...]] = None
    start: Optional[int] = None
    end: Optional[int] = None

    @classmethod
    def single(cls, index: int) -> "PageRange":
        return cls(indexes=(index,))

    @classmethod
    def span(cls, start: int, end: int) -> "PageRange":
        """Pages ``start`` through ``end``, both inclusive."""
        if end < start:
            raise LayoutError("Page range end precedes start", f"{start}..{end}")
        return cls(start=start, end=end)

    @classmethod
    def pages(cls, indexes: Sequence[int]) -> "PageRange":
        return cls(indexes=tuple(indexes))

    @classmethod
    def all(cls) -> "PageRange":
        return cls()

    def resolve(self, page_count: int) -> List[int]:
        if self.indexes is not None:
            selected = list(self.indexes)
        elif self.start is not None:
            selected = list(range(self.start, self.end + 1))
        else:
            selected = list(range(page_count))
        for index in selected:
            if not 0 <= index < page_count:
                raise LayoutError("Page index out of range", f"{index} (document has {page_count} pages)")
        return selected


@dataclass(frozen=True)
class EmbedOptions:
    """How source pages are laid out and drawn.

    Attributes:
        layout: Placement strategy
        scale: Scale applied to every page (> 0); the horizontal scale
            when ``scale_y`` is set
        scale_y: Optional vertical scale (> 0); None means uniform
        preserve_aspect_ratio: When a size limit applies, use the limited
            axis scale for both axes
        rotation: Counter-clockwise rotation in degrees, about each page origin
        opacity: Constant alpha for the embedded content (0..1)
        page_range: Selected source pages, all pages when None
        max_width: Optional upper bound for each page's scaled width
        max_height: Optional upper bound for each page's scaled height
        clip_bounds: Optional ``(x, y, width, height)`` clip in target space
    """

    layout: LayoutStrategy = field(default_factory=SinglePage)
    scale: float = 1.0
    scale_y: Optional[float] = None
    preserve_aspect_ratio: bool = True
    rotation: float = 0.0
    opacity: float = 1.0
    page_range: Optional[PageRange] = None
    max_width: Optional[float] = None
    max_height: Optional[float] = None
    clip_bounds: Optional[Tuple[float, float, float, float]] = None

    def __post_init__(self):
        if not self.scale > 0:
            raise InvalidScaleError(self.scale)
        for field_name in ("scale_y", "max_width", "max_height"):
            value = getattr(self, field_name)
            if value is not None and not value > 0:
                raise InvalidScaleError(value, field_name)
        if math.isnan(self.opacity):
            raise LayoutError("Opacity must be a number")
        object.__setattr__(self, "opacity", min(1.0, max(0.0, float(self.opacity))))

    def with_layout(self, layout: LayoutStrategy) -> "EmbedOptions":
        return replace(self, layout=layout)

    def with_scale(self, scale: float) -> "EmbedOptions":
        return replace(self, scale=scale, scale_y=None)

    def with_scale_xy(self, scale_x: float, scale_y: float) -> "EmbedOptions":
        return replace(self, scale=scale_x, scale_y=scale_y)

    def with_preserve_aspect_ratio(self, preserve: bool) -> "EmbedOptions":
        return replace(self, preserve_aspect_ratio=preserve)

    def with_rotation(self, degrees: float) -> "EmbedOptions":
        return replace(self, rotation=degrees)

    def with_opacity(self, opacity: float) -> "EmbedOptions":
        return replace(self, opacity=opacity)

    def with_page_range(self, page_range: PageRange) -> "EmbedOptions":
        return replace(self, page_range=page_range)

    def with_max_size(self, max_width: Optional[float], max_height: Optional[float]) -> "EmbedOptions":
        return replace(self, max_width=max_width, max_height=max_height)

    def with_clip(self, x: float, y: float, width: float, height: float) -> "EmbedOptions":
        return replace(self, clip_bounds=(x, y, width, height))

    def select_pages(self, page_count: int) -> List[int]:
        return (self.page_range or PageRange.all()).resolve(page_count)

    @property
    def scale_xy(self) -> Tuple[float, float]:
        return (self.scale, self.scale if self.scale_y is None else self.scale_y)

    def effective_scale_xy(
        self,
        width: float,
        height: float,
        base: Optional[Tuple[float, float]] = None,
    ) -> Tuple[float, float]:
        """Per-axis scale for one page after applying the size limits.

        Each limit clamps its own axis. With ``preserve_aspect_ratio`` the
        clamped axis scale is copied to the other axis, so a page that has
        both limits ends up with the smaller of the two. ``base`` replaces
        the option's own scale (used by per-page layout scales).
        """
        scale_x, scale_y = base if base is not None else self.scale_xy
        if self.max_width is not None and width > 0:
            scale_x = min(scale_x, self.max_width / width)
            if self.preserve_aspect_ratio:
                scale_y = scale_x
        if self.max_height is not None and height > 0:
            scale_y = min(scale_y, self.max_height / height)
            if self.preserve_aspect_ratio:
                scale_x = scale_y
        return scale_x, scale_y

    def effective_scale(self, width: float, height: float) -> float:
        """Uniform scale for one page after applying the size limits."""
        return min(self.effective_scale_xy(width, height))


def watermark_options(opacity: float = 0.3, scale: float = 0.5) -> EmbedOptions:
    """First page, rotated 45 degrees and translucent, at (100, 100)."""
    return EmbedOptions(
        layout=SinglePage(100.0, 100.0),
        scale=scale,
        rotation=45.0,
        opacity=opacity,
        page_range=PageRange.single(0),
    )


def thumbnail_options(max_width: float, max_height: float, columns: int = 4, spacing: float = 10.0) -> EmbedOptions:
    """All pages in a grid, each fitted inside ``max_width`` x ``max_height``."""
    return EmbedOptions(
        layout=Grid(columns=columns, spacing=spacing),
        max_width=max_width,
        max_height=max_height,
    )


def full_page_options(page_index: int = 0) -> EmbedOptions:
    """One page at its natural size at the origin."""
    return EmbedOptions(layout=SinglePage(0.0, 0.0), page_range=PageRange.single(page_index))
