"""Layout strategies, options and the layout engine."""

from .engine import LayoutEngine, LayoutResult, PagePlacement
from .options import EmbedOptions, PageRange, full_page_options, thumbnail_options, watermark_options
from .strategies import Custom, Grid, GridFillOrder, Horizontal, LayoutStrategy, SinglePage, Vertical

__all__ = [
    "Custom",
    "EmbedOptions",
    "Grid",
    "GridFillOrder",
    "Horizontal",
    "LayoutEngine",
    "LayoutResult",
    "LayoutStrategy",
    "PagePlacement",
    "PageRange",
    "SinglePage",
    "Vertical",
    "full_page_options",
    "thumbnail_options",
    "watermark_options",
]
