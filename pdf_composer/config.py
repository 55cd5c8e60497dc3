"""Configuration options shared by the composition components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# A4 in points
A4_MEDIA_BOX: Tuple[float, float, float, float] = (0.0, 0.0, 595.0, 842.0)


@dataclass
class ComposerConfig:
    """Options controlling document creation, naming and output.

    Attributes:
        default_media_box: Page box used when a page (and its ancestors)
            declares no /MediaBox.
        pdf_version: Version written in the header of new documents.
        compress_streams: Flate-compress unfiltered streams on save when it
            makes them smaller.
        block_xobject_prefix: Resource name prefix for block Form XObjects.
        embed_xobject_prefix: Resource name prefix for embedded page XObjects.
        opacity_state_prefix: Resource name prefix for generated ExtGStates.
        rename_separator: Joins a colliding resource name and its counter.
        number_precision: Decimal places used when writing real numbers.
    """

    default_media_box: Tuple[float, float, float, float] = A4_MEDIA_BOX
    pdf_version: str = "1.7"
    compress_streams: bool = True
    block_xobject_prefix: str = "Blk"
    embed_xobject_prefix: str = "XO"
    opacity_state_prefix: str = "GS"
    rename_separator: str = "_"
    number_precision: int = 6

    def __post_init__(self):
        x0, y0, x1, y1 = self.default_media_box
        if x1 <= x0 or y1 <= y0:
            raise ValueError(f"Invalid default media box: {self.default_media_box}")
        if self.number_precision < 0:
            raise ValueError("number_precision must be >= 0")


DEFAULT_CONFIG = ComposerConfig()
