"""Builder for composing several Form-XObject embeds on one page."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import ComposerConfig
from ..layout.options import EmbedOptions, PageRange, thumbnail_options
from ..layout.strategies import SinglePage
from ..merger.resource_merger import ResourceDeduplicator
from ..objects.content import Operation, encode_operations, restore_state, save_state
from ..objects.document import PdfDocument
from ..objects.model import Name, ObjectId, Reference, Stream, deep_copy
from ..transform import Transform
from .embedder import PdfEmbedder, XObjectEmbedResult

logger = logging.getLogger(__name__)


class EmbedLayoutBuilder:
    """Collects operations and resources from several embeds.

    Example::

        builder = EmbedLayoutBuilder()
        report = builder.load_pdf("report.pdf")
        builder.create_thumbnail_gallery(target, report, 50, 50, 120, 160)
        builder.apply_to_new_page(target, 595, 842)
    """

    def __init__(self, embedder: Optional[PdfEmbedder] = None, config: Optional[ComposerConfig] = None):
        self.embedder = embedder or PdfEmbedder(config)
        self.operations: List[Operation] = []
        self.resources: Dict[str, Dict[str, Any]] = {}

    def load_pdf(self, path: Union[str, Path]) -> str:
        return self.embedder.load_pdf(path)

    def add_embedded_pdf(self, target: PdfDocument, identifier: str, options: EmbedOptions) -> "EmbedLayoutBuilder":
        self._collect(self.embedder.embed_as_xobjects(target, identifier, options))
        return self

    def create_thumbnail_gallery(
        self,
        target: PdfDocument,
        identifier: str,
        x: float,
        y: float,
        thumb_width: float,
        thumb_height: float,
        columns: int = 4,
        spacing: float = 10.0,
    ) -> "EmbedLayoutBuilder":
        """Grid of all pages, each fitted into a thumbnail cell.

        ``(x, y)`` is the bottom-left corner of the whole gallery.
        """
        options = thumbnail_options(thumb_width, thumb_height, columns, spacing)
        result = self.embedder.embed_as_xobjects(target, identifier, options)
        self._collect(result, Transform.translate(x, y))
        return self

    def create_comparison(
        self,
        target: PdfDocument,
        left: str,
        right: str,
        x: float,
        y: float,
        width: float,
        height: float,
        gap: float = 10.0,
        page_index: int = 0,
    ) -> "EmbedLayoutBuilder":
        """Two pages side by side, each fitted into ``width`` x ``height``."""
        for identifier, left_edge in ((left, x), (right, x + width + gap)):
            options = EmbedOptions(
                layout=SinglePage(left_edge, y),
                page_range=PageRange.single(page_index),
                max_width=width,
                max_height=height,
            )
            self.add_embedded_pdf(target, identifier, options)
        return self

    def build(self) -> Tuple[List[Operation], Dict[str, Dict[str, Any]]]:
        """Collected operations and the resources they need."""
        return list(self.operations), deep_copy(self.resources)

    def apply_to_page(self, target: PdfDocument, page_id: ObjectId) -> ObjectId:
        """Draw the collected content on top of an existing page.

        Resource names are reconciled with the page's own resources.
        """
        page = target.page(page_id)
        page_resources = deep_copy(target.page_resources(page_id))
        table = ResourceDeduplicator(target, self.embedder.config).reconcile(page_resources, self.resources)
        operations = [save_state()] + table.apply(self.operations) + [restore_state()]

        stream_id = target.add_object(Stream({}, encode_operations(operations, self.embedder.config.number_precision)))
        existing = [Reference(content_id) for content_id in target.content_stream_ids(page_id)]
        if existing:
            existing = self.embedder.isolate(target, existing)
        page["Resources"] = page_resources
        page["Contents"] = existing + [Reference(stream_id)]
        logger.debug(f"Applied {len(self.operations)} operations to page {page_id}")
        return page_id

    def apply_to_new_page(self, target: PdfDocument, width: float, height: float) -> ObjectId:
        page_id = target.add_page({
            "Type": Name("Page"),
            "MediaBox": [0, 0, width, height],
            "Resources": {},
        })
        return self.apply_to_page(target, page_id)

    def clear(self) -> None:
        self.operations.clear()
        self.resources.clear()

    def _collect(self, result: XObjectEmbedResult, placement: Optional[Transform] = None) -> None:
        if placement is not None:
            self.operations.append(save_state())
            self.operations.append(placement.to_operation())
        self.operations.extend(result.operations)
        if placement is not None:
            self.operations.append(restore_state())
        for category, entries in result.resources.items():
            self.resources.setdefault(category, {}).update(entries)
