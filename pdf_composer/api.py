"""High-level convenience functions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from .config import ComposerConfig
from .embed.embedder import EmbedResult, PdfEmbedder
from .layout.options import EmbedOptions
from .objects.document import PdfDocument
from .objects.model import ObjectId

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes, PdfDocument]


def open_document(source: Union[str, Path, bytes], config: Optional[ComposerConfig] = None) -> PdfDocument:
    """Open a PDF from a path or bytes (convenience function)."""
    return PdfDocument.load(source, config=config)


def new_document(config: Optional[ComposerConfig] = None) -> PdfDocument:
    """Create an empty PDF document (convenience function)."""
    return PdfDocument.new(config)


def _register(embedder: PdfEmbedder, source: Source, index: int) -> str:
    if isinstance(source, PdfDocument):
        return embedder.add_document(source, f"document-{index}")
    if isinstance(source, (bytes, bytearray)):
        return embedder.load_pdf_from_bytes(bytes(source), f"bytes-{index}")
    return embedder.load_pdf(source)


def merge_documents(
    sources: Sequence[Source],
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[ComposerConfig] = None,
) -> PdfDocument:
    """Concatenate the pages of several PDFs into a new document (convenience function)."""
    embedder = PdfEmbedder(config)
    target = PdfDocument.new(config)
    for index, source in enumerate(sources):
        identifier = _register(embedder, source, index)
        embedder.append_pages(target, identifier)
    logger.info(f"Merged {len(sources)} document(s) into {target.page_count()} page(s)")
    if output_path:
        target.save(output_path)
    return target


def embed_pages(
    target: PdfDocument,
    source: Source,
    options: Optional[EmbedOptions] = None,
    target_page: Optional[ObjectId] = None,
) -> EmbedResult:
    """Draw pages of ``source`` onto ``target`` (convenience function)."""
    embedder = PdfEmbedder(target.config)
    identifier = _register(embedder, source, 0)
    return embedder.embed_pdf(target, identifier, options, target_page)

