"""Embedding pages of source PDFs into target documents."""

from .builder import EmbedLayoutBuilder
from .embedder import EmbeddedPdfInfo, EmbedResult, PdfEmbedder, XObjectEmbedResult

__all__ = [
    "EmbedLayoutBuilder",
    "EmbedResult",
    "EmbeddedPdfInfo",
    "PdfEmbedder",
    "XObjectEmbedResult",
]
