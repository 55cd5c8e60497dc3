"""
PDF Composer - merge PDF object graphs and place reusable content blocks.

Main Components:
- PdfDocument: arena-backed PDF object model (load, edit, save)
- ObjectGraphMerger: copies object subtrees between documents
- ResourceDeduplicator: reconciles resource names on shared pages
- LayoutEngine: single-page, vertical, horizontal and grid placement
- PdfEmbedder / EmbedLayoutBuilder: draw source pages on target pages
- BlockRegistry: reusable blocks rendered inline or as Form XObjects
- Transform: affine transform algebra
"""

from .api import embed_pages, merge_documents, new_document, open_document
from .blocks import (
    Block,
    BlockInstance,
    BlockRegistry,
    InlineInstanceRenderer,
    InstanceRenderer,
    XObjectInstanceRenderer,
    merge_blocks,
)
from .config import ComposerConfig
from .embed import EmbeddedPdfInfo, EmbedLayoutBuilder, EmbedResult, PdfEmbedder, XObjectEmbedResult
from .exceptions import (
    BlockError,
    ComposerError,
    InvalidScaleError,
    LayoutArityError,
    LayoutError,
    MergeError,
    MissingBoundingBoxError,
    MissingObjectError,
    MissingXObjectError,
    ParseError,
    ResourceError,
    ResourceNameCollisionError,
    UnknownBlockError,
    UnknownSourceError,
    UnsupportedObjectTypeError,
)
from .geometry import Rect, Size
from .layout import (
    Custom,
    EmbedOptions,
    Grid,
    GridFillOrder,
    Horizontal,
    LayoutEngine,
    LayoutResult,
    PageRange,
    SinglePage,
    Vertical,
    full_page_options,
    thumbnail_options,
    watermark_options,
)
from .merger import IdentifierMap, ObjectGraphMerger, RenameTable, ResourceDeduplicator, import_pages
from .objects import Name, ObjectId, Operation, PdfDocument, Reference, Stream
from .transform import Transform, compose

__version__ = "0.1.0"

__all__ = [
    "Block",
    "BlockError",
    "BlockInstance",
    "BlockRegistry",
    "ComposerConfig",
    "ComposerError",
    "Custom",
    "EmbedLayoutBuilder",
    "EmbedOptions",
    "EmbedResult",
    "EmbeddedPdfInfo",
    "Grid",
    "GridFillOrder",
    "Horizontal",
    "IdentifierMap",
    "InlineInstanceRenderer",
    "InstanceRenderer",
    "InvalidScaleError",
    "LayoutArityError",
    "LayoutEngine",
    "LayoutError",
    "LayoutResult",
    "MergeError",
    "MissingBoundingBoxError",
    "MissingObjectError",
    "MissingXObjectError",
    "Name",
    "ObjectGraphMerger",
    "ObjectId",
    "Operation",
    "PageRange",
    "ParseError",
    "PdfDocument",
    "PdfEmbedder",
    "Rect",
    "Reference",
    "RenameTable",
    "ResourceDeduplicator",
    "ResourceError",
    "ResourceNameCollisionError",
    "SinglePage",
    "Size",
    "Stream",
    "Transform",
    "UnknownBlockError",
    "UnknownSourceError",
    "UnsupportedObjectTypeError",
    "Vertical",
    "XObjectEmbedResult",
    "XObjectInstanceRenderer",
    "compose",
    "embed_pages",
    "full_page_options",
    "import_pages",
    "merge_blocks",
    "merge_documents",
    "new_document",
    "open_document",
    "thumbnail_options",
    "watermark_options",
]
