"""PDF object model: values, arena document, content streams, I/O."""

from .content import (
    Operation,
    clip_rectangle,
    decode_stream_data,
    encode_operations,
    invoke_xobject,
    op,
    parse_operations,
    parse_stream,
    restore_state,
    save_state,
    set_graphics_state,
)
from .document import PdfDocument
from .loader import load_document
from .model import Name, ObjectId, Reference, Stream, deep_copy, iter_references
from .writer import PdfWriter

__all__ = [
    "Name",
    "ObjectId",
    "Operation",
    "PdfDocument",
    "PdfWriter",
    "Reference",
    "Stream",
    "clip_rectangle",
    "decode_stream_data",
    "deep_copy",
    "encode_operations",
    "invoke_xobject",
    "iter_references",
    "load_document",
    "op",
    "parse_operations",
    "parse_stream",
    "restore_state",
    "save_state",
    "set_graphics_state",
]
