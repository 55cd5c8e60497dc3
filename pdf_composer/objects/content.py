"""Content-stream operations.

Parsing (and filter decoding) is delegated to pikepdf; encoding is done here
so that generated streams stay byte-stable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import pikepdf

from ..exceptions import ParseError, UnsupportedObjectTypeError
from .model import Name, Reference, Stream
from .utils import format_pdf_name, format_pdf_number, serialize_value

logger = logging.getLogger(__name__)

# Inline image keys are written in their conventional abbreviated form
INLINE_IMAGE_ABBREVIATIONS = {
    "BitsPerComponent": "BPC",
    "ColorSpace": "CS",
    "Decode": "D",
    "DecodeParms": "DP",
    "Filter": "F",
    "Height": "H",
    "ImageMask": "IM",
    "Interpolate": "I",
    "Length": "L",
    "Width": "W",
}


@dataclass(frozen=True)
class Operation:
    """A single content-stream instruction.

    Attributes:
        operator: Operator keyword, e.g. ``"cm"`` or ``"Tf"``
        operands: Operand values in stream order; for ``BI`` the inline
            image dictionary, with unabbreviated keys
        raw: Image data of a ``BI`` instruction, or the verbatim bytes of an
            opaque instruction when there are no operands
    """

    operator: str
    operands: Tuple[Any, ...] = field(default_factory=tuple)
    raw: Optional[bytes] = None

    def __post_init__(self):
        if not isinstance(self.operands, tuple):
            object.__setattr__(self, "operands", tuple(self.operands))

    def with_operands(self, operands: Sequence[Any]) -> "Operation":
        return Operation(self.operator, tuple(operands), self.raw)


def op(operator: str, *operands: Any) -> Operation:
    return Operation(operator, operands)


def save_state() -> Operation:
    return Operation("q")


def restore_state() -> Operation:
    return Operation("Q")


def invoke_xobject(name: str) -> Operation:
    return Operation("Do", (Name(name),))


def set_graphics_state(name: str) -> Operation:
    return Operation("gs", (Name(name),))


def clip_rectangle(x: float, y: float, width: float, height: float) -> List[Operation]:
    """``re W n``: intersect the clipping path with a rectangle."""
    return [Operation("re", (x, y, width, height)), Operation("W"), Operation("n")]


def encode_operations(operations: Iterable[Operation], precision: int = 6) -> bytes:
    """Serialize operations, one instruction per line."""
    lines = []
    for operation in operations:
        if operation.operator == "BI" and operation.operands:
            lines.append(_encode_inline_image(operation, precision))
            continue
        if operation.raw is not None:
            lines.append(operation.raw.rstrip(b"\n"))
            continue
        parts = [serialize_value(operand, precision) for operand in operation.operands]
        parts.append(operation.operator.encode("latin-1"))
        lines.append(b" ".join(parts))
    if not lines:
        return b""
    return b"\n".join(lines) + b"\n"


def _encode_inline_image(operation: Operation, precision: int) -> bytes:
    entries = [
        format_pdf_name(INLINE_IMAGE_ABBREVIATIONS.get(key, key)) + b" " + serialize_value(value, precision)
        for key, value in operation.operands[0].items()
    ]
    # The data already ends with the whitespace that precedes EI
    return b"BI " + b" ".join(entries) + b" ID " + (operation.raw or b"") + b"EI"


def format_matrix(matrix: Sequence[float], precision: int = 6) -> str:
    return " ".join(format_pdf_number(v, precision) for v in matrix)


def _to_pikepdf(value: Any) -> Any:
    if isinstance(value, Reference):
        raise UnsupportedObjectTypeError("indirect stream filter entry", value.id)
    if isinstance(value, Name):
        return pikepdf.Name("/" + value)
    if isinstance(value, list):
        return pikepdf.Array([_to_pikepdf(item) for item in value])
    if isinstance(value, dict):
        return pikepdf.Dictionary({"/" + key: _to_pikepdf(item) for key, item in value.items()})
    if isinstance(value, bytes):
        return pikepdf.String(value)
    return value


def _resolve_deep(value: Any, resolve: Optional[Callable[[Any], Any]]) -> Any:
    if isinstance(value, Reference) and resolve is not None:
        value = resolve(value)
    if isinstance(value, list):
        return [_resolve_deep(item, resolve) for item in value]
    if isinstance(value, dict):
        return {key: _resolve_deep(item, resolve) for key, item in value.items()}
    return value


def decode_stream_data(stream: Stream, resolve: Optional[Callable[[Any], Any]] = None) -> bytes:
    """Return the stream payload with all filters removed.

    ``resolve`` (usually :meth:`PdfDocument.resolve`) follows indirect
    ``Filter`` and ``DecodeParms`` entries.

    Raises:
        UnsupportedObjectTypeError: If pikepdf cannot decode the filter chain,
            or a filter entry is indirect and cannot be resolved.
    """
    filters = _resolve_deep(stream.dictionary.get("Filter"), resolve)
    if filters is None or filters == []:
        return stream.data

    parms = _resolve_deep(stream.dictionary.get("DecodeParms"), resolve)
    scratch = pikepdf.Pdf.new()
    encoded = pikepdf.Stream(scratch, b"")
    encoded.write(
        stream.data,
        filter=_to_pikepdf(filters),
        decode_parms=_to_pikepdf(parms) if parms is not None else None,
    )
    try:
        return encoded.read_bytes()
    except pikepdf.PdfError as exc:
        raise UnsupportedObjectTypeError(f"stream with filter {filters}") from exc


def from_pikepdf(value: Any) -> Any:
    """Convert a direct pikepdf value into the composer's value types."""
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, pikepdf.Name):
        return Name(str(value)[1:])
    if isinstance(value, pikepdf.String):
        return bytes(value)
    if isinstance(value, pikepdf.Array):
        return [from_pikepdf(item) for item in value]
    if isinstance(value, pikepdf.Dictionary):
        return {str(key)[1:]: from_pikepdf(item) for key, item in value.items()}
    if isinstance(value, pikepdf.Object):
        type_code = value._type_code
        if type_code == pikepdf.ObjectType.null:
            return None
        if type_code == pikepdf.ObjectType.boolean:
            return bool(value)
        if type_code == pikepdf.ObjectType.integer:
            return int(value)
        if type_code == pikepdf.ObjectType.real:
            return float(value)
    raise ParseError("Unsupported content-stream operand", type(value).__name__)


def parse_operations(data: bytes) -> List[Operation]:
    """Tokenize decoded content-stream bytes into operations.

    Raises:
        ParseError: If the content stream is malformed.
    """
    if not data.strip():
        return []
    scratch = pikepdf.Pdf.new()
    stream = pikepdf.Stream(scratch, data)
    try:
        instructions = pikepdf.parse_content_stream(stream)
    except pikepdf.PdfError as exc:
        raise ParseError("Malformed content stream", str(exc)) from exc

    operations = []
    for instruction in instructions:
        if isinstance(instruction, pikepdf.ContentStreamInlineImage):
            image = instruction.iimage
            operations.append(Operation("BI", (from_pikepdf(image.obj),), raw=image.read_raw_bytes()))
            continue
        operands = tuple(from_pikepdf(operand) for operand in instruction.operands)
        operations.append(Operation(str(instruction.operator), operands))
    logger.debug(f"Parsed {len(operations)} operations from {len(data)} bytes")
    return operations


def parse_stream(stream: Stream, resolve: Optional[Callable[[Any], Any]] = None) -> List[Operation]:
    return parse_operations(decode_stream_data(stream, resolve))
