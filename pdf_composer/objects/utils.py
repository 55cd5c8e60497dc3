"""Utility functions for PDF serialization."""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Optional

from .model import Name, ObjectId, Reference, Stream

# Characters that must be #-escaped inside a name
_NAME_DELIMITERS = set(b"()<>[]{}/%#")


def format_pdf_number(value: float, precision: int = 6) -> str:
    """Format number for PDF output.

    Args:
        value: Number to format
        precision: Maximum number of decimal places

    Returns:
        Shortest fixed-point text for the value ("1", "0.5", "-2.25")

    Raises:
        ValueError: For infinities and NaN, which PDF cannot express
    """
    if isinstance(value, bool):
        raise TypeError("Booleans are not PDF numbers")
    if isinstance(value, int):
        return str(value)
    if not math.isfinite(value):
        raise ValueError(f"Cannot write non-finite number {value} to a PDF")
    text = f"{value:.{precision}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def escape_pdf_string(data: bytes) -> bytes:
    """Escape special characters in a PDF literal string.

    Args:
        data: Raw string bytes

    Returns:
        Escaped bytes, without the enclosing parentheses
    """
    replacements = {
        ord("\\"): b"\\\\",
        ord("("): b"\\(",
        ord(")"): b"\\)",
        ord("\n"): b"\\n",
        ord("\r"): b"\\r",
        ord("\t"): b"\\t",
    }
    out = bytearray()
    for byte in data:
        out += replacements.get(byte, bytes((byte,)))
    return bytes(out)


def format_pdf_name(name: str) -> bytes:
    """Serialize a name, #-escaping delimiters, whitespace and non-ASCII."""
    out = bytearray(b"/")
    for byte in name.encode("utf-8"):
        if byte < 0x21 or byte > 0x7E or byte in _NAME_DELIMITERS:
            out += f"#{byte:02X}".encode("ascii")
        else:
            out.append(byte)
    return bytes(out)


def format_text_string(text: str) -> bytes:
    """Serialize a text string, using UTF-16BE with BOM when not Latin-1."""
    try:
        return b"(" + escape_pdf_string(text.encode("latin-1")) + b")"
    except UnicodeEncodeError:
        return b"<FEFF" + text.encode("utf-16-be").hex().upper().encode("ascii") + b">"


def serialize_value(
    value: Any,
    precision: int = 6,
    resolve_reference: Optional[Callable[[ObjectId], Optional[ObjectId]]] = None,
) -> bytes:
    """Serialize a direct PDF value.

    Args:
        value: Value to serialize (streams are not direct values)
        precision: Decimal places for reals
        resolve_reference: Optional renumbering hook; returning ``None``
            writes ``null`` for that reference

    Returns:
        PDF syntax bytes

    Raises:
        TypeError: For streams and unsupported Python types
    """
    if value is None:
        return b"null"
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, (int, float)):
        return format_pdf_number(value, precision).encode("ascii")
    if isinstance(value, Name):
        return format_pdf_name(value)
    if isinstance(value, bytes):
        return b"(" + escape_pdf_string(value) + b")"
    if isinstance(value, str):
        return format_text_string(value)
    if isinstance(value, Reference):
        target = value.id if resolve_reference is None else resolve_reference(value.id)
        if target is None:
            return b"null"
        return f"{target.number} {target.generation} R".encode("ascii")
    if isinstance(value, list):
        return b"[" + b" ".join(serialize_value(item, precision, resolve_reference) for item in value) + b"]"
    if isinstance(value, dict):
        return serialize_dictionary(value, precision, resolve_reference)
    if isinstance(value, Stream):
        raise TypeError("Streams must be indirect objects")
    raise TypeError(f"Cannot serialize {type(value).__name__} as a PDF value")


def serialize_dictionary(
    value: Dict[str, Any],
    precision: int = 6,
    resolve_reference: Optional[Callable[[ObjectId], Optional[ObjectId]]] = None,
) -> bytes:
    parts = [b"<<"]
    for key, item in value.items():
        parts.append(format_pdf_name(key) + b" " + serialize_value(item, precision, resolve_reference))
    parts.append(b">>")
    return b" ".join(parts)


def decode_text_string(value: Any) -> str:
    """Decode a PDF text string (UTF-16BE with BOM, UTF-8 with BOM, else Latin-1)."""
    if isinstance(value, str):
        return value
    if not isinstance(value, bytes):
        return str(value)
    if value.startswith(b"\xfe\xff"):
        return value[2:].decode("utf-16-be", errors="replace")
    if value.startswith(b"\xef\xbb\xbf"):
        return value[3:].decode("utf-8", errors="replace")
    return value.decode("latin-1")
