"""Load PDF files into a :class:`PdfDocument` through pikepdf."""

from __future__ import annotations

import io
import logging
from collections import deque
from decimal import Decimal
from pathlib import Path
from typing import Any, BinaryIO, Deque, Optional, Set, Tuple, Union

import pikepdf

from ..config import ComposerConfig
from ..exceptions import ParseError
from .document import PdfDocument
from .model import Name, ObjectId, Reference, Stream

logger = logging.getLogger(__name__)


def load_document(
    source: Union[str, Path, bytes, bytearray, BinaryIO],
    config: Optional[ComposerConfig] = None,
) -> PdfDocument:
    """Parse a PDF into an arena document.

    Only objects reachable from the trailer's /Root and /Info are imported.
    Stream payloads are kept encoded, with their filter entries intact.

    Args:
        source: Path, raw bytes or a binary file object
        config: Options for the resulting document

    Returns:
        The loaded document

    Raises:
        ParseError: If the file is malformed or encrypted
        OSError: If the file cannot be read
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))

    try:
        with pikepdf.open(source, attempt_recovery=False) as pdf:
            if pdf.is_encrypted:
                raise ParseError("Encrypted PDFs are not supported")
            document = _PikepdfImporter(pdf, config).run()
    except pikepdf.PasswordError as e:
        raise ParseError("Encrypted PDFs are not supported", str(e)) from e
    except pikepdf.PdfError as e:
        raise ParseError("Malformed PDF", str(e)) from e

    logger.debug(f"Loaded {len(document)} objects, {document.page_count()} page(s)")
    return document


class _PikepdfImporter:
    """Copies a pikepdf object graph into the arena, breadth first."""

    def __init__(self, pdf: pikepdf.Pdf, config: Optional[ComposerConfig]):
        self.pdf = pdf
        self.document = PdfDocument(version=pdf.pdf_version, config=config)
        self._pending: Deque[Any] = deque()
        self._queued: Set[Tuple[int, int]] = set()

    def run(self) -> PdfDocument:
        trailer = self.pdf.trailer
        for key in ("Root", "Info"):
            if f"/{key}" in trailer:
                self.document.trailer[key] = self._convert(trailer[f"/{key}"])
        if "Root" not in self.document.trailer:
            raise ParseError("PDF trailer has no /Root")

        while self._pending:
            handle = self._pending.popleft()
            number, generation = handle.objgen
            self.document.set_object(ObjectId(number, generation), self._convert(handle, top_level=True))
        return self.document

    def _convert(self, value: Any, top_level: bool = False) -> Any:
        if value is None or isinstance(value, (bool, int)):
            return value
        if isinstance(value, (float, Decimal)):
            return float(value)
        if not isinstance(value, pikepdf.Object):
            raise ParseError("Unexpected value in PDF", type(value).__name__)

        if value.is_indirect and not top_level:
            objgen = value.objgen
            if objgen not in self._queued:
                self._queued.add(objgen)
                self._pending.append(value)
            return Reference(ObjectId(*objgen))

        type_code = value._type_code
        if type_code == pikepdf.ObjectType.null:
            return None
        if type_code == pikepdf.ObjectType.boolean:
            return bool(value)
        if type_code == pikepdf.ObjectType.integer:
            return int(value)
        if type_code == pikepdf.ObjectType.real:
            return float(value)
        if type_code == pikepdf.ObjectType.name_:
            return Name(str(value)[1:])
        if type_code == pikepdf.ObjectType.string:
            return bytes(value)
        if type_code == pikepdf.ObjectType.array:
            return [self._convert(item) for item in value]
        if type_code == pikepdf.ObjectType.dictionary:
            return {str(key)[1:]: self._convert(item) for key, item in value.items()}
        if type_code == pikepdf.ObjectType.stream:
            dictionary = {
                str(key)[1:]: self._convert(item)
                for key, item in value.stream_dict.items()
                if key != "/Length"
            }
            return Stream(dictionary, value.read_raw_bytes())
        raise ParseError("Unsupported PDF object", value._type_name)
