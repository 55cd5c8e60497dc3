"""PDF file writer - generates objects, xref, trailer, and final PDF structure."""

from __future__ import annotations

import io
import logging
import zlib
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Dict, List, Optional, Tuple, Union

from .model import Name, ObjectId, Stream, iter_references
from .utils import serialize_dictionary, serialize_value

if TYPE_CHECKING:
    from .document import PdfDocument

logger = logging.getLogger(__name__)


class PdfWriter:
    """Writes a :class:`PdfDocument` as a classic (xref table) PDF file.

    Only objects reachable from the trailer are written. They are renumbered
    densely from 1 in their original order, so the output has no free
    entries besides object 0.
    """

    def __init__(self, compress: bool = True, precision: int = 6):
        """Initialize PDF writer.

        Args:
            compress: Flate-compress unfiltered streams when that saves space
            precision: Decimal places for real numbers
        """
        self.compress = compress
        self.precision = precision
        self.xref_table: List[Tuple[int, int]] = []  # (offset, generation)
        self._numbers: Dict[ObjectId, ObjectId] = {}

    def write(self, document: "PdfDocument", output: Union[str, Path, BinaryIO]) -> None:
        """Write PDF document to a path or binary file object.

        Raises:
            ValueError: If document is None
            OSError: If file cannot be written
        """
        if document is None:
            raise ValueError("document cannot be None")

        try:
            if isinstance(output, (str, Path)):
                with open(output, "wb") as f:
                    self._write_document(f, document)
            else:
                self._write_document(output, document)
        except OSError as e:
            logger.error(f"IO error while writing PDF file: {e}")
            raise

    def to_bytes(self, document: "PdfDocument") -> bytes:
        buffer = io.BytesIO()
        self.write(document, buffer)
        return buffer.getvalue()

    def _write_document(self, f: BinaryIO, document: "PdfDocument") -> None:
        if "Root" not in document.trailer:
            raise ValueError("document has no /Root in its trailer")

        self.xref_table = []
        start = f.tell()
        object_ids = self._reachable_objects(document)
        self._numbers = {object_id: ObjectId(index, 0) for index, object_id in enumerate(object_ids, start=1)}

        f.write(f"%PDF-{document.version}\n".encode("ascii"))
        f.write(b"%\xe2\xe3\xcf\xd3\n")

        for object_id in object_ids:
            value = document.get(object_id)
            number = self._numbers[object_id].number
            if isinstance(value, Stream):
                self._write_stream(f, start, number, value)
            else:
                self._write_object(f, start, number, value)

        xref_offset = f.tell() - start
        self._write_xref(f)
        self._write_trailer(f, document, xref_offset)
        logger.debug(f"Wrote {len(object_ids)} objects")

    def _reachable_objects(self, document: "PdfDocument") -> List[ObjectId]:
        reached = set()
        pending = deque(ref.id for ref in iter_references(document.trailer))
        while pending:
            object_id = pending.popleft()
            if object_id in reached:
                continue
            if object_id not in document:
                logger.warning(f"Dangling reference {object_id} written as null")
                continue
            reached.add(object_id)
            pending.extend(ref.id for ref in iter_references(document.get(object_id)))
        return sorted(reached)

    def _renumber(self, object_id: ObjectId) -> Optional[ObjectId]:
        return self._numbers.get(object_id)

    def _serialize(self, value: Any) -> bytes:
        return serialize_value(value, self.precision, self._renumber)

    def _write_object(self, f: BinaryIO, start: int, obj_num: int, value: Any) -> None:
        """Write PDF object.

        Args:
            f: File handle
            start: Offset of the header within ``f``
            obj_num: Object number
            value: Direct value of the object
        """
        self.xref_table.append((f.tell() - start, 0))
        f.write(f"{obj_num} 0 obj\n".encode("ascii"))
        f.write(self._serialize(value))
        f.write(b"\nendobj\n")

    def _write_stream(self, f: BinaryIO, start: int, obj_num: int, stream: Stream) -> None:
        """Write PDF stream object with optional compression.

        Args:
            f: File handle
            start: Offset of the header within ``f``
            obj_num: Object number
            stream: Stream to write; its payload is never re-encoded if filtered
        """
        self.xref_table.append((f.tell() - start, 0))

        stream_dict = {key: value for key, value in stream.dictionary.items() if key != "Length"}
        data = stream.data
        if self.compress and not stream.is_filtered and data:
            compressed = zlib.compress(data)
            # Only use compression if it actually reduces size
            if len(compressed) < len(data):
                stream_dict["Filter"] = Name("FlateDecode")
                data = compressed
        stream_dict["Length"] = len(data)

        f.write(f"{obj_num} 0 obj\n".encode("ascii"))
        f.write(serialize_dictionary(stream_dict, self.precision, self._renumber))
        f.write(b"\nstream\n")
        f.write(data)
        f.write(b"\nendstream\nendobj\n")

    def _write_xref(self, f: BinaryIO) -> None:
        f.write(b"xref\n")
        f.write(f"0 {len(self.xref_table) + 1}\n".encode("ascii"))
        f.write(b"0000000000 65535 f \n")
        for offset, generation in self.xref_table:
            f.write(f"{offset:010d} {generation:05d} n \n".encode("ascii"))

    def _write_trailer(self, f: BinaryIO, document: "PdfDocument", xref_offset: int) -> None:
        trailer = {"Size": len(self.xref_table) + 1}
        for key in ("Root", "Info", "ID"):
            if key in document.trailer:
                trailer[key] = document.trailer[key]
        f.write(b"trailer\n")
        f.write(serialize_dictionary(trailer, self.precision, self._renumber))
        f.write(f"\nstartxref\n{xref_offset}\n%%EOF\n".encode("ascii"))
