"""Arena-backed PDF document."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Tuple, Union

from ..config import DEFAULT_CONFIG, ComposerConfig
from ..geometry import Rect
from .content import Operation, parse_stream
from .model import Name, ObjectId, Reference, Stream
from .writer import PdfWriter

logger = logging.getLogger(__name__)

INHERITABLE_PAGE_KEYS = ("Resources", "MediaBox", "CropBox", "Rotate")


class PdfDocument:
    """PDF document held as an arena of indirect objects.

    Objects are addressed by :class:`ObjectId`. New identifiers are handed out
    in increasing order and never reused within the document's lifetime.
    """

    def __init__(self, version: str = "1.7", config: Optional[ComposerConfig] = None):
        self.version = version
        self.config = config or DEFAULT_CONFIG
        self.trailer: Dict[str, Any] = {}
        self._objects: Dict[ObjectId, Any] = {}
        self._next_number = 1

    @classmethod
    def new(cls, config: Optional[ComposerConfig] = None) -> "PdfDocument":
        """Create an empty document with a catalog and an empty page tree."""
        config = config or DEFAULT_CONFIG
        document = cls(version=config.pdf_version, config=config)
        pages_id = document.add_object({"Type": Name("Pages"), "Kids": [], "Count": 0})
        catalog_id = document.add_object({"Type": Name("Catalog"), "Pages": Reference(pages_id)})
        document.trailer["Root"] = Reference(catalog_id)
        return document

    @classmethod
    def load(cls, source: Union[str, Path, bytes, BinaryIO], config: Optional[ComposerConfig] = None) -> "PdfDocument":
        """Load a PDF file or byte string. See :func:`load_document`."""
        from .loader import load_document

        return load_document(source, config=config)

    # Arena access

    def __contains__(self, object_id: ObjectId) -> bool:
        return object_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def object_ids(self) -> List[ObjectId]:
        return sorted(self._objects)

    def items(self) -> Iterator[Tuple[ObjectId, Any]]:
        return iter(sorted(self._objects.items()))

    def get(self, object_id: ObjectId) -> Any:
        """Return the object stored under ``object_id`` or ``None``."""
        return self._objects.get(object_id)

    def allocate(self) -> ObjectId:
        """Reserve a fresh identifier without storing an object yet."""
        object_id = ObjectId(self._next_number, 0)
        self._next_number += 1
        self._objects[object_id] = None
        return object_id

    def add_object(self, value: Any) -> ObjectId:
        object_id = self.allocate()
        self._objects[object_id] = value
        return object_id

    def set_object(self, object_id: ObjectId, value: Any) -> None:
        self._objects[object_id] = value
        if object_id.number >= self._next_number:
            self._next_number = object_id.number + 1

    def remove_object(self, object_id: ObjectId) -> None:
        self._objects.pop(object_id, None)

    @property
    def next_number(self) -> int:
        return self._next_number

    def resolve(self, value: Any) -> Any:
        """Follow references until a direct value is reached.

        Dangling references resolve to ``None``, as PDF readers treat them.
        """
        seen = set()
        while isinstance(value, Reference):
            if value.id in seen:
                logger.warning(f"Reference cycle while resolving {value.id}")
                return None
            seen.add(value.id)
            value = self._objects.get(value.id)
        return value

    @contextmanager
    def transaction(self):
        """Undo identifier allocation if the block raises.

        Objects allocated inside the block are removed again on failure.
        Modifications to pre-existing objects are not tracked; callers link
        new objects into the graph as the final step.
        """
        checkpoint = self._next_number
        try:
            yield self
        except BaseException:
            for object_id in [oid for oid in self._objects if oid.number >= checkpoint]:
                del self._objects[object_id]
            self._next_number = checkpoint
            logger.debug(f"Rolled back objects numbered {checkpoint} and above")
            raise

    # Document structure

    @property
    def catalog(self) -> Dict[str, Any]:
        catalog = self.resolve(self.trailer.get("Root"))
        if not isinstance(catalog, dict):
            raise ValueError("Document has no catalog")
        return catalog

    @property
    def pages_root_id(self) -> ObjectId:
        pages = self.catalog.get("Pages")
        if not isinstance(pages, Reference):
            raise ValueError("Catalog has no indirect /Pages tree")
        return pages.id

    @property
    def info(self) -> Dict[str, Any]:
        info = self.resolve(self.trailer.get("Info"))
        return info if isinstance(info, dict) else {}

    def page_ids(self) -> List[ObjectId]:
        """Page identifiers in document order.

        Cycles and repeated nodes in a malformed page tree are skipped.
        """
        root = self.catalog.get("Pages")
        if not isinstance(root, Reference):
            return []
        pages: List[ObjectId] = []
        visited = set()
        stack = [root]
        while stack:
            node_ref = stack.pop()
            if not isinstance(node_ref, Reference) or node_ref.id in visited:
                continue
            visited.add(node_ref.id)
            node = self.get(node_ref.id)
            if not isinstance(node, dict):
                continue
            kids = self.resolve(node.get("Kids"))
            if node.get("Type") == "Pages" or (node.get("Type") is None and isinstance(kids, list)):
                if isinstance(kids, list):
                    stack.extend(reversed(kids))
            else:
                pages.append(node_ref.id)
        return pages

    def page_count(self) -> int:
        return len(self.page_ids())

    def page(self, page_id: ObjectId) -> Dict[str, Any]:
        page = self.get(page_id)
        if not isinstance(page, dict):
            raise ValueError(f"Object {page_id} is not a page dictionary")
        return page

    def add_page(self, page: Dict[str, Any]) -> ObjectId:
        """Store ``page`` and append it to the root of the page tree."""
        page_id = self.add_object(page)
        self.link_page(page_id)
        return page_id

    def link_page(self, page_id: ObjectId) -> None:
        """Append an already stored page dictionary to the page tree."""
        root_id = self.pages_root_id
        root = self.get(root_id)
        page = self.page(page_id)
        page["Type"] = Name("Page")
        page["Parent"] = Reference(root_id)
        kids = self.resolve(root.get("Kids"))
        if not isinstance(kids, list):
            kids = []
        kids.append(Reference(page_id))
        root["Kids"] = kids
        root["Count"] = int(root.get("Count", 0) or 0) + 1

    def page_attribute(self, page_id: ObjectId, key: str) -> Any:
        """Look up ``key`` on the page or, if inheritable, on its ancestors."""
        node_id: Optional[ObjectId] = page_id
        visited = set()
        while node_id is not None and node_id not in visited:
            visited.add(node_id)
            node = self.get(node_id)
            if not isinstance(node, dict):
                return None
            if key in node:
                return node[key]
            if key not in INHERITABLE_PAGE_KEYS:
                return None
            parent = node.get("Parent")
            node_id = parent.id if isinstance(parent, Reference) else None
        return None

    def media_box(self, page_id: ObjectId) -> Rect:
        box = self.resolve(self.page_attribute(page_id, "MediaBox"))
        if isinstance(box, list) and len(box) == 4:
            values = [self.resolve(v) for v in box]
            if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
                return Rect.from_box(values)
        logger.debug(f"Page {page_id} has no usable /MediaBox, using default")
        return Rect.from_box(self.config.default_media_box)

    def page_size(self, page_id: ObjectId) -> Tuple[float, float]:
        box = self.media_box(page_id)
        return (box.width, box.height)

    def page_resources(self, page_id: ObjectId) -> Dict[str, Any]:
        resources = self.resolve(self.page_attribute(page_id, "Resources"))
        return resources if isinstance(resources, dict) else {}

    def content_stream_ids(self, page_id: ObjectId) -> List[ObjectId]:
        """Identifiers of the page's content streams, in drawing order."""
        contents = self.page(page_id).get("Contents")
        if isinstance(contents, Reference):
            target = self.get(contents.id)
            if isinstance(target, Stream):
                return [contents.id]
            contents = target
        if isinstance(contents, list):
            return [item.id for item in contents if isinstance(item, Reference)]
        return []

    def page_operations(self, page_id: ObjectId) -> List[Operation]:
        """Decode and parse all content streams of a page."""
        operations: List[Operation] = []
        for stream_id in self.content_stream_ids(page_id):
            stream = self.get(stream_id)
            if isinstance(stream, Stream):
                operations.extend(parse_stream(stream, self.resolve))
        return operations

    # Output

    def save(self, output: Union[str, Path, BinaryIO]) -> None:
        """Write the document to a path or binary file object.

        Raises:
            OSError: If the output cannot be written.
        """
        PdfWriter(compress=self.config.compress_streams, precision=self.config.number_precision).write(self, output)

    def to_bytes(self) -> bytes:
        return PdfWriter(compress=self.config.compress_streams, precision=self.config.number_precision).to_bytes(self)
