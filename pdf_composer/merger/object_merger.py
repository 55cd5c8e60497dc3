"""
Object-graph merger.

Copies the indirect objects reachable from a set of roots in a source
document into a target document, assigning every copied object a fresh
target identifier and rewriting references through the mapping.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..exceptions import MergeError, MissingObjectError, UnsupportedObjectTypeError
from ..objects.document import PdfDocument
from ..objects.model import ObjectId, Reference, Stream, iter_references, type_name

logger = logging.getLogger(__name__)

PAGE_NODE_TYPES = ("Page", "Pages")


class IdentifierMap:
    """Maps ``(source tag, source id)`` pairs to target identifiers."""

    def __init__(self):
        self._entries: Dict[Tuple[str, ObjectId], ObjectId] = {}

    def add(self, source_tag: str, source_id: ObjectId, target_id: ObjectId) -> None:
        key = (source_tag, source_id)
        if key in self._entries:
            raise MergeError("Source object mapped twice", f"{source_id} in '{source_tag}'")
        self._entries[key] = target_id

    def get(self, source_tag: str, source_id: ObjectId) -> Optional[ObjectId]:
        return self._entries.get((source_tag, source_id))

    def __contains__(self, key: Tuple[str, ObjectId]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, ObjectId]]:
        return iter(self._entries)

    def items(self):
        return self._entries.items()

    def target_ids(self) -> List[ObjectId]:
        return list(self._entries.values())

    def source_ids(self, source_tag: str) -> List[ObjectId]:
        return [source_id for tag, source_id in self._entries if tag == source_tag]


@dataclass
class MergeResult:
    """Outcome of one merge call."""

    source_tag: str
    identifier_map: IdentifierMap
    copied: List[ObjectId] = field(default_factory=list)

    def target_id(self, source_id: ObjectId) -> ObjectId:
        target_id = self.identifier_map.get(self.source_tag, source_id)
        if target_id is None:
            raise MissingObjectError(source_id, self.source_tag)
        return target_id

    def rewrite(self, value: Any, exclude_keys: Sequence[str] = ()) -> Any:
        """Copy a direct value with references translated into target space."""
        if isinstance(value, Reference):
            return Reference(self.target_id(value.id))
        if isinstance(value, Stream):
            return Stream(self.rewrite(value.dictionary, exclude_keys), value.data)
        if isinstance(value, dict):
            skip = exclude_keys if value.get("Type") in PAGE_NODE_TYPES else ()
            return {key: self.rewrite(item, exclude_keys) for key, item in value.items() if key not in skip}
        if isinstance(value, list):
            return [self.rewrite(item, exclude_keys) for item in value]
        return value


class ObjectGraphMerger:
    """Merges source object graphs into one target document.

    Each :meth:`merge` call builds its own identifier map, so merging the same
    source twice under different tags produces two disjoint copies.

    Keys listed in ``exclude_keys`` are dropped from page and page-tree node
    dictionaries, so copying a page does not drag in the source page tree.
    """

    def __init__(self, target: PdfDocument, exclude_keys: Sequence[str] = ("Parent",)):
        self.target = target
        self.exclude_keys = tuple(exclude_keys)

    def merge(self, source: PdfDocument, roots: Iterable[ObjectId], source_tag: str) -> MergeResult:
        """Copy everything reachable from ``roots`` into the target.

        Args:
            source: Document to copy from
            roots: Source identifiers to start from
            source_tag: Logical name of the source in the identifier map

        Returns:
            MergeResult with the identifier map and copied target ids

        Raises:
            MergeError: If the source document is empty
            MissingObjectError: If a root or a referenced object is absent
            UnsupportedObjectTypeError: If an object cannot be rewritten
        """
        if len(source) == 0:
            raise MergeError("Source document is empty", source_tag)

        # Validate the whole closure before touching the target.
        order = self._discover(source, roots, source_tag)

        identifier_map = IdentifierMap()
        result = MergeResult(source_tag, identifier_map)
        for source_id in order:
            target_id = self.target.allocate()
            identifier_map.add(source_tag, source_id, target_id)
            result.copied.append(target_id)

        for source_id in order:
            value = result.rewrite(source.get(source_id), self.exclude_keys)
            self.target.set_object(identifier_map.get(source_tag, source_id), value)

        logger.debug(f"Merged {len(order)} objects from '{source_tag}'")
        return result

    def import_value(self, source: PdfDocument, value: Any, source_tag: str) -> Tuple[Any, MergeResult]:
        """Merge everything a direct value references and return its target copy."""
        roots = self.references_of(value, None, source_tag)
        result = self.merge(source, roots, source_tag)
        return result.rewrite(value, self.exclude_keys), result

    def _discover(self, source: PdfDocument, roots: Iterable[ObjectId], source_tag: str) -> List[ObjectId]:
        order: List[ObjectId] = []
        visited = set()
        queue = deque()
        for root in roots:
            if root not in visited:
                visited.add(root)
                queue.append(root)

        while queue:
            object_id = queue.popleft()
            if object_id not in source:
                raise MissingObjectError(object_id, source_tag)
            order.append(object_id)
            for child in self.references_of(source.get(object_id), object_id, source_tag):
                if child not in visited:
                    visited.add(child)
                    queue.append(child)
        return order

    def references_of(self, value: Any, object_id: Optional[ObjectId], source_tag: str) -> List[ObjectId]:
        try:
            return [ref.id for ref in iter_references(self._strip_excluded(value))]
        except TypeError as exc:
            raise UnsupportedObjectTypeError(self._unsupported_type(value), object_id) from exc

    def _strip_excluded(self, value: Any) -> Any:
        """Drop excluded keys from nested page dictionaries before scanning."""
        if isinstance(value, dict):
            skip = self.exclude_keys if value.get("Type") in PAGE_NODE_TYPES else ()
            return {key: self._strip_excluded(item) for key, item in value.items() if key not in skip}
        if isinstance(value, list):
            return [self._strip_excluded(item) for item in value]
        if isinstance(value, Stream):
            return Stream(self._strip_excluded(value.dictionary), value.data)
        return value

    @staticmethod
    def _unsupported_type(value: Any) -> str:
        pending = [value]
        while pending:
            current = pending.pop()
            if isinstance(current, Stream):
                pending.append(current.dictionary)
            elif isinstance(current, dict):
                pending.extend(current.values())
            elif isinstance(current, list):
                pending.extend(current)
            elif not isinstance(current, (type(None), bool, int, float, str, bytes, Reference)):
                return type_name(current)
        return type_name(value)
