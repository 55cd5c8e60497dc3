"""
Resource dictionary reconciliation.

When content from several sources is drawn on one page, their resource
dictionaries are folded into a single one. Entries that would clash are
renamed, and the content operators that use them are rewritten through an
immutable rename table in a single pass.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..config import DEFAULT_CONFIG, ComposerConfig
from ..exceptions import ResourceNameCollisionError
from ..objects.content import Operation
from ..objects.document import PdfDocument
from ..objects.model import Name, deep_copy

logger = logging.getLogger(__name__)

RESOURCE_CATEGORIES = ("Font", "XObject", "ExtGState", "Pattern", "ColorSpace", "Shading", "Properties")

# operator -> (resource category, index of the name operand)
NAME_OPERANDS: Dict[str, Tuple[str, int]] = {
    "Tf": ("Font", 0),
    "Do": ("XObject", 0),
    "gs": ("ExtGState", 0),
    "sh": ("Shading", 0),
    "cs": ("ColorSpace", 0),
    "CS": ("ColorSpace", 0),
    "scn": ("Pattern", -1),
    "SCN": ("Pattern", -1),
    "BDC": ("Properties", 1),
    "DP": ("Properties", 1),
}

# Inline image colour spaces that are not resource names
INLINE_DEVICE_COLOR_SPACES = frozenset({"DeviceGray", "DeviceRGB", "DeviceCMYK", "G", "RGB", "CMYK"})


def _name_operand(operation: Operation) -> Optional[Tuple[str, int, Name]]:
    spec = NAME_OPERANDS.get(operation.operator)
    if spec is None or not operation.operands:
        return None
    category, index = spec
    if index >= len(operation.operands):
        return None
    if index < 0:
        index = len(operation.operands) + index
    operand = operation.operands[index]
    if not isinstance(operand, Name):
        return None
    return category, index, operand


def _inline_color_space(operation: Operation) -> Optional[Tuple[str, Optional[int], Name]]:
    """``(key, array index, name)`` of the /ColorSpace resource an inline image names.

    The name is either the whole value or the base of an /Indexed array.
    """
    if operation.operator != "BI" or not operation.operands or not isinstance(operation.operands[0], dict):
        return None
    image = operation.operands[0]
    for key in ("ColorSpace", "CS"):
        value = image.get(key)
        if isinstance(value, Name):
            index, name = None, value
        elif isinstance(value, list) and len(value) > 1 and value[0] in ("Indexed", "I") and isinstance(value[1], Name):
            index, name = 1, value[1]
        else:
            continue
        if name in INLINE_DEVICE_COLOR_SPACES:
            return None
        return key, index, name
    return None


def used_resource_names(operations: Iterable[Operation]) -> Set[Tuple[str, str]]:
    """``(category, name)`` pairs that the operations look up in resources."""
    used = set()
    for operation in operations:
        found = _name_operand(operation)
        if found is not None:
            used.add((found[0], str(found[2])))
        inline = _inline_color_space(operation)
        if inline is not None:
            used.add(("ColorSpace", str(inline[2])))
    return used


@dataclass(frozen=True)
class RenameTable:
    """Frozen ``category -> {old name: new name}`` snapshot."""

    renames: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, renames: Dict[str, Dict[str, str]]) -> "RenameTable":
        frozen = {category: MappingProxyType(dict(names)) for category, names in renames.items() if names}
        return cls(MappingProxyType(frozen))

    def __bool__(self) -> bool:
        return bool(self.renames)

    def __len__(self) -> int:
        return sum(len(names) for names in self.renames.values())

    def lookup(self, category: str, name: str) -> str:
        return self.renames.get(category, {}).get(name, name)

    def apply(self, operations: Iterable[Operation]) -> List[Operation]:
        """Rewrite resource-name operands; every operand is looked up once."""
        if not self.renames:
            return list(operations)
        rewritten = []
        for operation in operations:
            found = _name_operand(operation)
            if found is not None:
                category, index, name = found
                new_name = self.lookup(category, name)
                if new_name != name:
                    operands = list(operation.operands)
                    operands[index] = Name(new_name)
                    operation = operation.with_operands(operands)
            elif operation.operator == "BI":
                operation = self._rename_inline_image(operation)
            rewritten.append(operation)
        return rewritten

    def _rename_inline_image(self, operation: Operation) -> Operation:
        found = _inline_color_space(operation)
        if found is None:
            return operation
        key, index, name = found
        new_name = self.lookup("ColorSpace", name)
        if new_name == name:
            return operation
        image = dict(operation.operands[0])
        if index is None:
            image[key] = Name(new_name)
        else:
            value = list(image[key])
            value[index] = Name(new_name)
            image[key] = value
        return operation.with_operands((image,) + operation.operands[1:])


class ResourceDeduplicator:
    """Folds incoming resource dictionaries into a target resource dictionary.

    Both dictionaries must already live in the target document's identifier
    space (i.e. the incoming one was rewritten by the object-graph merger).
    """

    def __init__(self, document: PdfDocument, config: Optional[ComposerConfig] = None):
        self.document = document
        self.config = config or DEFAULT_CONFIG

    def reconcile(self, target_resources: Dict[str, Any], incoming: Dict[str, Any]) -> RenameTable:
        table = self.plan(target_resources, incoming)
        self.apply(target_resources, incoming, table)
        return table

    def plan(self, target_resources: Dict[str, Any], incoming: Dict[str, Any]) -> RenameTable:
        """Decide renames without modifying anything."""
        renames: Dict[str, Dict[str, str]] = {}
        for category in RESOURCE_CATEGORIES:
            incoming_entries = self.entries(incoming, category)
            if not incoming_entries:
                continue
            existing = self.entries(target_resources, category)
            taken = set(existing) | set(incoming_entries)
            for name, value in incoming_entries.items():
                if name not in existing or self._same_object(existing[name], value):
                    continue
                new_name = self._fresh_name(name, taken)
                taken.add(new_name)
                renames.setdefault(category, {})[name] = new_name
                logger.debug(f"Renaming /{category} /{name} to /{new_name}")
        return RenameTable.build(renames)

    def apply(self, target_resources: Dict[str, Any], incoming: Dict[str, Any], table: RenameTable) -> None:
        """Insert incoming entries under their (possibly renamed) names."""
        for category in RESOURCE_CATEGORIES:
            incoming_entries = self.entries(incoming, category)
            if not incoming_entries:
                continue
            existing = self._writable_category(target_resources, category)
            for name, value in incoming_entries.items():
                new_name = table.lookup(category, name)
                if new_name in existing:
                    if new_name == name and self._same_object(existing[name], value):
                        continue
                    raise ResourceNameCollisionError(category, new_name)
                existing[new_name] = value

        procsets = self.document.resolve(incoming.get("ProcSet"))
        if isinstance(procsets, list):
            merged = list(self.document.resolve(target_resources.get("ProcSet")) or [])
            for procset in procsets:
                if procset not in merged:
                    merged.append(procset)
            target_resources["ProcSet"] = merged

        for key, value in incoming.items():
            if key not in RESOURCE_CATEGORIES and key != "ProcSet":
                target_resources.setdefault(key, value)

    def verify(
        self,
        target_resources: Dict[str, Any],
        operations: Iterable[Operation],
        incoming: Dict[str, Any],
        table: RenameTable,
    ) -> None:
        """Check that every name the incoming side defined still resolves.

        Raises:
            ResourceNameCollisionError: If reconciliation left a name dangling.
        """
        expected = {
            (category, table.lookup(category, name))
            for category in RESOURCE_CATEGORIES
            for name in self.entries(incoming, category)
        }
        for category, name in used_resource_names(operations):
            if name in self.entries(target_resources, category):
                continue
            if (category, name) in expected:
                raise ResourceNameCollisionError(category, name)
            logger.debug(f"Content uses /{name} which no /{category} resource defines")

    def entries(self, resources: Optional[Dict[str, Any]], category: str) -> Dict[str, Any]:
        if not resources:
            return {}
        entries = self.document.resolve(resources.get(category))
        return entries if isinstance(entries, dict) else {}

    def add_entry(self, target_resources: Dict[str, Any], category: str, prefix: str, value: Any) -> str:
        """Register ``value`` under a fresh ``<prefix><n>`` name and return it.

        An entry already bound to the same object is reused.
        """
        existing = self._writable_category(target_resources, category)
        for name, current in existing.items():
            if self._same_object(current, value):
                return name
        counter = 0
        while f"{prefix}{counter}" in existing:
            counter += 1
        name = f"{prefix}{counter}"
        existing[name] = value
        return name

    def _writable_category(self, target_resources: Dict[str, Any], category: str) -> Dict[str, Any]:
        current = target_resources.get(category)
        if isinstance(current, dict):
            return current
        resolved = self.document.resolve(current)
        # Shared (indirect) category dictionaries are copied before writing
        writable = deep_copy(resolved) if isinstance(resolved, dict) else {}
        target_resources[category] = writable
        return writable

    def _fresh_name(self, name: str, taken: Set[str]) -> str:
        counter = 1
        while f"{name}{self.config.rename_separator}{counter}" in taken:
            counter += 1
        return f"{name}{self.config.rename_separator}{counter}"

    @staticmethod
    def _same_object(current: Any, incoming: Any) -> bool:
        # References compare by target identifier, direct values by content
        return current == incoming
