"""Object-graph merging, page import and resource reconciliation."""

from .object_merger import IdentifierMap, MergeResult, ObjectGraphMerger
from .pages import import_pages
from .resource_merger import (
    NAME_OPERANDS,
    RESOURCE_CATEGORIES,
    RenameTable,
    ResourceDeduplicator,
    used_resource_names,
)

__all__ = [
    "IdentifierMap",
    "MergeResult",
    "NAME_OPERANDS",
    "ObjectGraphMerger",
    "RESOURCE_CATEGORIES",
    "RenameTable",
    "ResourceDeduplicator",
    "import_pages",
    "used_resource_names",
]
