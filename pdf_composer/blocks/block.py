"""Reusable content blocks and their placed instances."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..objects.content import Operation
from ..transform import Transform


@dataclass(frozen=True)
class Block:
    """A named, immutable sequence of content operations.

    Attributes:
        id: Registry key
        operations: Operations drawn for every instance, verbatim
        bbox: ``(x0, y0, x1, y1)`` in block space; required for XObject rendering
        resources: Resource dictionary the operations need, if any
    """

    id: str
    operations: Tuple[Operation, ...] = field(default_factory=tuple)
    bbox: Optional[Tuple[float, float, float, float]] = None
    resources: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not isinstance(self.operations, tuple):
            object.__setattr__(self, "operations", tuple(self.operations))
        if self.bbox is not None:
            object.__setattr__(self, "bbox", tuple(float(v) for v in self.bbox))

    @classmethod
    def from_size(cls, block_id: str, operations: Iterable[Operation], width: float, height: float) -> "Block":
        """Block whose bbox spans ``(0, 0)`` to ``(width, height)``."""
        return cls(block_id, tuple(operations), (0.0, 0.0, width, height))

    def with_bbox(self, x0: float, y0: float, x1: float, y1: float) -> "Block":
        return replace(self, bbox=(x0, y0, x1, y1))

    def with_resources(self, resources: Dict[str, Any]) -> "Block":
        return replace(self, resources=resources)

    def with_operations(self, operations: Iterable[Operation]) -> "Block":
        """Copy with ``operations`` appended."""
        return replace(self, operations=self.operations + tuple(operations))

    @property
    def width(self) -> float:
        return 0.0 if self.bbox is None else self.bbox[2] - self.bbox[0]

    @property
    def height(self) -> float:
        return 0.0 if self.bbox is None else self.bbox[3] - self.bbox[1]


@dataclass(frozen=True)
class BlockInstance:
    """A placement of a registered block."""

    block_id: str
    transform: Transform = field(default_factory=Transform.identity)

    @classmethod
    def at(cls, block_id: str, x: float, y: float) -> "BlockInstance":
        return cls(block_id, Transform.translate(x, y))

    @classmethod
    def at_scaled(cls, block_id: str, x: float, y: float, scale: float) -> "BlockInstance":
        return cls(block_id, Transform.translate_scale(x, y, scale))

    @classmethod
    def placed(cls, block_id: str, x: float, y: float, sx: float, sy: float, degrees: float) -> "BlockInstance":
        return cls(block_id, Transform.full(x, y, sx, sy, degrees))


def merge_blocks(block_id: str, blocks: Iterable[Block]) -> Block:
    """Concatenate blocks into one.

    The bbox is the union of the parts' boxes (or None if any part has
    none), and resources are merged category by category, first entry wins.
    """
    operations: List[Operation] = []
    resources: Dict[str, Any] = {}
    bbox: Optional[Tuple[float, float, float, float]] = None
    has_bbox = True
    for block in blocks:
        operations.extend(block.operations)
        if block.bbox is None:
            has_bbox = False
        elif bbox is None:
            bbox = block.bbox
        else:
            bbox = (
                min(bbox[0], block.bbox[0]),
                min(bbox[1], block.bbox[1]),
                max(bbox[2], block.bbox[2]),
                max(bbox[3], block.bbox[3]),
            )
        for category, entries in (block.resources or {}).items():
            if isinstance(entries, dict):
                merged = resources.setdefault(category, {})
                for name, value in entries.items():
                    merged.setdefault(name, value)
            else:
                resources.setdefault(category, entries)
    return Block(block_id, tuple(operations), bbox if has_bbox else None, resources or None)
