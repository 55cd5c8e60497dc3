"""
Block registry.

Holds named block templates and, per block, the Form XObject created for it
in a target document.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..config import DEFAULT_CONFIG, ComposerConfig
from ..exceptions import MissingBoundingBoxError
from ..objects.content import Operation, encode_operations
from ..objects.document import PdfDocument
from ..objects.model import Name, ObjectId, Stream, deep_copy
from .block import Block, BlockInstance
from .renderers import InlineInstanceRenderer, XObjectInstanceRenderer

logger = logging.getLogger(__name__)


class BlockRegistry:
    """Named block templates with inline and XObject instancing."""

    def __init__(self, config: Optional[ComposerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.document: Optional[PdfDocument] = None
        self._blocks: Dict[str, Block] = {}
        self._xobjects: Dict[str, ObjectId] = {}

    def register(self, block: Block) -> None:
        """Add or replace a block. Replacing drops its XObject handle."""
        if block.id in self._blocks:
            logger.debug(f"Replacing block '{block.id}'")
            self._xobjects.pop(block.id, None)
        self._blocks[block.id] = block

    def register_blocks(self, blocks: Iterable[Block]) -> None:
        for block in blocks:
            self.register(block)

    def get(self, block_id: str) -> Optional[Block]:
        return self._blocks.get(block_id)

    def has(self, block_id: str) -> bool:
        return block_id in self._blocks

    def __contains__(self, block_id: str) -> bool:
        return self.has(block_id)

    def __len__(self) -> int:
        return len(self._blocks)

    def count(self) -> int:
        return len(self._blocks)

    def block_ids(self) -> List[str]:
        return list(self._blocks)

    def remove(self, block_id: str) -> Optional[Block]:
        self._xobjects.pop(block_id, None)
        return self._blocks.pop(block_id, None)

    def clear(self) -> None:
        self._blocks.clear()
        self._xobjects.clear()

    def xobject_handle(self, block_id: str) -> Optional[ObjectId]:
        return self._xobjects.get(block_id)

    # Inline instancing

    def render_instance(self, instance: BlockInstance) -> List[Operation]:
        return self.render_instances([instance])

    def render_instances(self, instances: Iterable[BlockInstance]) -> List[Operation]:
        """Expand instances inline.

        Raises:
            UnknownBlockError: If any instance names an unregistered block
        """
        return InlineInstanceRenderer(self).render(instances)

    # XObject instancing

    def create_xobjects(self, document: PdfDocument) -> Dict[str, ObjectId]:
        """Create one Form XObject per block that does not have one yet.

        Calling this again creates nothing new. Handles are bound to
        ``document``; passing a different document starts over.

        Raises:
            MissingBoundingBoxError: If a block without a handle has no bbox
        """
        switching = self.document is not None and document is not self.document
        kept = {} if switching else self._xobjects
        pending = [block for block_id, block in self._blocks.items() if block_id not in kept]
        for block in pending:
            if block.bbox is None:
                raise MissingBoundingBoxError(block.id)

        if switching:
            logger.warning("XObjects requested for a different document; discarding previous handles")
            self._xobjects.clear()
        self.document = document
        for block in pending:
            self._xobjects[block.id] = document.add_object(self._form_xobject(block))
        if pending:
            logger.debug(f"Created {len(pending)} block XObject(s)")
        return dict(self._xobjects)

    def render_instances_as_xobjects(self, instances: Iterable[BlockInstance], resources: Dict[str, Any]) -> List[Operation]:
        """Draw instances through their Form XObjects.

        Binds the XObjects in ``resources["XObject"]``, reusing existing
        names for the same XObject.

        Raises:
            UnknownBlockError: If any instance names an unregistered block
            MissingXObjectError: If create_xobjects() has not run for a block
        """
        return XObjectInstanceRenderer(self, resources).render(instances)

    def _form_xobject(self, block: Block) -> Stream:
        dictionary: Dict[str, Any] = {
            "Type": Name("XObject"),
            "Subtype": Name("Form"),
            "BBox": list(block.bbox),
        }
        if block.resources:
            dictionary["Resources"] = deep_copy(block.resources)
        return Stream(dictionary, encode_operations(block.operations, self.config.number_precision))

