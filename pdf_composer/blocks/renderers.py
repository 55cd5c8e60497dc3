"""Instance renderers: inline expansion and Form XObject invocation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from ..exceptions import MissingXObjectError, UnknownBlockError
from ..objects.content import Operation, invoke_xobject, restore_state, save_state
from ..objects.model import ObjectId, Reference, deep_copy
from .block import BlockInstance

if TYPE_CHECKING:
    from .registry import BlockRegistry

logger = logging.getLogger(__name__)


class InstanceRenderer(ABC):
    """Turns block instances into content operations.

    Every instance is validated before anything is emitted or written, so a
    failing call leaves no partial output behind.
    """

    def __init__(self, registry: "BlockRegistry"):
        self.registry = registry

    def render(self, instances: Iterable[BlockInstance]) -> List[Operation]:
        instances = list(instances)
        self.validate(instances)
        operations: List[Operation] = []
        for instance in instances:
            operations.extend(self.render_instance(instance))
        return operations

    def validate(self, instances: List[BlockInstance]) -> None:
        for instance in instances:
            if not self.registry.has(instance.block_id):
                raise UnknownBlockError(instance.block_id)

    @abstractmethod
    def render_instance(self, instance: BlockInstance) -> List[Operation]:
        """Operations for one validated instance."""


class InlineInstanceRenderer(InstanceRenderer):
    """Expands each instance to ``q cm <block operations> Q``."""

    def render_instance(self, instance: BlockInstance) -> List[Operation]:
        block = self.registry.get(instance.block_id)
        return [save_state(), instance.transform.to_operation(), *block.operations, restore_state()]


class XObjectInstanceRenderer(InstanceRenderer):
    """Draws each instance as ``q cm /Name Do Q``.

    The block's Form XObject is bound in ``resources["XObject"]``. A name
    already bound to the same XObject is reused; otherwise the first unused
    ``<prefix><n>`` name is taken.
    """

    def __init__(self, registry: "BlockRegistry", resources: Dict[str, Any], prefix: Optional[str] = None):
        super().__init__(registry)
        self.resources = resources
        self.prefix = prefix or registry.config.block_xobject_prefix

    def validate(self, instances: List[BlockInstance]) -> None:
        super().validate(instances)
        for instance in instances:
            if self.registry.xobject_handle(instance.block_id) is None:
                raise MissingXObjectError(instance.block_id)

    def render_instance(self, instance: BlockInstance) -> List[Operation]:
        name = self.resource_name(self.registry.xobject_handle(instance.block_id))
        return [save_state(), instance.transform.to_operation(), invoke_xobject(name), restore_state()]

    def resource_name(self, xobject_id: ObjectId) -> str:
        xobjects = self._xobject_entries()
        reference = Reference(xobject_id)
        for name, value in xobjects.items():
            if value == reference:
                return name
        counter = 0
        while f"{self.prefix}{counter}" in xobjects:
            counter += 1
        name = f"{self.prefix}{counter}"
        xobjects[name] = reference
        logger.debug(f"Bound XObject {xobject_id} as /{name}")
        return name

    def _xobject_entries(self) -> Dict[str, Any]:
        current = self.resources.get("XObject")
        if isinstance(current, dict):
            return current
        document = self.registry.document
        resolved = document.resolve(current) if document is not None else None
        entries = deep_copy(resolved) if isinstance(resolved, dict) else {}
        self.resources["XObject"] = entries
        return entries
