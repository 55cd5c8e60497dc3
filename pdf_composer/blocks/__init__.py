"""Reusable content blocks with inline and Form XObject instancing."""

from .block import Block, BlockInstance, merge_blocks
from .registry import BlockRegistry
from .renderers import InlineInstanceRenderer, InstanceRenderer, XObjectInstanceRenderer

__all__ = [
    "Block",
    "BlockInstance",
    "BlockRegistry",
    "InlineInstanceRenderer",
    "InstanceRenderer",
    "XObjectInstanceRenderer",
    "merge_blocks",
]
