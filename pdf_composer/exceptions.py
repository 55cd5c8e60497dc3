"""Custom exceptions for PDF Composer."""

from typing import Optional


class ComposerError(Exception):
    """Base exception for PDF Composer errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ParseError(ComposerError):
    """Exception raised when a source PDF or content stream cannot be parsed."""

    pass


class UnknownSourceError(ComposerError):
    """Exception raised when an embed refers to a source that was never loaded."""

    def __init__(self, identifier: str):
        super().__init__("PDF source not loaded", identifier)
        self.identifier = identifier


class MergeError(ComposerError):
    """Exception raised while merging object graphs."""

    pass


class MissingObjectError(MergeError):
    """A reference points at an object absent from the source document."""

    def __init__(self, object_id, source_tag: Optional[str] = None):
        details = f"{object_id[0]} {object_id[1]} R"
        if source_tag:
            details = f"{details} in '{source_tag}'"
        super().__init__("Referenced object does not exist", details)
        self.object_id = object_id
        self.source_tag = source_tag


class UnsupportedObjectTypeError(MergeError):
    """The merger met an object kind it cannot safely rewrite."""

    def __init__(self, type_name: str, object_id=None):
        details = type_name
        if object_id is not None:
            details = f"{type_name} in object {object_id[0]} {object_id[1]} R"
        super().__init__("Unsupported object type", details)
        self.type_name = type_name
        self.object_id = object_id


class LayoutError(ComposerError):
    """Exception raised during layout calculation."""

    pass


class LayoutArityError(LayoutError):
    """A layout strategy was given a page count it cannot place."""

    def __init__(self, strategy: str, expected: int, actual: int):
        super().__init__(
            f"{strategy} layout requires exactly {expected} page(s)",
            f"got {actual}",
        )
        self.strategy = strategy
        self.expected = expected
        self.actual = actual


class InvalidScaleError(LayoutError):
    """Scale factors and size limits must be strictly positive."""

    def __init__(self, value: float, field_name: str = "scale"):
        super().__init__(f"Invalid {field_name}", f"{value!r} is not > 0")
        self.value = value
        self.field_name = field_name


class BlockError(ComposerError):
    """Exception raised by the block registry."""

    pass


class UnknownBlockError(BlockError):
    def __init__(self, block_id: str):
        super().__init__("Block not registered", block_id)
        self.block_id = block_id


class MissingBoundingBoxError(BlockError):
    def __init__(self, block_id: str):
        super().__init__("Block has no bounding box", block_id)
        self.block_id = block_id


class MissingXObjectError(BlockError):
    """A block was rendered as an XObject before create_xobjects() ran for it."""

    def __init__(self, block_id: str):
        super().__init__("Block XObject has not been created", block_id)
        self.block_id = block_id


class ResourceError(ComposerError):
    """Exception raised while reconciling resource dictionaries."""

    pass


class ResourceNameCollisionError(ResourceError, RuntimeError):
    """A resource name still fails to resolve after reconciliation.

    This signals a bug in the deduplicator, not bad input.
    """

    def __init__(self, category: str, name: str):
        super().__init__("Unresolved resource name after reconciliation", f"/{category} /{name}")
        self.category = category
        self.name = name
