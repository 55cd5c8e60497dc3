"""In-memory PDF value types.

PDF values map onto Python values as follows:

==============  ==========================================
PDF             Python
==============  ==========================================
null            ``None``
boolean         ``bool``
integer / real  ``int`` / ``float``
name            :class:`Name` (stored without the slash)
string          ``bytes`` (raw) or ``str`` (text)
array           ``list``
dictionary      ``dict`` with ``str`` keys (no slash)
indirect ref    :class:`Reference`
stream          :class:`Stream`
==============  ==========================================

Anything else is an unsupported object kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, NamedTuple


class ObjectId(NamedTuple):
    """Identifier of an indirect object inside one document."""

    number: int
    generation: int = 0

    def __str__(self) -> str:
        return f"{self.number} {self.generation} R"


class Name(str):
    """A PDF name such as ``/Font``, held without its leading slash."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Name({str.__repr__(self)})"


@dataclass(frozen=True)
class Reference:
    """Indirect reference to an object in the same document."""

    id: ObjectId

    @classmethod
    def to(cls, number: int, generation: int = 0) -> "Reference":
        return cls(ObjectId(number, generation))


@dataclass
class Stream:
    """Stream object: dictionary plus payload bytes.

    ``data`` holds the bytes exactly as stored, i.e. still encoded with the
    filters named by ``dictionary["Filter"]``. ``Length`` is computed on save
    and never stored.
    """

    dictionary: Dict[str, Any] = field(default_factory=dict)
    data: bytes = b""

    @property
    def is_filtered(self) -> bool:
        return self.dictionary.get("Filter") is not None


SCALAR_TYPES = (type(None), bool, int, float, str, bytes)


def type_name(value: Any) -> str:
    if isinstance(value, Name):
        return "name"
    if isinstance(value, Reference):
        return "reference"
    if isinstance(value, Stream):
        return "stream"
    if isinstance(value, dict):
        return "dictionary"
    if isinstance(value, list):
        return "array"
    if isinstance(value, SCALAR_TYPES):
        return "null" if value is None else type(value).__name__
    return type(value).__name__


def iter_references(value: Any) -> Iterator[Reference]:
    """Yield every reference nested in ``value`` without following it.

    Raises:
        TypeError: If ``value`` contains an unsupported object kind.
    """
    pending = [value]
    while pending:
        current = pending.pop()
        if isinstance(current, Reference):
            yield current
        elif isinstance(current, Stream):
            pending.append(current.dictionary)
        elif isinstance(current, dict):
            pending.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            pending.extend(reversed(current))
        elif not isinstance(current, SCALAR_TYPES):
            raise TypeError(f"Unsupported PDF value of type {type(current).__name__}")


def deep_copy(value: Any) -> Any:
    """Copy containers, leaving immutable scalars and stream payloads shared."""
    if isinstance(value, Stream):
        return Stream(deep_copy(value.dictionary), value.data)
    if isinstance(value, dict):
        return {key: deep_copy(item) for key, item in value.items()}
    if isinstance(value, list):
        return [deep_copy(item) for item in value]
    return value


def as_number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)
