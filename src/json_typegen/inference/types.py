"""Structural type model produced by inference.

A structural type is one of:
- Primitive: integer, long integer, float, string or opaque
- ArrayType: an element type, arbitrarily nested
- ObjectType: an ordered set of named properties

Design goals:
- Immutable (frozen dataclasses); unification builds new values
- Equality is structural: object names and depths never take part
- Hashes agree with equality so types can key sets and dicts
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias


class PrimitiveKind(str, Enum):
    INTEGER = "integer"
    LONG_INTEGER = "long"
    FLOAT = "float"
    STRING = "string"
    OPAQUE = "opaque"


@dataclass(frozen=True, slots=True)
class Primitive:
    kind: PrimitiveKind


@dataclass(frozen=True, slots=True)
class ArrayType:
    element: StructuralType


@dataclass(frozen=True, slots=True, eq=False)
class ObjectType:
    """A record type with ordered properties keyed by their original JSON key.

    `depth` is the nesting level from the document root (root = 0). It only
    drives rendering; two objects at different depths can be equal.
    """

    name: str
    depth: int
    properties: tuple[tuple[str, StructuralType], ...] = ()
    _hash: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_hash", hash(frozenset(self.properties)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectType):
            return NotImplemented
        if self is other:
            return True
        if self._hash != other._hash or len(self.properties) != len(other.properties):
            return False
        return dict(self.properties) == dict(other.properties)

    def __hash__(self) -> int:
        return self._hash

    @property
    def is_empty(self) -> bool:
        return not self.properties

    def keys(self) -> list[str]:
        return [key for key, _ in self.properties]

    def get(self, key: str) -> StructuralType | None:
        for prop_key, prop_type in self.properties:
            if prop_key == key:
                return prop_type
        return None

    @property
    def subtypes(self) -> tuple[ObjectType, ...]:
        """Object types referenced by this object's properties, one per name."""
        seen: dict[str, ObjectType] = {}
        for _, prop_type in self.properties:
            inner = innermost(prop_type)
            if isinstance(inner, ObjectType) and inner.name not in seen:
                seen[inner.name] = inner
        return tuple(seen.values())

    def referencing_key(self, subtype_name: str) -> str | None:
        """Return the first property key whose type refers to `subtype_name`."""
        for key, prop_type in self.properties:
            inner = innermost(prop_type)
            if isinstance(inner, ObjectType) and inner.name == subtype_name:
                return key
        return None


StructuralType: TypeAlias = Primitive | ArrayType | ObjectType


INTEGER = Primitive(PrimitiveKind.INTEGER)
LONG_INTEGER = Primitive(PrimitiveKind.LONG_INTEGER)
FLOAT = Primitive(PrimitiveKind.FLOAT)
STRING = Primitive(PrimitiveKind.STRING)
OPAQUE = Primitive(PrimitiveKind.OPAQUE)

NUMERIC_KINDS = frozenset({PrimitiveKind.INTEGER, PrimitiveKind.LONG_INTEGER, PrimitiveKind.FLOAT})


def array_depth(value: StructuralType) -> int:
    depth = 0
    while isinstance(value, ArrayType):
        value = value.element
        depth += 1
    return depth


def innermost(value: StructuralType) -> StructuralType:
    while isinstance(value, ArrayType):
        value = value.element
    return value


def wrap(value: StructuralType, depth: int) -> StructuralType:
    for _ in range(depth):
        value = ArrayType(value)
    return value


def replace_object(value: StructuralType, name: str, replacement: StructuralType) -> StructuralType:
    """Swap the object named `name` inside `value`, keeping any array wrapping."""
    inner = innermost(value)
    if isinstance(inner, ObjectType) and inner.name == name:
        return wrap(replacement, array_depth(value))
    return value


@dataclass(frozen=True, slots=True)
class StructuralTree:
    """The finished result of one inference pass."""

    root: ObjectType
    namespace: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.root.name}" if self.namespace else self.root.name

    def iter_objects(self) -> Iterator[ObjectType]:
        """Depth-first, pre-order walk over the root and every owned sub-type."""
        stack = [self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.subtypes))

    @property
    def object_count(self) -> int:
        return sum(1 for _ in self.iter_objects())
