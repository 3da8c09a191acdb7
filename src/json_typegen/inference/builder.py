"""Classification of JSON values and construction of object scopes.

Classification, array unification and object construction recurse into one
another: an object's properties are classified, arrays classify their
elements, and nested objects open a new scope with its own registry.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Final

from ..exceptions import InternalInvariantViolation
from .cancellation import NEVER_CANCELLED, CancellationToken
from .naming import derive_identifier, element_name
from .registry import SubtypeRegistry
from .types import (
    FLOAT,
    INTEGER,
    LONG_INTEGER,
    OPAQUE,
    STRING,
    ArrayType,
    ObjectType,
    Primitive,
    StructuralType,
    innermost,
    replace_object,
)
from .unify import scalar_minimum, unify_objects

INT32_MIN: Final[int] = -(2**31)
INT32_MAX: Final[int] = 2**31 - 1
INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1


def classify_number(value: int | float) -> Primitive:
    """Narrowest numeric kind for a single observed number."""
    if isinstance(value, int):
        if INT32_MIN <= value <= INT32_MAX:
            return INTEGER
        if INT64_MIN <= value <= INT64_MAX:
            return LONG_INTEGER
    return FLOAT


class _ObjectScope:
    """Mutable working state for one object while its properties are classified."""

    def __init__(self, name: str, depth: int, token: CancellationToken) -> None:
        self.name = name
        self.depth = depth
        self.properties: dict[str, StructuralType] = {}
        self.registry = SubtypeRegistry(token)

    def bind(self, key: str, value: StructuralType) -> None:
        inner = innermost(value)
        if isinstance(inner, ObjectType):
            registered = self.registry.register(inner)
            replacement: StructuralType = OPAQUE if registered is None else registered
            value = replace_object(value, inner.name, replacement)
            # Earlier properties may reference the same name with the old shape.
            for other_key, other_value in list(self.properties.items()):
                self.properties[other_key] = replace_object(other_value, inner.name, replacement)
        self.properties[key] = value

    def build(self) -> ObjectType:
        return ObjectType(name=self.name, depth=self.depth, properties=tuple(self.properties.items()))


class TypeBuilder:
    """Build structural types from decoded JSON values.

    One builder serves one inference pass. It holds no state other than the
    cancellation token and a count of objects built.
    """

    def __init__(self, token: CancellationToken = NEVER_CANCELLED) -> None:
        self.token = token
        self.objects_built = 0

    def build_object(self, value: Mapping[str, Any], name: str, depth: int = 0) -> ObjectType:
        """Build the object type `name` at `depth` from a JSON object."""
        self.token.raise_if_cancelled()
        scope = _ObjectScope(name, depth, self.token)
        for key, item in value.items():
            if not isinstance(key, str):
                raise InternalInvariantViolation(f"JSON object keys must be strings, got {type(key)!r}")
            scope.bind(key, self.classify(item, derive_identifier(key), depth))
        self.objects_built += 1
        return scope.build()

    def classify(self, value: Any, type_name: str, depth: int) -> StructuralType:
        """Classify one JSON value found inside an object at `depth`.

        `type_name` is the name an object value would be given. Object results
        are returned unregistered; the enclosing scope registers them.
        """
        if value is None or isinstance(value, bool):
            return OPAQUE
        if isinstance(value, (int, float)):
            return classify_number(value)
        if isinstance(value, str):
            return STRING
        if isinstance(value, list):
            return self.build_array(value, type_name, depth)
        if isinstance(value, dict):
            if not value:
                return OPAQUE
            return self.build_object(value, type_name, depth + 1)
        raise InternalInvariantViolation(f"Unsupported JSON value type: {type(value)!r}")

    def build_array(self, items: Sequence[Any], base_name: str, depth: int) -> ArrayType:
        """Determine the element type of a JSON array held under `base_name`."""
        self.token.raise_if_cancelled()
        if not items:
            return ArrayType(OPAQUE)

        name = element_name(base_name)
        distinct: dict[StructuralType, None] = {}
        for item in items:
            distinct.setdefault(self.classify(item, name, depth), None)
        types = list(distinct)

        if len(types) == 1:
            return ArrayType(types[0])
        if all(isinstance(value, ObjectType) for value in types):
            merged = unify_objects(types, self.token)  # type: ignore[arg-type]
            return ArrayType(OPAQUE if merged.is_empty else merged)
        return ArrayType(scalar_minimum(types))
