"""Shape unification: the minimal common type of divergent observations.

Two rules live here:
- scalar_minimum: widen a set of types along Integer < LongInteger < Float,
  with String only unifying with String and everything else going Opaque
- unify_objects: merge object types that describe the same entity, keeping a
  property only when every input has it, and widening it when types differ

Unification is pure: inputs are never modified, a new ObjectType is built.
Widening never invents information, so the result always accepts every
observed instance.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from .cancellation import NEVER_CANCELLED, CancellationToken
from .types import (
    OPAQUE,
    STRING,
    ObjectType,
    Primitive,
    PrimitiveKind,
    StructuralType,
    array_depth,
    innermost,
    wrap,
)

_NUMERIC_RANK: Final[dict[PrimitiveKind, int]] = {
    PrimitiveKind.INTEGER: 0,
    PrimitiveKind.LONG_INTEGER: 1,
    PrimitiveKind.FLOAT: 2,
}


def scalar_minimum(types: Iterable[StructuralType]) -> Primitive:
    """Return the narrowest primitive that accepts every type in `types`."""
    kinds: set[PrimitiveKind] = set()
    for value in types:
        if not isinstance(value, Primitive) or value.kind is PrimitiveKind.OPAQUE:
            return OPAQUE
        kinds.add(value.kind)

    if not kinds:
        raise ValueError("scalar_minimum() requires at least one type")
    if PrimitiveKind.STRING in kinds:
        return STRING if len(kinds) == 1 else OPAQUE
    return Primitive(max(kinds, key=_NUMERIC_RANK.__getitem__))


def unify_types(observed: Sequence[StructuralType], token: CancellationToken = NEVER_CANCELLED) -> StructuralType:
    """Reconcile the differing types seen for one property across objects."""
    token.raise_if_cancelled()

    depths = {array_depth(value) for value in observed}
    if len(depths) != 1:
        return OPAQUE
    depth = depths.pop()

    inner = [innermost(value) for value in observed]
    if all(isinstance(value, ObjectType) for value in inner):
        merged = unify_objects(inner, token)  # type: ignore[arg-type]
        return wrap(OPAQUE if merged.is_empty else merged, depth)
    return wrap(scalar_minimum(inner), depth)


def unify_objects(objects: Sequence[ObjectType], token: CancellationToken = NEVER_CANCELLED) -> ObjectType:
    """Compute the minimal common object type of `objects`.

    The first object is the representative: the result takes its name, depth
    and property order. Properties missing from any input are dropped.
    """
    if not objects:
        raise ValueError("unify_objects() requires at least one object")
    token.raise_if_cancelled()

    representative = objects[0]
    if len(objects) == 1:
        return representative

    properties: list[tuple[str, StructuralType]] = []
    for key, prop_type in representative.properties:
        observed: list[StructuralType] = []
        for other in objects:
            other_type = other.get(key)
            if other_type is None:
                break
            observed.append(other_type)
        else:
            if all(value == prop_type for value in observed):
                properties.append((key, prop_type))
            else:
                properties.append((key, unify_types(observed, token)))

    return ObjectType(name=representative.name, depth=representative.depth, properties=tuple(properties))
