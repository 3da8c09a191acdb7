"""Plain-data dump of a structural type tree, for JSON output."""

from __future__ import annotations

from typing import Any

from ..exceptions import InternalInvariantViolation
from ..inference.naming import derive_identifier
from ..inference.types import ArrayType, ObjectType, Primitive, StructuralTree, StructuralType


def type_to_dict(value: StructuralType) -> dict[str, Any]:
    """Describe one property type. Object types are referenced by name."""
    if isinstance(value, Primitive):
        return {"kind": value.kind.value}
    if isinstance(value, ArrayType):
        return {"kind": "array", "element": type_to_dict(value.element)}
    if isinstance(value, ObjectType):
        return {"kind": "object", "name": value.name}
    raise InternalInvariantViolation(f"Unsupported structural type: {type(value)!r}")


def object_to_dict(obj: ObjectType) -> dict[str, Any]:
    return {
        "name": obj.name,
        "depth": obj.depth,
        "properties": [
            {"key": key, "identifier": derive_identifier(key), "type": type_to_dict(prop_type)}
            for key, prop_type in obj.properties
        ],
        "subtypes": [object_to_dict(sub) for sub in obj.subtypes],
    }


def tree_to_dict(tree: StructuralTree) -> dict[str, Any]:
    return {"namespace": tree.namespace, "root": object_to_dict(tree.root)}
