"""Structural type inference for JSON documents.

Walks one decoded JSON object and produces a StructuralTree:

1. CLASSIFY: every value becomes a primitive kind, an array or an object
2. REGISTER: each object scope keeps one sub-type per derived name
3. UNIFY: divergent array elements and same-named sub-types collapse into
   their minimal common shape (see unify.py)

Passes are cancellable and carry all of their state explicitly, so several
documents can be inferred concurrently.
"""

from .builder import TypeBuilder, classify_number
from .cancellation import NEVER_CANCELLED, CancellationToken
from .engine import InferenceOutcome, InferenceRunner, OutcomeStatus, infer_tree, run_inference, split_qualified_name
from .naming import derive_identifier
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
    PrimitiveKind,
    StructuralTree,
    StructuralType,
)
from .unify import scalar_minimum, unify_objects

__all__ = [
    # Model
    "ArrayType",
    "ObjectType",
    "Primitive",
    "PrimitiveKind",
    "StructuralTree",
    "StructuralType",
    "FLOAT",
    "INTEGER",
    "LONG_INTEGER",
    "OPAQUE",
    "STRING",
    # Algorithms
    "TypeBuilder",
    "SubtypeRegistry",
    "classify_number",
    "derive_identifier",
    "scalar_minimum",
    "unify_objects",
    # Passes
    "CancellationToken",
    "NEVER_CANCELLED",
    "InferenceOutcome",
    "InferenceRunner",
    "OutcomeStatus",
    "infer_tree",
    "run_inference",
    "split_qualified_name",
]
