"""Infer structural types from JSON documents and generate typed records."""

from .config import settings
from .exceptions import DepthExceededError, InferenceCancelledError, InternalInvariantViolation, JsonTypegenError, ParseError
from .inference import CancellationToken, InferenceOutcome, InferenceRunner, OutcomeStatus, StructuralTree, infer_tree, run_inference
from .rendering import render_csharp, tree_to_dict

__all__ = [
    "settings",
    "infer_tree",
    "run_inference",
    "render_csharp",
    "tree_to_dict",
    "CancellationToken",
    "InferenceOutcome",
    "InferenceRunner",
    "OutcomeStatus",
    "StructuralTree",
    "JsonTypegenError",
    "ParseError",
    "DepthExceededError",
    "InferenceCancelledError",
    "InternalInvariantViolation",
]
