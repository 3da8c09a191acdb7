"""Renderers for inferred structural type trees."""

from .csharp import CSharpRenderer, render_csharp
from .model import tree_to_dict, type_to_dict

__all__ = [
    "CSharpRenderer",
    "render_csharp",
    "tree_to_dict",
    "type_to_dict",
]
