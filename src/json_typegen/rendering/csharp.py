"""Render a structural type tree as C# classes for System.Text.Json."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Final
from xml.sax.saxutils import escape

from ..config import NumberHandling, OutputSettings
from ..exceptions import InternalInvariantViolation
from ..inference.naming import derive_identifier
from ..inference.types import (
    NUMERIC_KINDS,
    ArrayType,
    ObjectType,
    Primitive,
    PrimitiveKind,
    StructuralTree,
    StructuralType,
    array_depth,
    innermost,
)

GENERATOR_NAME: Final[str] = "json-typegen"

LICENSE_NOTICE: Final[tuple[str, ...]] = (
    "/*",
    f" * Generated by {GENERATOR_NAME}",
    " *",
    f" * The effect of the {GENERATOR_NAME} license does not extend to this code,",
    f" * which is a deliverable of {GENERATOR_NAME}. Therefore, no {GENERATOR_NAME}",
    " * license is required to use, copy, modify, merge, publish, distribute,",
    " * sublicense, and/or sell this generated code.",
    " */",
)

PRIMITIVE_NAMES: Final[dict[PrimitiveKind, str]] = {
    PrimitiveKind.INTEGER: "int",
    PrimitiveKind.LONG_INTEGER: "long",
    PrimitiveKind.FLOAT: "double",
    PrimitiveKind.STRING: "string",
    PrimitiveKind.OPAQUE: "object",
}

_NUMBER_HANDLING_NAMES: Final[dict[NumberHandling, str]] = {
    NumberHandling.ALLOW_READING_FROM_STRING: "AllowReadingFromString",
    NumberHandling.WRITE_AS_STRING: "WriteAsString",
    NumberHandling.ALLOW_NAMED_FLOATING_POINT_LITERALS: "AllowNamedFloatingPointLiterals",
}


def class_name(obj: ObjectType, is_root: bool) -> str:
    return obj.name if is_root else f"Json{obj.name}Type"


def number_handling_expression(flags: NumberHandling) -> str:
    """Format flags the way C# writes them, e.g. ``JsonNumberHandling.A | JsonNumberHandling.B``."""
    names = [name for flag, name in _NUMBER_HANDLING_NAMES.items() if flag in flags]
    if not names:
        return "JsonNumberHandling.Strict"
    return " | ".join(f"JsonNumberHandling.{name}" for name in names)


def _string_literal(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _member_names(obj: ObjectType, owner_name: str) -> dict[str, str]:
    """Map each JSON key of `obj` to a unique C# member name."""
    taken = {owner_name}
    names: dict[str, str] = {}
    for key in obj.keys():
        base = derive_identifier(key)
        candidate, suffix = base, 2
        while candidate in taken:
            candidate = f"{base}{suffix}"
            suffix += 1
        taken.add(candidate)
        names[key] = candidate
    return names


def _nested_class_names(obj: ObjectType, reserved: Iterable[str]) -> dict[str, str]:
    """Map each sub-type of `obj` to a class name not used by an enclosing class or a member."""
    taken = set(reserved)
    names: dict[str, str] = {}
    for sub in obj.subtypes:
        base = class_name(sub, is_root=False)
        candidate, suffix = base, 2
        while candidate in taken:
            candidate = f"{base}{suffix}"
            suffix += 1
        taken.add(candidate)
        names[sub.name] = candidate
    return names


class CSharpRenderer:
    """Emit nested `public sealed class` declarations for a StructuralTree.

    Nested object types are declared inside the class that owns them and
    indented by their depth.
    """

    def __init__(self, options: OutputSettings | None = None) -> None:
        self.options = options or OutputSettings()

    def render(self, tree: StructuralTree) -> str:
        opts = self.options
        lines: list[str] = ["", *LICENSE_NOTICE, ""]
        if opts.emit_nullable_annotations:
            lines += ["#nullable enable", ""]
        lines += ["using System.Text.Json.Serialization;", ""]

        block_namespace = bool(tree.namespace) and not opts.file_scoped_namespaces
        if tree.namespace:
            if opts.file_scoped_namespaces:
                lines += [f"namespace {tree.namespace};", ""]
            else:
                lines += [f"namespace {tree.namespace}", "{"]

        base_indent = 1 if block_namespace else 0
        root = tree.root
        self._render_class(lines, root, class_name(root, is_root=True), f"Represents {root.name}.", base_indent)

        if block_namespace:
            lines.append(self._close("", f"namespace {tree.namespace}"))
        return "\n".join(lines) + "\n"

    def _close(self, indent: str, label: str) -> str:
        if self.options.emit_end_of_block_markers:
            return f"{indent}}} // {label}"
        return f"{indent}}}"

    def _doc(self, lines: list[str], indent: str, text: str) -> None:
        if self.options.emit_documentation:
            lines += [f"{indent}/// <summary>", f"{indent}/// {text}", f"{indent}/// </summary>"]

    def _render_class(
        self,
        lines: list[str],
        obj: ObjectType,
        name: str,
        summary: str,
        base_indent: int,
        enclosing: tuple[str, ...] = (),
    ) -> None:
        indent = "\t" * (base_indent + obj.depth)
        inner = indent + "\t"
        members = _member_names(obj, name)
        nested = _nested_class_names(obj, (*enclosing, name, *members.values()))

        self._doc(lines, indent, summary)
        lines += [f"{indent}public sealed class {name}", f"{indent}{{"]

        for key, prop_type in obj.properties:
            self._doc(lines, inner, f"Gets or sets the {escape(key)}.")
            lines.append(f"{inner}[JsonPropertyName({_string_literal(key)})]")
            handling = self.options.number_handling
            if handling and self._is_numeric(prop_type):
                lines.append(f"{inner}[JsonNumberHandling({number_handling_expression(handling)})]")
            lines.append(f"{inner}public {self.type_name(prop_type, nested)} {members[key]} {{ get; set; }}")
            lines.append("")

        self._doc(lines, inner, f'Initializes a new instance of the <see cref="{name}"/> class.')
        lines.append(f"{inner}public {name}() {{ }}")

        for sub in obj.subtypes:
            key = obj.referencing_key(sub.name)
            assert key is not None
            ref = members[key]
            prop_type = obj.get(key)
            assert prop_type is not None
            if array_depth(prop_type) > 0:
                sub_summary = f'Represents an element of <see cref="{ref}"/>.'
            else:
                sub_summary = f'Represents a <see cref="{ref}"/>.'
            lines.append("")
            self._render_class(lines, sub, nested[sub.name], sub_summary, base_indent, (*enclosing, name))

        lines.append(self._close(indent, f"public sealed class {name}"))

    @staticmethod
    def _is_numeric(value: StructuralType) -> bool:
        inner = innermost(value)
        return isinstance(inner, Primitive) and inner.kind in NUMERIC_KINDS

    def type_name(self, value: StructuralType, class_names: Mapping[str, str] | None = None) -> str:
        """C# spelling of a property type, with `?` on reference types when enabled.

        `class_names` maps sub-type names to the class names allocated for them.
        """
        name = self._bare_type_name(value, class_names or {})
        if self.options.emit_nullable_annotations and self._is_reference_type(value):
            return name + "?"
        return name

    def _bare_type_name(self, value: StructuralType, class_names: Mapping[str, str]) -> str:
        if isinstance(value, Primitive):
            return PRIMITIVE_NAMES[value.kind]
        if isinstance(value, ArrayType):
            return self._bare_type_name(value.element, class_names) + "[]"
        if isinstance(value, ObjectType):
            return class_names.get(value.name) or class_name(value, is_root=False)
        raise InternalInvariantViolation(f"Unsupported structural type: {type(value)!r}")

    @staticmethod
    def _is_reference_type(value: StructuralType) -> bool:
        if isinstance(value, Primitive):
            return value.kind not in NUMERIC_KINDS
        return True


def render_csharp(tree: StructuralTree, options: OutputSettings | None = None) -> str:
    return CSharpRenderer(options).render(tree)
