"""Decode JSON documents under the configured parse-time limits."""

from __future__ import annotations

import json
import logging
from typing import Any

import json5

from .config import ParserSettings
from .exceptions import DepthExceededError, ParseError

logger = logging.getLogger(__name__)


def check_nesting_depth(value: Any, max_depth: int) -> int:
    """Return the container nesting depth of `value`, failing past `max_depth`.

    A top-level object or array counts as depth 1; scalars are depth 0.
    """
    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 1)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if level > max_depth:
            raise DepthExceededError(max_depth)
        deepest = max(deepest, level)
        stack.extend((child, level + 1) for child in children)
    return deepest


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def parse_document(text: str, options: ParserSettings | None = None) -> dict[str, Any]:
    """Decode `text` into a JSON object.

    Strict RFC 8259 JSON is decoded with the standard library. When trailing
    commas or comments are allowed the JSON5 decoder is used instead.

    Raises:
        ParseError: the text is not valid JSON, or its root is not an object.
        DepthExceededError: nesting exceeds ``options.max_nesting_depth``.
    """
    options = options or ParserSettings()
    text = text.lstrip("\ufeff")

    try:
        if options.lenient:
            value = json5.loads(text)
        else:
            value = json.loads(text, parse_constant=_reject_constant)
    except RecursionError as e:
        raise DepthExceededError(options.max_nesting_depth) from e
    except ValueError as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    check_nesting_depth(value, options.max_nesting_depth)

    if not isinstance(value, dict):
        raise ParseError(f"The JSON document must be an object, got {type(value).__name__}")

    logger.debug(f"Parsed JSON document ({len(text)} chars, lenient={options.lenient})")
    return value
