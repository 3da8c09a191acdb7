"""Identifier derivation from raw JSON keys."""

from __future__ import annotations

import re
from typing import Final

DIGIT_PREFIX: Final[str] = "_"
ELEMENT_SUFFIX: Final[str] = "Element"

_SEPARATOR_RUN_RE = re.compile(r"[^A-Za-z0-9]+([A-Za-z0-9])")
_TRAILING_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+$")


def derive_identifier(key: str) -> str:
    """Convert a JSON key into a PascalCase identifier.

    Runs of non-alphanumeric characters are removed and the character after
    each run is upper-cased, as is the first character. Identifiers that would
    start with a digit get ``DIGIT_PREFIX``.

    >>> derive_identifier("user_name")
    'UserName'
    >>> derive_identifier("2fa-enabled")
    '_2faEnabled'
    """
    collapsed = _SEPARATOR_RUN_RE.sub(lambda m: m.group(1).upper(), key)
    collapsed = _TRAILING_SEPARATOR_RE.sub("", collapsed)
    if not collapsed:
        return DIGIT_PREFIX
    identifier = collapsed[0].upper() + collapsed[1:]
    if identifier[0].isdigit():
        identifier = DIGIT_PREFIX + identifier
    return identifier


def element_name(base: str) -> str:
    """Base name for the element type of an array held under `base`."""
    return base + ELEMENT_SUFFIX
