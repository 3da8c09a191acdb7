"""Per-scope registry of the object sub-types discovered inside one object."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .cancellation import NEVER_CANCELLED, CancellationToken
from .types import ObjectType
from .unify import unify_objects

logger = logging.getLogger(__name__)


class SubtypeRegistry:
    """Sub-types owned by one object scope, keyed by their derived name.

    Names are unique within the scope. Registering a type under a name that is
    already taken by a different shape unifies the two; if nothing survives the
    name is retired and every reference to it becomes opaque.
    """

    def __init__(self, token: CancellationToken = NEVER_CANCELLED) -> None:
        self._token = token
        self._types: dict[str, ObjectType] = {}
        self._retired: set[str] = set()

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self) -> Iterator[ObjectType]:
        return iter(self._types.values())

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def get(self, name: str) -> ObjectType | None:
        return self._types.get(name)

    def find_equal(self, candidate: ObjectType) -> ObjectType | None:
        """Structural lookup, ignoring names."""
        for registered in self._types.values():
            if registered == candidate:
                return registered
        return None

    def register(self, candidate: ObjectType) -> ObjectType | None:
        """Insert `candidate`, reconciling it with a same-named sub-type.

        Returns the type now registered under the candidate's name, or None
        when that name has been retired.
        """
        self._token.raise_if_cancelled()
        name = candidate.name
        if name in self._retired:
            return None

        existing = self._types.get(name)
        if existing is None:
            self._types[name] = candidate
            return candidate
        if existing == candidate:
            return existing

        merged = unify_objects([existing, candidate], self._token)
        if merged.is_empty:
            logger.debug(f"Sub-type {name} has no common properties, widening to opaque")
            del self._types[name]
            self._retired.add(name)
            return None

        self._types[name] = merged
        return merged
