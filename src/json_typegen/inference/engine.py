"""Inference passes: one JSON document in, one terminal outcome out.

A pass either completes with a StructuralTree or ends in exactly one failure
kind (parse error, depth exceeded, cancelled). Nothing partial escapes.
`InternalInvariantViolation` is not an outcome: it propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..config import ParserSettings
from ..exceptions import DepthExceededError, InferenceCancelledError, JsonTypegenError, ParseError
from ..observability import bind_pass_context, clear_pass_context, get_pass_logger
from ..parsing import check_nesting_depth, parse_document
from .builder import TypeBuilder
from .cancellation import NEVER_CANCELLED, CancellationToken
from .types import StructuralTree

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """Terminal state of an inference pass."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class InferenceOutcome:
    status: OutcomeStatus
    tree: StructuralTree | None = None
    error: JsonTypegenError | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    def unwrap(self) -> StructuralTree:
        """Return the tree, or raise the error that ended the pass."""
        if self.tree is not None:
            return self.tree
        assert self.error is not None
        raise self.error


def split_qualified_name(qualified_name: str) -> tuple[str, str]:
    """Split ``Namespace.Sub.TypeName`` into ``("Namespace.Sub", "TypeName")``."""
    namespace, _, name = qualified_name.strip().rpartition(".")
    if not name:
        raise ValueError(f"A type name is required, got {qualified_name!r}")
    return namespace, name


def infer_tree(
    document: str | Mapping[str, Any],
    root_name: str,
    namespace: str = "",
    *,
    parser: ParserSettings | None = None,
    token: CancellationToken = NEVER_CANCELLED,
) -> StructuralTree:
    """Infer the structural type tree of one JSON document.

    Args:
        document: JSON text, or an already decoded JSON object.
        root_name: Name of the root type.
        namespace: Namespace or module qualifier for the root type.
        parser: Parse-time options; defaults read from the environment.
        token: Cancellation token checked at every object, array and merge.

    Raises:
        ParseError, DepthExceededError, InferenceCancelledError,
        InternalInvariantViolation
    """
    if not root_name:
        raise ValueError("root_name must not be empty")
    token.raise_if_cancelled()

    parser = parser or ParserSettings()
    if isinstance(document, str):
        value = parse_document(document, parser)
    elif isinstance(document, Mapping):
        check_nesting_depth(document, parser.max_nesting_depth)
        value = document
    else:
        raise ParseError(f"The JSON document must be an object, got {type(document).__name__}")

    builder = TypeBuilder(token)
    try:
        root = builder.build_object(value, root_name, depth=0)
    except RecursionError as e:
        raise DepthExceededError(parser.max_nesting_depth) from e
    token.raise_if_cancelled()
    logger.debug(f"Built {builder.objects_built} object types for {root_name}")
    return StructuralTree(root=root, namespace=namespace)


def run_inference(
    document: str | Mapping[str, Any],
    root_name: str,
    namespace: str = "",
    *,
    parser: ParserSettings | None = None,
    token: CancellationToken = NEVER_CANCELLED,
) -> InferenceOutcome:
    """Run one pass and report its terminal outcome instead of raising."""
    pass_logger = get_pass_logger().bind(root_name=root_name)
    started = time.monotonic()
    pass_logger.info("pass_started")

    try:
        tree = infer_tree(document, root_name, namespace, parser=parser, token=token)
    except InferenceCancelledError as e:
        elapsed = time.monotonic() - started
        pass_logger.info("pass_cancelled", reason=str(e))
        return InferenceOutcome(status=OutcomeStatus.CANCELLED, error=e, duration_seconds=elapsed)
    except ParseError as e:
        elapsed = time.monotonic() - started
        pass_logger.warning("pass_failed", error=str(e), error_type=type(e).__name__)
        return InferenceOutcome(status=OutcomeStatus.FAILED, error=e, duration_seconds=elapsed)

    elapsed = time.monotonic() - started
    pass_logger.info("pass_completed", objects=tree.object_count, duration_seconds=round(elapsed, 4))
    return InferenceOutcome(status=OutcomeStatus.SUCCEEDED, tree=tree, duration_seconds=elapsed)


class InferenceRunner:
    """Run inference passes for one document off the event loop.

    Starting a pass cancels the previous one, so at most one pass per runner
    does work at a time. The superseded pass ends with a CANCELLED outcome.
    """

    def __init__(self, document_id: str = "default") -> None:
        self.document_id = document_id
        self._token: CancellationToken | None = None

    @property
    def running(self) -> bool:
        return self._token is not None

    def cancel(self, reason: str = "Cancelled by caller") -> bool:
        """Cancel the in-flight pass. Returns False when nothing was running."""
        token, self._token = self._token, None
        if token is None:
            return False
        token.cancel(reason)
        return True

    async def run(
        self,
        document: str | Mapping[str, Any],
        root_name: str,
        namespace: str = "",
        *,
        parser: ParserSettings | None = None,
    ) -> InferenceOutcome:
        if self.cancel("Superseded by a newer inference pass"):
            logger.info(f"Cancelled previous inference pass for {self.document_id}")

        token = CancellationToken()
        self._token = token
        bind_pass_context(uuid.uuid4().hex, self.document_id)
        try:
            return await asyncio.to_thread(run_inference, document, root_name, namespace, parser=parser, token=token)
        except asyncio.CancelledError:
            token.cancel("Caller was cancelled")
            raise
        finally:
            if self._token is token:
                self._token = None
            clear_pass_context()
