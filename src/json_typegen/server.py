"""MCP server exposing JSON type inference as tools."""

import json
import logging
import time
from typing import Any

from fastmcp import FastMCP

from .config import settings
from .inference import InferenceOutcome, InferenceRunner, split_qualified_name
from .observability import setup_structured_logging
from .rendering import render_csharp, tree_to_dict

logger = logging.getLogger("json_typegen")
logger.setLevel(getattr(logging, settings.server.logging_level.upper()))

# One runner per document with a pass in flight; a newer request cancels the older pass
_runners: dict[str, InferenceRunner] = {}


def get_runner(document_id: str) -> InferenceRunner:
    runner = _runners.get(document_id)
    if runner is None:
        runner = _runners[document_id] = InferenceRunner(document_id)
    return runner


def _failure(outcome: InferenceOutcome) -> dict[str, Any]:
    return {
        "success": False,
        "status": outcome.status.value,
        "error_type": type(outcome.error).__name__,
        "error": str(outcome.error),
    }


def serve() -> FastMCP:
    """Create the MCP server with all inference tools registered."""
    server = FastMCP("json_typegen")

    async def _infer(
        json_text: str,
        type_name: str,
        document_id: str,
        allow_trailing_commas: bool | None,
        allow_comments: bool | None,
    ) -> InferenceOutcome:
        namespace, root_name = split_qualified_name(type_name)
        updates = {"allow_trailing_commas": allow_trailing_commas, "allow_comments": allow_comments}
        parser = settings.parser.model_copy(update={k: v for k, v in updates.items() if v is not None})
        runner = get_runner(document_id)
        try:
            return await runner.run(json_text, root_name, namespace, parser=parser)
        finally:
            # A newer pass for the same document still owns the runner
            if not runner.running and _runners.get(document_id) is runner:
                _runners.pop(document_id, None)

    @server.tool()
    async def generate_types(
        json_text: str,
        type_name: str,
        document_id: str = "default",
        allow_trailing_commas: bool | None = None,
        allow_comments: bool | None = None,
    ) -> str:
        """
        Generate C# classes for a JSON document.

        Args:
            json_text: The JSON document; its root must be an object
            type_name: Root type name, optionally qualified (e.g. "MyApp.Models.Order")
            document_id: Requests sharing a document_id cancel each other's older passes
            allow_trailing_commas: Accept trailing commas (defaults to server config)
            allow_comments: Accept // and /* */ comments (defaults to server config)

        Returns:
            C# source code, or a JSON error object
        """
        try:
            outcome = await _infer(json_text, type_name, document_id, allow_trailing_commas, allow_comments)
        except ValueError as e:
            return json.dumps({"success": False, "error": str(e)})
        if outcome.tree is None:
            return json.dumps(_failure(outcome))
        return render_csharp(outcome.tree, settings.output)

    @server.tool()
    async def infer_structure(
        json_text: str,
        type_name: str,
        document_id: str = "default",
        allow_trailing_commas: bool | None = None,
        allow_comments: bool | None = None,
    ) -> str:
        """
        Infer the structural type model of a JSON document.

        Args:
            json_text: The JSON document; its root must be an object
            type_name: Root type name, optionally qualified (e.g. "MyApp.Models.Order")
            document_id: Requests sharing a document_id cancel each other's older passes
            allow_trailing_commas: Accept trailing commas (defaults to server config)
            allow_comments: Accept // and /* */ comments (defaults to server config)

        Returns:
            JSON with the root type, its properties and nested sub-types
        """
        try:
            outcome = await _infer(json_text, type_name, document_id, allow_trailing_commas, allow_comments)
        except ValueError as e:
            return json.dumps({"success": False, "error": str(e)})
        if outcome.tree is None:
            return json.dumps(_failure(outcome))
        return json.dumps(
            {
                "success": True,
                "object_count": outcome.tree.object_count,
                "duration_ms": round(outcome.duration_seconds * 1000, 2),
                "model": tree_to_dict(outcome.tree),
            },
            indent=2,
        )

    @server.tool()
    async def cancel_inference(document_id: str = "default") -> str:
        """
        Cancel the running inference pass for a document.

        Args:
            document_id: Document whose pass should stop

        Returns:
            JSON with success status and message
        """
        runner = _runners.get(document_id)
        if runner is None or not runner.cancel():
            return json.dumps({"success": False, "error": f"No inference running for '{document_id}'"})
        return json.dumps({"success": True, "document_id": document_id, "message": "Inference cancelled"})

    @server.tool()
    async def health_check() -> str:
        """
        Health check with uptime and running inference passes.

        Returns:
            JSON object with server health status
        """
        running = sorted(doc_id for doc_id, runner in _runners.items() if runner.running)
        return json.dumps(
            {
                "status": "healthy",
                "uptime_seconds": round(time.time() - _server_start_time, 1),
                "running_passes": len(running),
                "documents": running,
            },
            indent=2,
        )

    return server


# Track server start time for uptime calculation
_server_start_time = time.time()


server_instance = serve()


def main() -> None:
    """Entry point for MCP server."""
    setup_structured_logging(settings.server.logging_level)
    transport = settings.server.transport

    if transport == "stdio":
        server_instance.run(transport="stdio")
    elif transport in ("streamable-http", "sse"):
        logger.info(f"HTTP server at http://{settings.server.host}:{settings.server.port}/mcp")
        server_instance.run(transport=transport, host=settings.server.host, port=settings.server.port)
    else:
        raise ValueError(f"Unknown transport: {transport}")


if __name__ == "__main__":
    main()
