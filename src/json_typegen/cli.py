"""CLI interface for json-typegen."""

import json
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from .config import CONFIG_FILE, MAX_NESTING_DEPTH, settings
from .exceptions import JsonTypegenError
from .inference import run_inference, split_qualified_name
from .observability import setup_structured_logging
from .rendering import render_csharp, tree_to_dict

app = typer.Typer(help="Generate typed record declarations from JSON documents")


class OutputFormat(str, Enum):
    CSHARP = "csharp"
    MODEL = "model"


def _read_input(input_path: str) -> str:
    if input_path == "-":
        return sys.stdin.read()
    return Path(input_path).read_text(encoding="utf-8")


def _overrides(**values: object) -> dict[str, object]:
    return {key: value for key, value in values.items() if value is not None}


@app.command()
def generate(
    input_path: str = typer.Argument("-", help="JSON file to read, or '-' for stdin"),
    name: str = typer.Option(..., "--name", "-n", help="Root type, optionally qualified: Namespace.TypeName"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
    output_format: OutputFormat = typer.Option(OutputFormat.CSHARP, "--format", "-f", help="csharp classes or the inferred model as JSON"),
    allow_trailing_commas: Optional[bool] = typer.Option(None, "--allow-trailing-commas/--no-allow-trailing-commas"),
    allow_comments: Optional[bool] = typer.Option(None, "--allow-comments/--no-allow-comments"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=1, max=MAX_NESTING_DEPTH, help="Maximum JSON nesting depth"),
    docs: Optional[bool] = typer.Option(None, "--docs/--no-docs", help="Emit documentation comments"),
    nullable: Optional[bool] = typer.Option(None, "--nullable/--no-nullable", help="Emit nullable annotations"),
    end_markers: Optional[bool] = typer.Option(None, "--end-markers/--no-end-markers", help="Emit end-of-block comments"),
    file_scoped: Optional[bool] = typer.Option(None, "--file-scoped/--block-namespace", help="Namespace declaration style"),
    read_numbers_from_string: Optional[bool] = typer.Option(
        None, "--allow-reading-from-string/--no-allow-reading-from-string", help="Accept numbers given as JSON strings"
    ),
    write_numbers_as_string: Optional[bool] = typer.Option(
        None, "--write-as-string/--no-write-as-string", help="Write numbers as JSON strings"
    ),
    named_float_literals: Optional[bool] = typer.Option(
        None,
        "--allow-named-floating-point-literals/--no-allow-named-floating-point-literals",
        help="Accept NaN, Infinity and -Infinity as string values",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log inference progress to stderr"),
) -> None:
    """Infer types from a JSON document and print their declarations."""
    setup_structured_logging("DEBUG" if verbose else "WARNING", json_output=False)

    parser = settings.parser.model_copy(
        update=_overrides(
            allow_trailing_commas=allow_trailing_commas,
            allow_comments=allow_comments,
            max_nesting_depth=max_depth,
        )
    )
    output_options = settings.output.model_copy(
        update=_overrides(
            emit_documentation=docs,
            emit_nullable_annotations=nullable,
            emit_end_of_block_markers=end_markers,
            file_scoped_namespaces=file_scoped,
            allow_reading_from_string=read_numbers_from_string,
            write_as_string=write_numbers_as_string,
            allow_named_floating_point_literals=named_float_literals,
        )
    )

    try:
        namespace, root_name = split_qualified_name(name)
        document = _read_input(input_path)
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e

    outcome = run_inference(document, root_name, namespace, parser=parser)
    try:
        tree = outcome.unwrap()
    except JsonTypegenError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if output_format is OutputFormat.MODEL:
        text = json.dumps(tree_to_dict(tree), indent=2) + "\n"
    else:
        text = render_csharp(tree, output_options)

    if output is not None:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {tree.object_count} types to {output}", err=True)
    else:
        typer.echo(text, nl=False)


@app.command()
def config(
    save: bool = typer.Option(False, "--save", help=f"Persist the effective settings to {CONFIG_FILE}"),
) -> None:
    """Show current configuration."""
    print(f"Allow trailing commas: {settings.parser.allow_trailing_commas}")
    print(f"Allow comments: {settings.parser.allow_comments}")
    print(f"Max nesting depth: {settings.parser.max_nesting_depth}")
    print(f"File-scoped namespaces: {settings.output.file_scoped_namespaces}")
    print(f"Documentation: {settings.output.emit_documentation}")
    print(f"Nullable annotations: {settings.output.emit_nullable_annotations}")
    print(f"End-of-block markers: {settings.output.emit_end_of_block_markers}")
    print(f"Number handling: {settings.output.number_handling}")
    print(f"Server: {settings.server.transport} ({settings.server.host}:{settings.server.port})")
    if save:
        path = settings.save()
        print(f"Saved to {path}")


@app.command()
def server() -> None:
    """Start the MCP server."""
    from .server import main

    main()


if __name__ == "__main__":
    app()
