"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from enum import Flag
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "json-typegen"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/json-typegen)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    return base / APP_NAME


CONFIG_FILE = get_config_dir() / "config.json"


def load_config_file(path: Path = CONFIG_FILE) -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    if not path.exists():
        return {}

    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return data


def save_config_file(config_data: dict[str, Any], path: Path = CONFIG_FILE) -> None:
    """Save settings to the JSON config file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_data, indent=2), encoding="utf-8")


class NumberHandling(Flag):
    """How generated code reads and writes numeric properties."""

    STRICT = 0
    ALLOW_READING_FROM_STRING = 1
    WRITE_AS_STRING = 2
    ALLOW_NAMED_FLOATING_POINT_LITERALS = 4


# Inference recurses a few frames per nesting level, so this stays under sys.getrecursionlimit()
MAX_NESTING_DEPTH = 256


class ParserSettings(BaseSettings):
    """Parse-time options for the input JSON document."""

    model_config = SettingsConfigDict(env_prefix="JSON_TYPEGEN_PARSER_")

    allow_trailing_commas: bool = Field(default=False)
    allow_comments: bool = Field(default=False, description="Accept // and /* */ comments")
    max_nesting_depth: int = Field(default=64, ge=1, le=MAX_NESTING_DEPTH, description="Deepest allowed object/array nesting")

    @property
    def lenient(self) -> bool:
        return self.allow_trailing_commas or self.allow_comments


class OutputSettings(BaseSettings):
    """Options handed to the renderer together with the inferred tree."""

    model_config = SettingsConfigDict(env_prefix="JSON_TYPEGEN_OUTPUT_")

    file_scoped_namespaces: bool = Field(default=True)
    emit_documentation: bool = Field(default=True, description="Emit /// <summary> doc comments")
    emit_nullable_annotations: bool = Field(default=True, description="Emit #nullable enable and '?' on reference types")
    emit_end_of_block_markers: bool = Field(default=False, description="Emit '// class Name' after closing braces")

    # Numeric handling, attached to numeric properties only
    allow_reading_from_string: bool = Field(default=False)
    allow_named_floating_point_literals: bool = Field(default=False)
    write_as_string: bool = Field(default=False)

    @property
    def number_handling(self) -> NumberHandling:
        flags = NumberHandling.STRICT
        if self.allow_reading_from_string:
            flags |= NumberHandling.ALLOW_READING_FROM_STRING
        if self.write_as_string:
            flags |= NumberHandling.WRITE_AS_STRING
        if self.allow_named_floating_point_literals:
            flags |= NumberHandling.ALLOW_NAMED_FLOATING_POINT_LITERALS
        return flags


TransportType = Literal["stdio", "streamable-http", "sse"]


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="JSON_TYPEGEN_SERVER_")

    logging_level: str = Field(default="INFO")
    transport: TransportType = Field(default="stdio", description="MCP transport: stdio, streamable-http, or sse")
    host: str = Field(default="127.0.0.1", description="Host for HTTP transports")
    port: int = Field(default=8384, description="Port for HTTP transports")


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="JSON_TYPEGEN_", extra="ignore")

    parser: ParserSettings = Field(default_factory=ParserSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    def save(self, path: Path = CONFIG_FILE) -> Path:
        """Save current configuration to file."""
        save_config_file(self.model_dump(mode="json"), path)
        return path


def _load_settings() -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file()
    sections: dict[str, Any] = {}
    # Nested settings read their own env vars; file values only fill the gaps.
    for name, section_cls in (("parser", ParserSettings), ("output", OutputSettings), ("server", ServerSettings)):
        section_data = file_data.get(name) or {}
        env_prefix = section_cls.model_config.get("env_prefix", "")
        overrides = {key: value for key, value in section_data.items() if f"{env_prefix}{key}".upper() not in os.environ}
        sections[name] = section_cls(**overrides)
    return AppSettings(**sections)


settings = _load_settings()
