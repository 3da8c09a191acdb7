"""Tests for configuration sections, env overrides and file persistence."""

import json

import pytest
from pydantic import ValidationError

from json_typegen.config import (
    MAX_NESTING_DEPTH,
    AppSettings,
    NumberHandling,
    OutputSettings,
    ParserSettings,
    ServerSettings,
    load_config_file,
)


class TestDefaults:
    """Defaults match strict JSON parsing and the common C# output style."""

    def test_parser_defaults(self):
        parser = ParserSettings()
        assert parser.allow_trailing_commas is False
        assert parser.allow_comments is False
        assert parser.max_nesting_depth == 64
        assert parser.lenient is False

    def test_output_defaults(self):
        output = OutputSettings()
        assert output.file_scoped_namespaces is True
        assert output.emit_documentation is True
        assert output.emit_nullable_annotations is True
        assert output.emit_end_of_block_markers is False
        assert output.number_handling == NumberHandling.STRICT

    def test_server_defaults(self):
        server = ServerSettings()
        assert server.transport == "stdio"
        assert server.host == "127.0.0.1"
        assert server.port == 8384


class TestEnvOverrides:
    def test_parser_env_var(self, monkeypatch):
        monkeypatch.setenv("JSON_TYPEGEN_PARSER_ALLOW_COMMENTS", "true")
        monkeypatch.setenv("JSON_TYPEGEN_PARSER_MAX_NESTING_DEPTH", "8")

        parser = ParserSettings()
        assert parser.allow_comments is True
        assert parser.max_nesting_depth == 8
        assert parser.lenient is True

    def test_output_env_var(self, monkeypatch):
        monkeypatch.setenv("JSON_TYPEGEN_OUTPUT_FILE_SCOPED_NAMESPACES", "false")

        assert OutputSettings().file_scoped_namespaces is False

    def test_invalid_transport_rejected(self, monkeypatch):
        monkeypatch.setenv("JSON_TYPEGEN_SERVER_TRANSPORT", "carrier-pigeon")

        with pytest.raises(ValidationError):
            ServerSettings()


class TestValidation:
    def test_nesting_depth_must_be_positive(self):
        with pytest.raises(ValidationError):
            ParserSettings(max_nesting_depth=0)

    def test_nesting_depth_is_capped(self):
        ParserSettings(max_nesting_depth=MAX_NESTING_DEPTH)
        with pytest.raises(ValidationError):
            ParserSettings(max_nesting_depth=MAX_NESTING_DEPTH + 1)


class TestNumberHandling:
    def test_flags_combine(self):
        output = OutputSettings(allow_reading_from_string=True, allow_named_floating_point_literals=True)

        flags = output.number_handling
        assert NumberHandling.ALLOW_READING_FROM_STRING in flags
        assert NumberHandling.ALLOW_NAMED_FLOATING_POINT_LITERALS in flags
        assert NumberHandling.WRITE_AS_STRING not in flags

    def test_single_flag(self):
        assert OutputSettings(write_as_string=True).number_handling == NumberHandling.WRITE_AS_STRING


class TestConfigFile:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        app_settings = AppSettings(parser=ParserSettings(allow_trailing_commas=True))

        assert app_settings.save(path) == path

        data = load_config_file(path)
        assert data["parser"]["allow_trailing_commas"] is True
        assert data["output"]["emit_documentation"] is True
        assert data["server"]["port"] == 8384

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config_file(tmp_path / "missing.json") == {}

    def test_blank_file_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("  \n", encoding="utf-8")

        assert load_config_file(path) == {}

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")

        with pytest.raises(ValueError, match="must contain a JSON object"):
            load_config_file(path)
