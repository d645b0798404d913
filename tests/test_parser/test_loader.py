"""Tests for specmock.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specmock.exceptions import SpecParseError
from specmock.parser.loader import (
    _load_from_file,
    _load_from_stdin,
    _load_from_url,
    hint_from_content_type,
    hint_from_suffix,
    load_document,
    parse_content,
    validate_openapi_version,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


# ---------------------------------------------------------------------------
# load_document dispatch
# ---------------------------------------------------------------------------


class TestLoadDocument:
    """Test load_document routes to the correct loader and keeps the raw text."""

    def test_loads_yaml_fixture(self) -> None:
        doc = load_document(str(FIXTURES_DIR / "petstore.yaml"))
        assert doc.is_yaml is True
        assert doc.tree["info"]["title"] == "Petstore API"
        assert doc.content.startswith("openapi: 3.0.3")

    def test_file_location_is_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "spec.json").write_text('{"openapi": "3.0.3"}', encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        doc = load_document("spec.json")
        assert doc.location == str((tmp_path / "spec.json").resolve())
        assert doc.is_yaml is False

    def test_loads_from_stdin(self) -> None:
        spec_json = json.dumps({"openapi": "3.0.3", "info": {"title": "stdin test", "version": "1.0"}})
        with patch("specmock.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(spec_json)
            doc = load_document("-")
        assert doc.location == "-"
        assert doc.tree["info"]["title"] == "stdin test"

    def test_loads_from_url(self) -> None:
        spec = {"openapi": "3.0.3", "info": {"title": "URL test", "version": "1.0"}}
        mock_response = httpx.Response(
            status_code=200,
            json=spec,
            request=httpx.Request("GET", "https://example.com/spec.json"),
        )
        with patch("specmock.parser.loader.httpx.get", return_value=mock_response):
            doc = load_document("https://example.com/spec.json")
        assert doc.location == "https://example.com/spec.json"
        assert doc.tree["info"]["title"] == "URL test"


# ---------------------------------------------------------------------------
# _load_from_file
# ---------------------------------------------------------------------------


class TestLoadFromFile:
    """Test loading documents from local files."""

    def test_returns_content_and_hint(self) -> None:
        content, hint = _load_from_file(str(FIXTURES_DIR / "petstore.yaml"))
        assert "Petstore API" in content
        assert hint == "yaml"

    def test_file_not_found_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            _load_from_file("/nonexistent/path/to/spec.json")

    def test_empty_file_raises(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.json"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            _load_from_file(str(empty))


# ---------------------------------------------------------------------------
# _load_from_stdin
# ---------------------------------------------------------------------------


class TestLoadFromStdin:
    """Test loading documents from stdin."""

    def test_reads_stdin(self) -> None:
        with patch("specmock.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("openapi: 3.0.0\n")
            content, hint = _load_from_stdin()
        assert content == "openapi: 3.0.0\n"
        assert hint == ""

    def test_empty_stdin_raises(self) -> None:
        with patch("specmock.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("   \n\t\n  ")
            with pytest.raises(SpecParseError, match="No input"):
                _load_from_stdin()


# ---------------------------------------------------------------------------
# _load_from_url
# ---------------------------------------------------------------------------


class TestLoadFromUrl:
    """Test loading documents from URLs."""

    def test_yaml_content_type_hint(self) -> None:
        mock_response = httpx.Response(
            status_code=200,
            text="openapi: 3.0.0\n",
            headers={"content-type": "application/x-yaml"},
            request=httpx.Request("GET", "https://example.com/spec"),
        )
        with patch("specmock.parser.loader.httpx.get", return_value=mock_response):
            content, hint = _load_from_url("https://example.com/spec")
        assert content == "openapi: 3.0.0\n"
        assert hint == "yaml"

    def test_http_error_raises(self) -> None:
        mock_response = httpx.Response(
            status_code=404,
            request=httpx.Request("GET", "https://example.com/missing.json"),
        )
        with patch("specmock.parser.loader.httpx.get", return_value=mock_response):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                _load_from_url("https://example.com/missing.json")

    def test_connection_error_raises(self) -> None:
        with patch(
            "specmock.parser.loader.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(SpecParseError, match="Failed to fetch"):
                _load_from_url("https://unreachable.example.com/spec.json")


# ---------------------------------------------------------------------------
# Format hints and parse_content
# ---------------------------------------------------------------------------


class TestHints:
    def test_suffix_hints(self) -> None:
        assert hint_from_suffix(".JSON") == "json"
        assert hint_from_suffix(".yml") == "yaml"
        assert hint_from_suffix(".txt") == ""

    def test_content_type_hints(self) -> None:
        assert hint_from_content_type("application/json; charset=utf-8") == "json"
        assert hint_from_content_type("text/yaml") == "yaml"
        assert hint_from_content_type("text/plain") == ""


class TestParseContent:
    """Test content parsing with format detection."""

    def test_parses_json(self) -> None:
        assert parse_content('{"key": "value"}') == ({"key": "value"}, False)

    def test_parses_yaml(self) -> None:
        tree, is_yaml = parse_content("key: value\nnested:\n  a: 1")
        assert tree == {"key": "value", "nested": {"a": 1}}
        assert is_yaml is True

    def test_json_hint_forces_json_only(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            parse_content("not: valid: json: {{{", hint="json")

    def test_invalid_content_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Failed to parse"):
            parse_content("}{not valid at all][", hint="")

    def test_non_dict_content_raises(self) -> None:
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            parse_content("[1, 2, 3]")

    def test_null_yaml_raises(self) -> None:
        with pytest.raises(SpecParseError, match="must be a JSON/YAML object"):
            parse_content("---\n", hint="yaml")


# ---------------------------------------------------------------------------
# validate_openapi_version
# ---------------------------------------------------------------------------


class TestValidateOpenAPIVersion:
    """Test OpenAPI version validation."""

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0", "3.2.0"])
    def test_accepts_3_x(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == version

    def test_rejects_swagger_2_0(self) -> None:
        with pytest.raises(SpecParseError, match="Swagger 2.0.*not supported"):
            validate_openapi_version({"swagger": "2.0"})

    def test_rejects_missing_openapi_field(self) -> None:
        with pytest.raises(SpecParseError, match="Missing 'openapi' field"):
            validate_openapi_version({"info": {"title": "test"}})

    def test_rejects_unsupported_version(self) -> None:
        with pytest.raises(SpecParseError, match="Unsupported OpenAPI version"):
            validate_openapi_version({"openapi": "4.0.0"})

    def test_version_as_number(self) -> None:
        assert validate_openapi_version({"openapi": 3.0}) == "3.0"
