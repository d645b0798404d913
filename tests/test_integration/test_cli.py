"""Integration tests for the specmock command line.

Runs the real Typer application through ``CliRunner`` against the fixture
documents. Configuration, cache and data directories are isolated to a
temporary directory by the ``isolated_config`` fixture.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from specmock import __version__
from specmock.app import app, register_commands
from specmock.cache import DocumentCache
from specmock.config import get_cache_dir
from specmock.exit_codes import EXIT_INVALID_USAGE, EXIT_SPEC_PARSE_ERROR
from specmock.models import CacheConfig


@pytest.fixture(autouse=True)
def _commands(isolated_config: Path) -> None:
    register_commands()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestGlobalFlags:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"specmock {__version__}" in result.output

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])
        assert "inspect" in result.output
        assert "export" in result.output


class TestInspectService:
    def test_json_service(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--json", "inspect", "service", str(petstore_path)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["name"] == "Petstore API"
        assert data["version"] == "1.0.0"
        assert data["type"] == "REST"
        assert data["operations"] == 5
        assert data["labels"] == {"domain": "pets"}

    def test_missing_file_exits_with_parse_error(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["inspect", "service", str(tmp_path / "nope.yaml")])
        assert result.exit_code == EXIT_SPEC_PARSE_ERROR
        assert "not found" in result.output


class TestOutputOption:
    def test_service_written_to_file(self, runner: CliRunner, petstore_path: Path, tmp_path: Path) -> None:
        target = tmp_path / "service.json"
        result = runner.invoke(
            app, ["--json", "-o", str(target), "inspect", "service", str(petstore_path)]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert json.loads(target.read_text())["name"] == "Petstore API"

    def test_operations_table_written_to_file(
        self, runner: CliRunner, petstore_path: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "operations.tsv"
        result = runner.invoke(
            app, ["--output", str(target), "inspect", "operations", str(petstore_path)]
        )
        assert result.exit_code == 0, result.output
        lines = target.read_text().splitlines()
        assert lines[0] == "Operation\tDispatcher\tRules\tResource Paths"
        assert len(lines) == 6


class TestInspectOperations:
    def test_plain_table(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--plain", "inspect", "operations", str(petstore_path)])
        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "Operation\tDispatcher\tRules\tResource Paths"
        rows = {line.split("\t")[0]: line.split("\t") for line in lines[1:]}
        assert rows["GET /pets"][1:3] == ["URI_PARAMS", "status"]
        assert rows["POST /pets"][1:3] == ["-", "-"]
        assert rows["GET /pets/{id}/toys"][1:3] == ["URI_ELEMENTS", "id ?? color"]
        assert "/pets/42" in rows["GET /pets/{id}"][3]

    def test_json_records(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(app, ["--json", "inspect", "operations", str(petstore_path)])
        records = json.loads(result.stdout)
        owners = next(r for r in records if r["Operation"] == "GET /owners/{ownerId}")
        assert owners["Dispatcher"] == "FALLBACK"


class TestInspectExchanges:
    def test_table(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(
            app, ["--json", "inspect", "exchanges", str(petstore_path), "GET /pets/{id}"]
        )
        assert result.exit_code == 0, result.output
        criteria = {r["Example"]: r["Dispatch Criteria"] for r in json.loads(result.stdout)}
        assert criteria["rex"] == "/id=42"
        assert criteria["missing"] == "/id=999"

    def test_full(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(
            app, ["--json", "inspect", "exchanges", str(petstore_path), "GET /pets", "--full"]
        )
        assert result.exit_code == 0, result.output
        exchanges = json.loads(result.stdout)
        assert {e["response"]["dispatch_criteria"] for e in exchanges} == {
            "?status=available",
            "?status=sold",
        }

    def test_unknown_operation(self, runner: CliRunner, petstore_path: Path) -> None:
        result = runner.invoke(
            app, ["inspect", "exchanges", str(petstore_path), "DELETE /pets"]
        )
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Unknown operation: DELETE /pets" in result.output


class TestExport:
    def test_writes_primary_and_external_documents(
        self, runner: CliRunner, external_api_path: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "mocks"
        result = runner.invoke(
            app, ["--quiet", "--plain", "export", str(external_api_path), "--dir", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == [
            "Toy API-2.0--common.yaml",
            "Toy API-2.0.yaml",
        ]
        primary = (out / "Toy API-2.0.yaml").read_text()
        assert "Toy API-2.0--common.yaml#/components/parameters/ToyId" in primary

    def test_export_single_document(
        self, runner: CliRunner, petstore_path: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            app, ["--quiet", "export", str(petstore_path), "-d", str(tmp_path / "out")]
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "out" / "Petstore API-1.0.0.yaml").exists()


class TestConfigCommands:
    def test_set_then_show(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["config", "set", "resolver.timeout", "5"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(result.stdout)["resolver"]["timeout"] == 5

    def test_set_unknown_key(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["config", "set", "resolver.nope", "1"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_set_bad_integer(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["config", "set", "resolver.max_depth", "deep"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_resolved_honours_environment(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SPECMOCK_ALLOW_REMOTE", "false")
        result = runner.invoke(app, ["--json", "--quiet", "config", "show", "--resolved"])
        assert json.loads(result.stdout)["resolver"]["allow_remote"] is False

    def test_reset_with_force(self, runner: CliRunner) -> None:
        runner.invoke(app, ["config", "set", "log_level", "INFO"])
        result = runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(result.stdout)["log_level"] == "WARNING"

    def test_reset_declined(self, runner: CliRunner) -> None:
        runner.invoke(app, ["config", "set", "log_level", "INFO"])
        result = runner.invoke(app, ["config", "reset"], input="n\n")
        assert result.exit_code == 0

        result = runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(result.stdout)["log_level"] == "INFO"


class TestCacheCommands:
    URL = "https://example.com/specs/common.yaml"

    def _seed(self) -> None:
        cache = DocumentCache(get_cache_dir(), CacheConfig())
        cache.set(self.URL, "components: {}\n")
        cache.set("https://example.com/specs/other.yaml", "components: {}\n")
        cache.close()

    def _size(self, runner: CliRunner) -> int:
        result = runner.invoke(app, ["--json", "cache", "stats"])
        assert result.exit_code == 0, result.output
        return json.loads(result.stdout)["size"]

    def test_stats(self, runner: CliRunner) -> None:
        self._seed()
        result = runner.invoke(app, ["--json", "cache", "stats"])
        data = json.loads(result.stdout)
        assert data["enabled"] is True
        assert data["size"] == 2
        assert data["ttl_seconds"] == 3600

    def test_forget_one_document(self, runner: CliRunner) -> None:
        self._seed()
        result = runner.invoke(app, ["cache", "forget", self.URL])
        assert result.exit_code == 0, result.output
        assert self._size(runner) == 1

    def test_clear_with_force(self, runner: CliRunner) -> None:
        self._seed()
        result = runner.invoke(app, ["--force", "cache", "clear"])
        assert result.exit_code == 0, result.output
        assert self._size(runner) == 0

    def test_clear_declined(self, runner: CliRunner) -> None:
        self._seed()
        result = runner.invoke(app, ["cache", "clear"], input="n\n")
        assert result.exit_code == 0
        assert self._size(runner) == 2
