"""Tests for the command-line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from accesshtml import __version__
from accesshtml.cli import app
from accesshtml.config import _ENV_OVERRIDES
from accesshtml.docs.cache import DocumentationCache
from tests.fixtures.pages import ACCESSIBLE_PAGE, BASE_URL, FakeFetch

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "accesshtml.yaml"
    path.write_text(
        f"""\
scraper:
  wcag_base_url: {BASE_URL}
  request_delay_ms: 0
integration:
  output_dir: {tmp_path / "output"}
  cache_dir: {tmp_path / "cache"}
  auto_update: false
logging:
  level: error
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def page(tmp_path: Path) -> Path:
    path = tmp_path / "page.html"
    path.write_text(ACCESSIBLE_PAGE, encoding="utf-8")
    return path


def _use_fetch(monkeypatch: pytest.MonkeyPatch, fetch: FakeFetch) -> None:
    monkeypatch.setattr("accesshtml.pipeline.HttpFetcher", lambda **kwargs: fetch)


class TestCheck:
    def test_accessible_page(self, page: Path, config_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["check", str(page), "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "Score" in result.output
        assert "100.0" in result.output
        reports = list((tmp_path / "output").glob("accessibility-report-*.json"))
        assert len(reports) == 1

    def test_output_dir_override(self, page: Path, config_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "elsewhere"
        result = runner.invoke(app, ["check", str(page), "-o", str(out), "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert list(out.glob("accessibility-report-*.json"))

    def test_issues_listed(self, tmp_path: Path, config_file: Path) -> None:
        page = tmp_path / "bad.html"
        page.write_text('<img src="logo.png">', encoding="utf-8")
        result = runner.invoke(app, ["check", str(page), "-c", str(config_file)])
        assert result.exit_code == 0
        assert "[1.1.1]" in result.output

    def test_strict_fails_below_target(self, tmp_path: Path, config_file: Path) -> None:
        page = tmp_path / "bad.html"
        page.write_text('<img src="logo.png">', encoding="utf-8")
        result = runner.invoke(app, ["check", str(page), "--strict", "-c", str(config_file)])
        assert result.exit_code == 1

    def test_strict_passes_at_target(self, page: Path, config_file: Path) -> None:
        result = runner.invoke(app, ["check", str(page), "--strict", "-l", "AAA", "-c", str(config_file)])
        assert result.exit_code == 0, result.output

    def test_missing_file(self, tmp_path: Path, config_file: Path) -> None:
        result = runner.invoke(app, ["check", str(tmp_path / "nope.html"), "-c", str(config_file)])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_invalid_level(self, page: Path, config_file: Path) -> None:
        result = runner.invoke(app, ["check", str(page), "-l", "B", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Analysis failed" in result.output

    def test_undecodable_file(self, tmp_path: Path, config_file: Path) -> None:
        page = tmp_path / "latin1.html"
        page.write_bytes(b"<p>caf\xe9</p>")
        result = runner.invoke(app, ["check", str(page), "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Analysis failed" in result.output

    def test_invalid_config(self, page: Path, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("evaluator:\n  wcag_level: Z\n", encoding="utf-8")
        result = runner.invoke(app, ["check", str(page), "-c", str(bad)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestUpdateDocs:
    def test_success(self, config_file: Path, tmp_path: Path, fake_fetch: FakeFetch, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_fetch(monkeypatch, fake_fetch)
        result = runner.invoke(app, ["update-docs", "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "OK" in result.output
        assert (tmp_path / "cache" / "wcag-data.json").is_file()

    def test_failure_exits_1(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_fetch(monkeypatch, FakeFetch({}))
        result = runner.invoke(app, ["update-docs", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "failed" in result.output

    def test_cache_option(self, config_file: Path, tmp_path: Path, fake_fetch: FakeFetch, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_fetch(monkeypatch, fake_fetch)
        cache = tmp_path / "custom-cache"
        result = runner.invoke(app, ["update-docs", "--cache", str(cache), "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert (cache / "wcag-data.json").is_file()

    def test_output_option_creates_directory(
        self, config_file: Path, tmp_path: Path, fake_fetch: FakeFetch, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _use_fetch(monkeypatch, fake_fetch)
        output = tmp_path / "custom-output"
        result = runner.invoke(app, ["update-docs", "--output", str(output), "-c", str(config_file)])
        assert result.exit_code == 0, result.output
        assert output.is_dir()

    def test_cache_write_error_exits_1(
        self, config_file: Path, fake_fetch: FakeFetch, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _use_fetch(monkeypatch, fake_fetch)

        def _disk_full(self: DocumentationCache, url: str, snapshot: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(DocumentationCache, "store", _disk_full)
        result = runner.invoke(app, ["update-docs", "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Could not write documentation cache" in result.output
        assert "disk full" in result.output


class TestStatus:
    def test_empty_cache(self, config_file: Path) -> None:
        result = runner.invoke(app, ["status", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Documentation Cache" in result.output
        assert "No" in result.output

    def test_after_update(self, config_file: Path, fake_fetch: FakeFetch, monkeypatch: pytest.MonkeyPatch) -> None:
        _use_fetch(monkeypatch, fake_fetch)
        runner.invoke(app, ["update-docs", "-c", str(config_file)])
        result = runner.invoke(app, ["status", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "fresh" in result.output


class TestInitConfig:
    def test_writes_example(self, tmp_path: Path) -> None:
        path = tmp_path / "accesshtml.yaml"
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 0
        assert path.is_file()

    def test_refuses_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "accesshtml.yaml"
        path.write_text("# mine\n", encoding="utf-8")
        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 1
        assert path.read_text(encoding="utf-8") == "# mine\n"

        result = runner.invoke(app, ["init-config", str(path), "--force"])
        assert result.exit_code == 0
        assert "scraper:" in path.read_text(encoding="utf-8")


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
