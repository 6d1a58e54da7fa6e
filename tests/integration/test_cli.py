"""Integration tests for CLI module."""

import pytest
import os
import stat
import click
from click.testing import CliRunner

from sitesmith.cli import cli, load_config


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep logs and the default config out of the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SITESMITH_CONFIG", raising=False)
    monkeypatch.delenv("SITESMITH_LOG_FILE", raising=False)
    monkeypatch.setattr("sitesmith.config.DEFAULT_CONFIG_PATH", home / ".config" / "sitesmith" / "config.yaml")
    return home


@pytest.fixture
def page_file(tmp_path, sample_page):
    page = tmp_path / "gen_comp" / "bakery" / "index.html"
    page.parent.mkdir(parents=True)
    page.write_text(sample_page)
    return page


@pytest.fixture
def runner():
    return CliRunner()


class TestLoadConfig:
    """Test config loading errors surface as CLI errors."""

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(click.ClickException, match="Configuration file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_default_config_missing_uses_defaults(self):
        assert load_config(None).storage.output_dir == "gen_comp"


class TestCatalogCommand:
    """Test `sitesmith catalog`."""

    def test_lists_all_elements(self, runner, page_file):
        result = runner.invoke(cli, ["catalog", str(page_file)])

        assert result.exit_code == 0, result.output
        assert "11 element(s)" in result.output

    def test_filter_by_type(self, runner, page_file):
        result = runner.invoke(cli, ["catalog", str(page_file), "--type", "image"])

        assert result.exit_code == 0, result.output
        assert "/a.png" in result.output
        assert "1 element(s)" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["catalog", str(tmp_path / "nope.html")])
        assert result.exit_code == 2


class TestPreviewCommand:
    """Test `sitesmith preview`."""

    def test_writes_instrumented_document(self, runner, page_file, tmp_path):
        output = tmp_path / "out" / "preview.html"

        result = runner.invoke(cli, ["preview", str(page_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "(9 editable elements)" in result.output
        assert "2 element(s) could not be located" in result.output
        html = output.read_text()
        assert "editable-highlight" in html
        assert "postMessage" in html

    def test_unknown_selection(self, runner, page_file, tmp_path):
        result = runner.invoke(
            cli, ["preview", str(page_file), "-o", str(tmp_path / "p.html"), "--select", "text-000000000000"]
        )

        assert result.exit_code == 1
        assert "Unknown element id" in result.output
        assert not (tmp_path / "p.html").exists()

    def test_iframe_host_page(self, runner, page_file, tmp_path):
        output = tmp_path / "host.html"

        result = runner.invoke(cli, ["preview", str(page_file), "-o", str(output), "--iframe"])

        assert result.exit_code == 0, result.output
        html = output.read_text()
        assert html.startswith("<!DOCTYPE html>")
        assert '<iframe title="Preview of bakery" sandbox="allow-scripts"' in html
        assert 'srcdoc="' in html
        assert "editable-highlight" in html
        assert 'window.addEventListener("message"' in html


class TestExportCommand:
    """Test `sitesmith export`."""

    def test_strips_markers(self, runner, page_file, tmp_path):
        annotated = page_file.parent / "annotated.html"
        annotated.write_text(page_file.read_text().replace("<header ", '<header data-edit-id="editable-1" '))
        output = tmp_path / "clean.html"

        result = runner.invoke(cli, ["export", str(annotated), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Exported" in result.output
        assert "data-edit-id" not in output.read_text()
        assert "<h1>Welcome</h1>" in output.read_text()


class TestGenerateCommand:
    """Test `sitesmith generate` failure paths (no network)."""

    def test_requires_llm_section(self, runner):
        result = runner.invoke(cli, ["generate", "--name", "Acme", "--type", "bakery"])

        assert result.exit_code == 1
        assert "LLM configuration missing" in result.output

    def test_rejects_permissive_config(self, runner, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "llm:\n"
            "  endpoint: https://api.openai.com/v1\n"
            "  api_key: sk-test-key\n"
            "  model: gpt-4o\n"
        )
        os.chmod(config_file, stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH)

        result = runner.invoke(cli, ["--config", str(config_file), "generate", "--name", "Acme", "--type", "bakery"])

        assert result.exit_code == 1
        assert "chmod 600" in result.output

    def test_rejects_blank_name(self, runner, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "llm:\n"
            "  endpoint: https://api.openai.com/v1\n"
            "  api_key: sk-test-key\n"
            "  model: gpt-4o\n"
        )
        os.chmod(config_file, stat.S_IRUSR | stat.S_IWUSR)

        result = runner.invoke(cli, ["--config", str(config_file), "generate", "--name", " ", "--type", "bakery"])

        assert result.exit_code == 1
        assert "Invalid business details" in result.output


class TestEditCommand:
    """Test `sitesmith edit` argument checks (the TUI itself is tested in tests/ui)."""

    def test_requires_index_html(self, runner, page_file):
        other = page_file.parent / "page.html"
        other.write_text("<p>x</p>")

        result = runner.invoke(cli, ["edit", str(other)])

        assert result.exit_code == 1
        assert "index.html" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_logs_written_under_home(runner, page_file, isolated_home):
    runner.invoke(cli, ["catalog", str(page_file)])
    assert (isolated_home / ".cache" / "sitesmith" / "logs" / "sitesmith.log").exists()
