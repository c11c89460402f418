"""Tests for the CLI module."""

import json

import click
import pytest
from click.testing import CliRunner

from smartcart import __version__
from smartcart.cli import cli, parse_override
from smartcart.tui import ReviewResult


@pytest.fixture
def runner():
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def list_file(tmp_path):
    """A shopping list file with markup."""
    path = tmp_path / "list.txt"
    path.write_text("1. milk\n* bananas\n\n- coffee\n", encoding="utf-8")
    return path


# ============================================================================
# Main CLI Tests
# ============================================================================


class TestMainCli:
    """Tests for the main CLI group."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "history" in result.output
        assert "match" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestParseOverride:
    """Tests for parse_override function."""

    def test_valid(self):
        assert parse_override(" milk = Silk Almond Milk ") == ("milk", "Silk Almond Milk")

    def test_product_may_contain_equals(self):
        assert parse_override("soda=Coke 2=1 Pack") == ("soda", "Coke 2=1 Pack")

    @pytest.mark.parametrize("value", ["milk", "=Silk", "milk= "])
    def test_invalid(self, value):
        with pytest.raises(click.BadParameter):
            parse_override(value)


# ============================================================================
# History Command Tests
# ============================================================================


class TestHistoryCommand:
    """Tests for the history command."""

    def test_summary(self, runner, history_csv):
        result = runner.invoke(cli, ["history", str(history_csv), "-n", "2"])

        assert result.exit_code == 0
        assert "Records: 4" in result.output
        assert "Distinct products: 3" in result.output
        assert "Most purchased (top 2):" in result.output
        assert "1. Great Value Whole Milk (2x)" in result.output

    def test_unsupported_file(self, runner, tmp_path):
        path = tmp_path / "orders.txt"
        path.write_text("not a table", encoding="utf-8")

        result = runner.invoke(cli, ["history", str(path)])

        assert result.exit_code == 1
        assert "Unsupported file type" in result.output


# ============================================================================
# Match Command Tests
# ============================================================================


class TestMatchCommand:
    """Tests for the match command."""

    def test_match_inline_text(self, runner, history_csv):
        result = runner.invoke(
            cli, ["match", str(history_csv), "--text", "milk, bananas, coffee", "-p", "none"]
        )

        assert result.exit_code == 0
        assert "Loaded 4 purchase records (3 products)" in result.output
        assert "→ Great Value Whole Milk (bought 2x)" in result.output
        assert "✗ No match found in purchase history" in result.output
        assert "Matched: 2 | Unmatched: 1" in result.output
        assert "SMART LIST\nGreat Value Whole Milk\nBananas each\ncoffee" in result.output

    def test_match_from_file(self, runner, history_csv, list_file):
        result = runner.invoke(cli, ["match", str(history_csv), "-f", str(list_file), "-p", "none"])

        assert result.exit_code == 0
        assert "1. milk" in result.output
        assert "2. bananas" in result.output
        assert "3. coffee" in result.output

    def test_alternatives(self, runner, history_csv):
        result = runner.invoke(cli, ["match", str(history_csv), "-t", "milk", "-p", "none", "-a"])

        assert result.exit_code == 0
        assert "Alternatives:" in result.output
        assert "1. Silk Almond Milk (1x)" in result.output

    def test_override(self, runner, history_csv):
        result = runner.invoke(
            cli,
            [
                "match",
                str(history_csv),
                "-t",
                "milk",
                "-p",
                "none",
                "--override",
                "milk=Silk Almond Milk",
            ],
        )

        assert result.exit_code == 0
        assert "→ Silk Almond Milk (bought 1x)" in result.output

    def test_invalid_override(self, runner, history_csv):
        result = runner.invoke(
            cli, ["match", str(history_csv), "-t", "milk", "-p", "none", "--override", "milk"]
        )

        assert result.exit_code == 2
        assert "Expected TERM=PRODUCT" in result.output

    def test_empty_list(self, runner, history_csv):
        result = runner.invoke(cli, ["match", str(history_csv), "-p", "none"])

        assert result.exit_code == 1
        assert "Missing list" in result.output

    def test_text_and_file_conflict(self, runner, history_csv, list_file):
        result = runner.invoke(
            cli, ["match", str(history_csv), "-t", "milk", "-f", str(list_file), "-p", "none"]
        )

        assert result.exit_code == 1
        assert "either --text or --file" in result.output

    def test_list_file_not_utf8(self, runner, history_csv, tmp_path):
        path = tmp_path / "list.txt"
        path.write_bytes(b"milk\n\xff\xfe caf\xe9\n")

        result = runner.invoke(cli, ["match", str(history_csv), "-f", str(path), "-p", "none"])

        assert result.exit_code == 1
        assert "✗ Could not read list file" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_ai_failure(self, runner, history_csv, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

        result = runner.invoke(cli, ["match", str(history_csv), "-t", "milk", "-p", "openrouter"])

        assert result.exit_code == 1
        assert "Analysis failed: OPENROUTER_API_KEY is not configured" in result.output

    def test_export_json(self, runner, history_csv, tmp_path):
        output = tmp_path / "smart.json"

        result = runner.invoke(
            cli, ["match", str(history_csv), "-t", "milk\ncoffee", "-p", "none", "-o", str(output)]
        )

        assert result.exit_code == 0
        assert "✓ Exported JSON to" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["summary"]["matched"] == 1
        assert data["expansions"] == {}

    def test_export_format_option(self, runner, history_csv, tmp_path):
        output = tmp_path / "smart.out"

        result = runner.invoke(
            cli,
            ["match", str(history_csv), "-t", "milk", "-p", "none", "-o", str(output), "--format", "md"],
        )

        assert result.exit_code == 0
        assert "✓ Exported MD to" in result.output
        assert output.read_text(encoding="utf-8").startswith("# Smart Shopping List")

    def test_interactive_cancel(self, runner, history_csv, monkeypatch):
        monkeypatch.setattr(
            "smartcart.cli.interactive_review",
            lambda session: ReviewResult(confirmed=False, results=session.results),
        )

        result = runner.invoke(cli, ["match", str(history_csv), "-t", "milk", "-p", "none", "-i"])

        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert "SMART LIST" not in result.output

    def test_interactive_confirm_uses_choices(self, runner, history_csv, monkeypatch):
        def choose_silk(session):
            session.apply_override("milk", "Silk Almond Milk")
            return ReviewResult(confirmed=True, results=session.results)

        monkeypatch.setattr("smartcart.cli.interactive_review", choose_silk)

        result = runner.invoke(cli, ["match", str(history_csv), "-t", "milk", "-p", "none", "-i"])

        assert result.exit_code == 0
        assert "SMART LIST\nSilk Almond Milk" in result.output
