"""Tests for CLI support utilities."""
import pytest
import typer
from rich.console import Console

from podwrap.cli_support import (
    get_orchestrator,
    handle_cli_error,
    is_mock,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from podwrap.core.errors import BuildError


class TestIsMock:
    """Test mock mode detection."""

    def test_enabled(self, monkeypatch):
        monkeypatch.setenv("PODWRAP_MOCK", "1")
        assert is_mock() is True

    def test_disabled(self, monkeypatch):
        monkeypatch.delenv("PODWRAP_MOCK", raising=False)
        assert is_mock() is False

    def test_other_values_ignored(self, monkeypatch):
        monkeypatch.setenv("PODWRAP_MOCK", "yes")
        assert is_mock() is False


class TestGetOrchestrator:

    def test_mock_from_env(self, monkeypatch):
        monkeypatch.setenv("PODWRAP_MOCK", "1")
        assert get_orchestrator().runner.mock is True

    def test_explicit_mock(self, monkeypatch):
        monkeypatch.setenv("PODWRAP_MOCK", "1")
        assert get_orchestrator(mock=False).runner.mock is False


class TestHandleCliError:
    """Test error reporting."""

    def test_exits_with_code(self):
        console = Console(record=True, width=200)
        with pytest.raises(typer.Exit) as exc:
            handle_cli_error(ValueError("boom"), console, exit_code=3)
        assert exc.value.exit_code == 3
        assert "Error: boom" in console.export_text()

    def test_tool_output_not_treated_as_markup(self):
        console = Console(record=True, width=200)
        error = BuildError("build", None, "Image build failed", stderr="[red] is not a tag")
        with pytest.raises(typer.Exit):
            handle_cli_error(error, console)
        assert "[red] is not a tag" in console.export_text()


class TestPrintHelpers:
    """Test formatted output helpers."""

    @pytest.mark.parametrize("helper,prefix", [
        (print_success, "✓"),
        (print_error, "✗"),
        (print_warning, "⚠"),
        (print_info, "ℹ"),
    ])
    def test_prefix(self, helper, prefix):
        console = Console(record=True, width=200)
        helper(console, "done")
        assert console.export_text().strip() == f"{prefix} done"
