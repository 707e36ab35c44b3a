"""Tests for handlescope CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner
from rich.console import Console

from handlescope import cli as cli_module
from handlescope.cli import _get_version, cli, run_simulation
from handlescope.config.environment import Environment
from handlescope.runtime.dispose_scope_manager import DisposeScopeManager


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    monkeypatch.setattr(cli_module, "console", Console(width=200))
    return CliRunner()


class TestVersionOption:
    """Tests for the --version flag."""

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "handlescope" in result.output.lower()
        assert "version" in result.output.lower()

    def test_get_version_function(self):
        version = _get_version()
        assert isinstance(version, str)
        assert version


class TestRunSimulation:
    @pytest.mark.parametrize(
        "depth,resources,keep",
        [(1, 1, 0), (3, 4, 1), (5, 3, 3)],
    )
    def test_counts(self, depth, resources, keep):
        delta, released = run_simulation(depth, resources, keep)

        assert delta.registered_in_scope_count == depth * resources
        assert delta.registered_outside_scope_count == 0
        assert delta.disposed_in_scope_count == depth * resources - keep
        assert delta.detached_from_scope_count == keep
        assert released == depth * resources

    def test_leaves_no_scope_behind(self):
        run_simulation(4, 2, 1)
        assert DisposeScopeManager.thread_singleton().current_scope is None


class TestSimulateCommand:
    def test_table_output(self, runner):
        result = runner.invoke(cli, ["simulate", "--depth", "2", "--resources", "3", "--keep", "1"])

        assert result.exit_code == 0, result.output
        assert "Dispose statistics" in result.output
        assert "disposed_in_scope_count" in result.output
        assert "handles_released" in result.output

    def test_prometheus_output(self, runner):
        result = runner.invoke(cli, ["simulate", "--prometheus"])

        assert result.exit_code == 0, result.output
        assert "# TYPE handlescope_disposed_in_scope_total counter" in result.output
        assert "handlescope_active_dispose_scopes" in result.output

    def test_keep_cannot_exceed_resources(self, runner):
        result = runner.invoke(cli, ["simulate", "--resources", "1", "--keep", "2"])

        assert result.exit_code == 2
        assert "--keep cannot exceed --resources" in result.output

    def test_depth_must_be_positive(self, runner):
        result = runner.invoke(cli, ["simulate", "--depth", "0"])
        assert result.exit_code == 2


class TestSettingsCommand:
    def test_show_lists_registered_settings(self, runner, monkeypatch):
        monkeypatch.setattr(Environment, "settings", {"DISPOSE_SCOPE_OUT_OF_ORDER": "ignore"})

        result = runner.invoke(cli, ["settings", "show"])

        assert result.exit_code == 0, result.output
        assert "DISPOSE_SCOPE_OUT_OF_ORDER" in result.output
        assert "ignore" in result.output
        assert "LOG_LEVEL" in result.output

    def test_show_reports_settings_file(self, runner, monkeypatch, tmp_path):
        from handlescope.config import environment as environment_module
        from handlescope.config import settings as settings_module

        def fake_path(filename: str):
            return tmp_path / filename

        monkeypatch.setattr(settings_module, "get_system_file_path", fake_path)
        monkeypatch.setattr(environment_module, "get_system_file_path", fake_path)
        monkeypatch.setenv("ENV", "test")

        result = runner.invoke(cli, ["settings", "show"])
        assert result.exit_code == 0, result.output
        assert "Environment: test" in result.output
        assert "not found" in result.output

        (tmp_path / "settings.yaml").write_text("LOG_LEVEL: INFO\n")
        result = runner.invoke(cli, ["settings", "show"])
        assert "(found)" in result.output


class TestHelpOutput:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "simulate" in result.output
        assert "settings" in result.output
        assert "--version" in result.output
