"""Tests for the CLI."""

import json

import pytest
from click.testing import CliRunner

from ruleconfig.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCLI:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ruleconfig" in result.output
        assert "show" in result.output
        assert "check" in result.output
        assert "convert" in result.output

    def test_show_command(self, runner, settings_file):
        result = runner.invoke(cli, ["show", "-s", str(settings_file)])
        assert result.exit_code == 0
        assert "Rules configured: 4" in result.output
        assert "PSAvoidLongLines" in result.output

    def test_show_json(self, runner, settings_file):
        result = runner.invoke(cli, ["show", "-s", str(settings_file), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["Rules"]["PSAvoidLongLines"]["Enable"] is True

    def test_settings_from_environment(self, runner, settings_file):
        result = runner.invoke(cli, ["show"], env={"RULECONFIG_SETTINGS": str(settings_file)})
        assert result.exit_code == 0
        assert "Rules configured: 4" in result.output

    def test_check_excluded(self, runner, settings_file):
        result = runner.invoke(cli, ["check", "-s", str(settings_file), "PSAvoidUsingWriteHost"])
        assert result.exit_code == 0
        assert "disabled (excluded)" in result.output

    def test_check_enabled(self, runner, settings_file):
        result = runner.invoke(cli, ["check", "-s", str(settings_file), "PSAvoidLongLines"])
        assert "enabled (configured)" in result.output

    def test_check_unlisted_default(self, runner, settings_file):
        result = runner.invoke(cli, ["check", "-s", str(settings_file),
                                     "--no-default", "PSUseApprovedVerbs"])
        assert "disabled (not listed, using default)" in result.output

    def test_options_command(self, runner, settings_file):
        result = runner.invoke(cli, ["options", "-s", str(settings_file), "PSAvoidLongLines"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"MaximumLineLength": 120}

    def test_validate_valid(self, runner, settings_file):
        result = runner.invoke(cli, ["validate", "-s", str(settings_file)])
        assert result.exit_code == 0
        assert "Settings are valid" in result.output

    def test_validate_malformed(self, runner, tmp_path, malformed_settings):
        path = tmp_path / "bad.psd1"
        path.write_text(malformed_settings)
        result = runner.invoke(cli, ["validate", "-s", str(path)])
        assert result.exit_code == 1
        assert "'Enable' must be a boolean" in result.output

    def test_missing_settings_file(self, runner):
        result = runner.invoke(cli, ["show", "-s", "/nonexistent/settings.psd1"])
        assert result.exit_code != 0

    def test_convert_to_stdout(self, runner, settings_file):
        result = runner.invoke(cli, ["convert", "-s", str(settings_file), "--to", "yaml"])
        assert result.exit_code == 0
        assert "ExcludeRules:" in result.output

    def test_convert_to_file(self, runner, settings_file, tmp_path):
        out = tmp_path / "settings.json"
        result = runner.invoke(cli, ["convert", "-s", str(settings_file), "-o", str(out)])
        assert result.exit_code == 0
        assert json.loads(out.read_text())["Rules"]["PSAvoidLongLines"]["Options"] == {
            "MaximumLineLength": 120}

    def test_diff_no_drift(self, runner, settings_file):
        result = runner.invoke(cli, ["diff", str(settings_file), str(settings_file)])
        assert result.exit_code == 0
        assert "No drift" in result.output

    def test_diff_drift(self, runner, settings_file, tmp_path, sample_settings):
        changed = tmp_path / "changed.psd1"
        changed.write_text(sample_settings.replace("120", "100"))
        result = runner.invoke(cli, ["diff", str(settings_file), str(changed)])
        assert result.exit_code == 0
        assert "drifted" in result.output
        assert "PSAvoidLongLines options" in result.output

    def test_init(self, runner, tmp_path):
        target = tmp_path / "PSScriptAnalyzerSettings.psd1"
        result = runner.invoke(cli, ["init", str(target)])
        assert result.exit_code == 0
        assert target.exists()

        again = runner.invoke(cli, ["init", str(target)])
        assert again.exit_code == 1
        assert "already exists" in again.output

        forced = runner.invoke(cli, ["init", str(target), "--force"])
        assert forced.exit_code == 0
