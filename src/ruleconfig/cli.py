"""ruleconfig CLI — Click-based command-line interface.

Commands:
  show      Summarize a settings document
  check     Report whether a rule is effectively enabled
  options   Print the options configured for a rule
  validate  Parse a settings document and report errors
  convert   Rewrite a settings document as psd1, YAML or JSON
  diff      Compare two settings documents
  init      Write the starter settings document
  serve     Launch the read-only HTTP API
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from ruleconfig import __version__
from ruleconfig.errors import ParseError
from ruleconfig.models import RuleConfiguration, SettingsFormat

DEFAULT_SETTINGS = "PSScriptAnalyzerSettings.psd1"

FORMAT_CHOICES = [f.value for f in SettingsFormat]


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def settings_option(func):
    return click.option(
        "-s", "--settings", "settings_path",
        type=click.Path(exists=True, dir_okay=False),
        default=DEFAULT_SETTINGS, show_default=True,
        envvar="RULECONFIG_SETTINGS",
        help="Settings document to read",
    )(func)


def _load(path: str) -> RuleConfiguration:
    from ruleconfig.ingest.loader import SettingsLoader

    try:
        return SettingsLoader().load_file(path)
    except ParseError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="ruleconfig")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """ruleconfig — inspect static-analysis rule settings documents.

    Reads PSScriptAnalyzer-style settings (psd1, YAML or JSON) and answers
    which rules are enabled and with which options.
    """
    _setup_logging(verbose)


@cli.command()
@settings_option
@click.option("--format", "fmt", type=click.Choice(["text", "json"]),
              default="text", help="Output format")
@click.option("--default/--no-default", "default", default=True,
              help="Enablement assumed for rules the document does not list")
def show(settings_path: str, fmt: str, default: bool) -> None:
    """Summarize the rules in a settings document."""
    config = _load(settings_path)

    if fmt == "json":
        click.echo(json.dumps(config.to_dict(), indent=2))
        return

    click.echo(f"Settings: {settings_path}")
    click.echo(f"Rules configured: {len(config.rules)}")
    click.echo(f"Rules excluded:   {len(config.excluded_rules)}")
    click.echo()
    for rule_id in config.rule_ids:
        enabled = config.is_enabled(rule_id, default)
        if rule_id in config.excluded_rules:
            state, color = "excluded", "red"
        elif enabled:
            state, color = "enabled", "green"
        else:
            state, color = "disabled", "yellow"
        options = config.options_for(rule_id)
        suffix = f" ({len(options)} options)" if options else ""
        click.echo(f"  {rule_id:45s} " + click.style(f"[{state:8s}]", fg=color) + suffix)


@cli.command()
@settings_option
@click.argument("rule_id")
@click.option("--default/--no-default", "default", default=True,
              help="Enablement assumed if the document does not list the rule")
def check(settings_path: str, rule_id: str, default: bool) -> None:
    """Report whether RULE_ID is effectively enabled."""
    config = _load(settings_path)
    enabled = config.is_enabled(rule_id, default)

    if rule_id in config.excluded_rules:
        reason = "excluded"
    elif rule_id in config.rules:
        reason = "configured"
    else:
        reason = "not listed, using default"

    label = "enabled" if enabled else "disabled"
    click.echo(click.style(label, fg="green" if enabled else "red") + f" ({reason})")


@cli.command()
@settings_option
@click.argument("rule_id")
def options(settings_path: str, rule_id: str) -> None:
    """Print the options configured for RULE_ID as JSON."""
    config = _load(settings_path)
    click.echo(json.dumps(config.options_for(rule_id), indent=2))


@cli.command()
@settings_option
def validate(settings_path: str) -> None:
    """Parse a settings document and report any error."""
    config = _load(settings_path)
    click.echo(click.style("Settings are valid", fg="green")
               + f": {len(config.rules)} rules, {len(config.excluded_rules)} excluded")


@cli.command()
@settings_option
@click.option("-o", "--output", type=click.Path(dir_okay=False),
              help="Output file (stdout if omitted)")
@click.option("--to", "fmt", type=click.Choice(FORMAT_CHOICES),
              help="Output format (defaults to the output suffix, then psd1)")
def convert(settings_path: str, output: str | None, fmt: str | None) -> None:
    """Rewrite a settings document in another format."""
    from ruleconfig.export.writer import SettingsWriter

    config = _load(settings_path)
    writer = SettingsWriter()
    settings_format = SettingsFormat(fmt) if fmt else None

    if output:
        path = writer.dump(config, output, settings_format)
        click.echo(f"Settings written: {path}")
    else:
        click.echo(writer.dumps(config, settings_format or SettingsFormat.PSD1), nl=False)


@cli.command()
@click.argument("baseline", type=click.Path(exists=True, dir_okay=False))
@click.argument("current", type=click.Path(exists=True, dir_okay=False))
@click.option("--default/--no-default", "default", default=True,
              help="Enablement assumed for rules a document does not list")
def diff(baseline: str, current: str, default: bool) -> None:
    """Compare CURRENT settings against BASELINE."""
    from ruleconfig.scan.drift import DriftDetector

    detector = DriftDetector()
    detector.set_baseline("settings", _load(baseline))
    result = detector.check_drift("settings", _load(current), default)

    if not result["drifted"]:
        click.echo(click.style("No drift: settings match baseline", fg="green"))
        return

    changes = result["changes"]
    click.echo(click.style("Settings drifted from baseline", fg="yellow", bold=True))
    for rule_id in changes["rules_added"]:
        click.echo(f"  + rule {rule_id}")
    for rule_id in changes["rules_removed"]:
        click.echo(f"  - rule {rule_id}")
    for rule_id in changes["exclusions_added"]:
        click.echo(f"  + exclude {rule_id}")
    for rule_id in changes["exclusions_removed"]:
        click.echo(f"  - exclude {rule_id}")
    for change in changes["enablement_changed"]:
        before = "enabled" if change["before"] else "disabled"
        after = "enabled" if change["after"] else "disabled"
        click.echo(f"  ~ {change['rule_id']}: {before} -> {after}")
    for change in changes["options_changed"]:
        click.echo(f"  ~ {change['rule_id']} options: {change['before']} -> {change['after']}")
    click.echo()
    click.echo(result["full_diff"])


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False), default=DEFAULT_SETTINGS)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: str, force: bool) -> None:
    """Write the starter settings document to PATH."""
    from ruleconfig.ingest.loader import builtin_settings_text

    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(builtin_settings_text(), encoding="utf-8")
    click.echo(f"Settings written: {target}")


@cli.command()
@settings_option
@click.option("-p", "--port", default=5000, help="API port")
@click.option("-h", "--host", default="127.0.0.1", help="API host")
@click.option("--debug", is_flag=True, help="Enable debug mode")
def serve(settings_path: str, port: int, host: str, debug: bool) -> None:
    """Launch the read-only settings API."""
    from ruleconfig.api.app import create_app

    app = create_app(_load(settings_path))
    click.echo(f"ruleconfig API: http://{host}:{port}/api/v1/status")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
