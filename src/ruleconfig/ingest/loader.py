"""Settings loader — builds a RuleConfiguration from psd1, YAML or JSON text."""

from __future__ import annotations

import importlib.resources
import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ruleconfig.errors import ParseError
from ruleconfig.ingest.psd1 import parse_psd1
from ruleconfig.models import OptionValue, RuleConfiguration, RuleSetting, SettingsFormat

logger = logging.getLogger(__name__)

BUILTIN_SETTINGS = "PSScriptAnalyzerSettings.psd1"

# Top-level keys are matched case-insensitively, as PowerShell does.
TOP_LEVEL_KEYS = {
    "excluderules": "ExcludeRules",
    "includerules": "IncludeRules",
    "severity": "Severity",
    "includedefaultrules": "IncludeDefaultRules",
    "customrulepath": "CustomRulePath",
    "recursecustomrulepath": "RecurseCustomRulePath",
    "rules": "Rules",
}

RESERVED_RULE_KEYS = {"enable", "options"}

_LEADING_NOISE = re.compile(r"(?:\s+|#[^\n]*|<#.*?#>)*", re.DOTALL)

_MISSING = object()


def detect_format(text: str) -> SettingsFormat:
    """Guess the format of a settings document from its content."""
    body = text.lstrip("\ufeff")
    start = _LEADING_NOISE.match(body).end()
    first = body[start:start + 1]
    if first == "@":
        return SettingsFormat.PSD1
    if first in ("{", "["):
        return SettingsFormat.JSON
    return SettingsFormat.YAML


class SettingsLoader:
    """Load rule configuration documents."""

    def load_file(self, filepath: str | Path,
                  fmt: SettingsFormat | None = None) -> RuleConfiguration:
        """Load a settings document from disk.

        The format comes from ``fmt``, then the file suffix, then the content.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Settings file not found: {filepath}")

        text = filepath.read_text(encoding="utf-8-sig")
        if fmt is None:
            fmt = SettingsFormat.from_suffix(filepath.suffix)
        try:
            config = self.load_text(text, fmt)
        except ParseError as e:
            raise e.with_source(str(filepath)) from e

        config.source = str(filepath)
        logger.info("Loaded %d rules from %s", len(config.rules), filepath.name)
        return config

    def load_text(self, text: str,
                  fmt: SettingsFormat | None = None) -> RuleConfiguration:
        """Parse settings text. Raises ParseError on any malformed input."""
        detected = fmt is None
        if fmt is None:
            fmt = detect_format(text)
        logger.debug("Parsing settings as %s", fmt.value)

        text = text.lstrip("\ufeff")
        try:
            data = self._parse_raw(text, fmt)
        except ParseError:
            if not detected or fmt != SettingsFormat.JSON:
                raise
            # YAML flow mappings also start with '{'.
            logger.debug("Input is not JSON, retrying as YAML")
            data = self._parse_raw(text, SettingsFormat.YAML)
        return self._build(data)

    def load_builtin_settings(self) -> RuleConfiguration:
        """Load the starter settings document shipped with ruleconfig."""
        return self.load_text(builtin_settings_text(), SettingsFormat.PSD1)

    # -- raw parsing ---------------------------------------------------------

    @staticmethod
    def _parse_raw(text: str, fmt: SettingsFormat) -> Any:
        if fmt == SettingsFormat.PSD1:
            return parse_psd1(text)

        if fmt == SettingsFormat.JSON:
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ParseError(e.msg, e.lineno, e.colno) from e

        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            problem = getattr(e, "problem", None) or str(e)
            if mark is not None:
                raise ParseError(problem, mark.line + 1, mark.column + 1) from e
            raise ParseError(problem) from e

    # -- model building ------------------------------------------------------

    def _build(self, data: Any) -> RuleConfiguration:
        if not isinstance(data, dict):
            raise ParseError("Settings document must be a mapping at the top level")

        fields: dict[str, Any] = {}
        for key, value in data.items():
            canonical = TOP_LEVEL_KEYS.get(str(key).lower())
            if canonical is None:
                raise ParseError(f"Unknown top-level key {key!r}")
            if canonical in fields:
                raise ParseError(f"Top-level key {canonical!r} given more than once")
            fields[canonical] = value

        if "Rules" not in fields:
            raise ParseError("Missing required top-level key 'Rules'")

        return RuleConfiguration(
            excluded_rules=set(_string_list(fields.get("ExcludeRules", []), "ExcludeRules")),
            rules=self._parse_rules(fields["Rules"]),
            include_rules=_string_list(fields.get("IncludeRules", []), "IncludeRules"),
            severity=_string_list(fields.get("Severity", []), "Severity"),
            include_default_rules=_optional_bool(
                fields.get("IncludeDefaultRules"), "IncludeDefaultRules"),
            custom_rule_path=_string_list(fields.get("CustomRulePath", []), "CustomRulePath"),
            recurse_custom_rule_path=_optional_bool(
                fields.get("RecurseCustomRulePath"), "RecurseCustomRulePath"),
        )

    def _parse_rules(self, value: Any) -> dict[str, RuleSetting]:
        if not isinstance(value, dict):
            raise ParseError(f"'Rules' must be a mapping, got {_type_name(value)}")

        rules: dict[str, RuleSetting] = {}
        seen: dict[str, str] = {}
        for rule_id, entry in value.items():
            if not isinstance(rule_id, str) or not rule_id:
                raise ParseError(f"Rule identifier must be a non-empty string, got {rule_id!r}")
            # Data-file hashtable keys are case-insensitive.
            folded = rule_id.lower()
            if folded in seen:
                raise ParseError(
                    f"Rule {rule_id!r} duplicates {seen[folded]!r}; ids differ only in case")
            seen[folded] = rule_id
            rules[rule_id] = self._parse_rule(rule_id, entry)
        return rules

    def _parse_rule(self, rule_id: str, entry: Any) -> RuleSetting:
        """Parse one rule entry.

        Options may be written flat beside ``Enable`` (the analyzer's own
        layout) or nested under an ``Options`` mapping; both merge into one
        options dict.
        """
        if not isinstance(entry, dict):
            raise ParseError(f"Rule {rule_id!r} must be a mapping, got {_type_name(entry)}")

        enabled: Any = _MISSING
        nested: Any = None
        options: dict[str, OptionValue] = {}
        for key, value in entry.items():
            name = str(key)
            if name.lower() == "enable":
                enabled = value
            elif name.lower() == "options":
                nested = value
            else:
                _add_option(options, rule_id, name, value)

        if enabled is _MISSING:
            raise ParseError(f"Rule {rule_id!r} is missing 'Enable'")
        if not isinstance(enabled, bool):
            raise ParseError(
                f"Rule {rule_id!r}: 'Enable' must be a boolean, got {_type_name(enabled)}")

        if nested is not None:
            if not isinstance(nested, dict):
                raise ParseError(
                    f"Rule {rule_id!r}: 'Options' must be a mapping, got {_type_name(nested)}")
            for key, value in nested.items():
                name = str(key)
                if name.lower() in RESERVED_RULE_KEYS:
                    raise ParseError(
                        f"Rule {rule_id!r}: {name!r} is reserved and cannot be an option name")
                _add_option(options, rule_id, name, value)

        return RuleSetting(enabled=enabled, options=options)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return {dict: "mapping", list: "list", str: "string", bool: "boolean",
            int: "integer", float: "number"}.get(type(value), type(value).__name__)


def _add_option(options: dict[str, OptionValue], rule_id: str,
                name: str, value: Any) -> None:
    if any(name.lower() == existing.lower() for existing in options):
        raise ParseError(f"Rule {rule_id!r}: option {name!r} given more than once")
    options[name] = _scalar(rule_id, name, value)


def _scalar(rule_id: str, name: str, value: Any) -> OptionValue:
    if isinstance(value, (str, int)):
        return value
    raise ParseError(
        f"Rule {rule_id!r}: option {name!r} must be a string, integer or boolean, "
        f"got {_type_name(value)}")


def _string_list(value: Any, key: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ParseError(f"'{key}' must be a string or a list of strings")
    return list(value)


def _optional_bool(value: Any, key: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise ParseError(f"'{key}' must be a boolean, got {_type_name(value)}")


def builtin_settings_text() -> str:
    return (importlib.resources.files("ruleconfig") / "data" / BUILTIN_SETTINGS).read_text(
        encoding="utf-8")


def load(source: str, fmt: SettingsFormat | None = None) -> RuleConfiguration:
    """Parse settings text into a RuleConfiguration."""
    return SettingsLoader().load_text(source, fmt)


def load_builtin_settings() -> RuleConfiguration:
    return SettingsLoader().load_builtin_settings()
