"""Core data models for ruleconfig."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

OptionValue = Union[str, int, bool]


class SettingsFormat(enum.Enum):
    """Serialization formats for a settings document."""

    PSD1 = "psd1"
    YAML = "yaml"
    JSON = "json"

    @classmethod
    def from_suffix(cls, suffix: str) -> SettingsFormat | None:
        return {
            ".psd1": cls.PSD1,
            ".yml": cls.YAML,
            ".yaml": cls.YAML,
            ".json": cls.JSON,
        }.get(suffix.lower())


@dataclass
class RuleSetting:
    """Settings for a single rule."""

    enabled: bool
    options: dict[str, OptionValue] = field(default_factory=dict)


@dataclass
class RuleConfiguration:
    """A parsed rule configuration document."""

    excluded_rules: set[str] = field(default_factory=set)
    rules: dict[str, RuleSetting] = field(default_factory=dict)
    include_rules: list[str] = field(default_factory=list)
    severity: list[str] = field(default_factory=list)
    include_default_rules: bool | None = None
    custom_rule_path: list[str] = field(default_factory=list)
    recurse_custom_rule_path: bool | None = None
    source: str = field(default="", compare=False)

    @property
    def rule_ids(self) -> list[str]:
        """Every rule id the document mentions, configured rules first."""
        extra = sorted(self.excluded_rules - set(self.rules))
        return list(self.rules) + extra

    def is_enabled(self, rule_id: str, default: bool = True) -> bool:
        """Whether ``rule_id`` is effectively enabled.

        An excluded rule is disabled whatever its own ``Enable`` says. Rules
        the document never mentions get ``default`` back unchanged.
        """
        if rule_id in self.excluded_rules:
            return False
        setting = self.rules.get(rule_id)
        if setting is None:
            return default
        return setting.enabled

    def options_for(self, rule_id: str) -> dict[str, OptionValue]:
        setting = self.rules.get(rule_id)
        if setting is None:
            return {}
        return dict(setting.options)

    def enabled_rules(self, default: bool = True) -> list[str]:
        return [r for r in self.rule_ids if self.is_enabled(r, default)]

    def to_dict(self) -> dict[str, Any]:
        """Canonical nested mapping, the shape the YAML and JSON forms use."""
        data: dict[str, Any] = {}
        if self.include_rules:
            data["IncludeRules"] = list(self.include_rules)
        data["ExcludeRules"] = sorted(self.excluded_rules)
        if self.severity:
            data["Severity"] = list(self.severity)
        if self.include_default_rules is not None:
            data["IncludeDefaultRules"] = self.include_default_rules
        if self.custom_rule_path:
            data["CustomRulePath"] = list(self.custom_rule_path)
        if self.recurse_custom_rule_path is not None:
            data["RecurseCustomRulePath"] = self.recurse_custom_rule_path

        rules: dict[str, Any] = {}
        for rule_id, setting in self.rules.items():
            entry: dict[str, Any] = {"Enable": setting.enabled}
            if setting.options:
                entry["Options"] = dict(setting.options)
            rules[rule_id] = entry
        data["Rules"] = rules
        return data


def is_enabled(config: RuleConfiguration, rule_id: str,
               default: bool = True) -> bool:
    """Module-level form of :meth:`RuleConfiguration.is_enabled`."""
    return config.is_enabled(rule_id, default)


def options_for(config: RuleConfiguration, rule_id: str) -> dict[str, OptionValue]:
    """Module-level form of :meth:`RuleConfiguration.options_for`."""
    return config.options_for(rule_id)
