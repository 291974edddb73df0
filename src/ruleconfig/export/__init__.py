"""Settings export — serialize a RuleConfiguration back to text."""

from ruleconfig.export.writer import SettingsWriter, dumps

__all__ = ["SettingsWriter", "dumps"]
