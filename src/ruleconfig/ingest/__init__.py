"""Settings ingestion — PowerShell data-file parser and document loader."""

from ruleconfig.ingest.loader import SettingsLoader, detect_format, load, load_builtin_settings
from ruleconfig.ingest.psd1 import parse_psd1

__all__ = [
    "SettingsLoader",
    "detect_format",
    "load",
    "load_builtin_settings",
    "parse_psd1",
]
