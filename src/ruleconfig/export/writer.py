"""Settings writer — psd1, YAML and JSON output."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ruleconfig.models import RuleConfiguration, SettingsFormat

logger = logging.getLogger(__name__)

INDENT = "    "

_BAREWORD = re.compile(r"[A-Za-z_][\w.-]*")


class SettingsWriter:
    """Serialize rule configurations.

    The psd1 output uses the analyzer's flat rule layout, with options beside
    ``Enable``. YAML and JSON use the nested ``Options`` layout of
    :meth:`RuleConfiguration.to_dict`. Either reads back to an equal model.
    """

    def dumps(self, config: RuleConfiguration,
              fmt: SettingsFormat = SettingsFormat.PSD1) -> str:
        if fmt == SettingsFormat.YAML:
            return yaml.safe_dump(config.to_dict(), sort_keys=False,
                                  default_flow_style=False)
        if fmt == SettingsFormat.JSON:
            return json.dumps(config.to_dict(), indent=2) + "\n"
        return self._dumps_psd1(config)

    def dump(self, config: RuleConfiguration, output_path: str | Path,
             fmt: SettingsFormat | None = None) -> str:
        """Write ``config`` to ``output_path``; the suffix picks the format."""
        output_path = Path(output_path)
        if fmt is None:
            fmt = SettingsFormat.from_suffix(output_path.suffix) or SettingsFormat.PSD1
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.dumps(config, fmt), encoding="utf-8")
        logger.info("Settings written to %s (%s)", output_path, fmt.value)
        return str(output_path)

    def _dumps_psd1(self, config: RuleConfiguration) -> str:
        data = config.to_dict()
        flat_rules: dict[str, Any] = {}
        for rule_id, entry in data["Rules"].items():
            flat = {"Enable": entry["Enable"]}
            for name, value in entry.get("Options", {}).items():
                if name.lower() in ("enable", "options"):
                    raise ValueError(f"Rule {rule_id!r}: option name {name!r} is reserved")
                flat[name] = value
            flat_rules[rule_id] = flat
        data["Rules"] = flat_rules

        lines = ["@{"]
        entries = list(data.items())
        for i, (key, value) in enumerate(entries):
            lines.append(f"{INDENT}{_key(key)} = {_value(value, 1)}")
            if i < len(entries) - 1:
                lines.append("")
        lines.append("}")
        return "\n".join(lines) + "\n"


def _key(key: str) -> str:
    if _BAREWORD.fullmatch(key):
        return key
    return _quote(key)


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _value(value: Any, depth: int) -> str:
    pad = INDENT * depth
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return _quote(value)
    if value is None:
        return "$null"
    if isinstance(value, list):
        if not value:
            return "@()"
        items = [f"{pad}{INDENT}{_value(v, depth + 1)}" for v in value]
        return "@(\n" + "\n".join(items) + f"\n{pad})"
    if isinstance(value, dict):
        if not value:
            return "@{}"
        items = [f"{pad}{INDENT}{_key(k)} = {_value(v, depth + 1)}" for k, v in value.items()]
        return "@{\n" + "\n".join(items) + f"\n{pad}}}"
    raise TypeError(f"Cannot write {type(value).__name__} to a data file")


def dumps(config: RuleConfiguration,
          fmt: SettingsFormat = SettingsFormat.PSD1) -> str:
    """Serialize ``config`` in ``fmt``."""
    return SettingsWriter().dumps(config, fmt)
