"""Settings drift detection against known-good baselines."""

from __future__ import annotations

import dataclasses
import difflib
import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ruleconfig.export.writer import dumps
from ruleconfig.ingest.loader import SettingsLoader
from ruleconfig.models import RuleConfiguration

logger = logging.getLogger(__name__)


def _fingerprint(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def _normalized(config: RuleConfiguration) -> str:
    """psd1 text with rules in name order, so ordering alone is not drift."""
    ordered = dataclasses.replace(config, rules=dict(sorted(config.rules.items())))
    return dumps(ordered)


def compare(baseline: RuleConfiguration, current: RuleConfiguration,
            default: bool = True) -> dict[str, Any]:
    """Summarize rule-level differences between two configurations."""
    ids = list(dict.fromkeys(baseline.rule_ids + current.rule_ids))

    enablement = []
    for rule_id in ids:
        before = baseline.is_enabled(rule_id, default)
        after = current.is_enabled(rule_id, default)
        if before != after:
            enablement.append({"rule_id": rule_id, "before": before, "after": after})

    options = []
    for rule_id in ids:
        before_opts = baseline.options_for(rule_id)
        after_opts = current.options_for(rule_id)
        if before_opts != after_opts:
            options.append({"rule_id": rule_id, "before": before_opts, "after": after_opts})

    return {
        "rules_added": [r for r in current.rules if r not in baseline.rules],
        "rules_removed": [r for r in baseline.rules if r not in current.rules],
        "exclusions_added": sorted(current.excluded_rules - baseline.excluded_rules),
        "exclusions_removed": sorted(baseline.excluded_rules - current.excluded_rules),
        "enablement_changed": enablement,
        "options_changed": options,
    }


class DriftDetector:
    """Detects settings drift from a stored baseline.

    Baselines are kept per name (usually a repository or project). Documents
    are compared in normalized psd1 form, so formatting and rule order alone
    do not count as drift.
    """

    def __init__(self, baseline_dir: str | Path | None = None) -> None:
        self._baselines: dict[str, RuleConfiguration] = {}
        self._baseline_hashes: dict[str, str] = {}
        self._loader = SettingsLoader()
        if baseline_dir:
            self.load_baselines(baseline_dir)

    def set_baseline(self, name: str, config: RuleConfiguration) -> None:
        """Set the baseline configuration for ``name``."""
        self._baselines[name] = config
        self._baseline_hashes[name] = _fingerprint(_normalized(config))
        logger.info("Baseline set for %s", name)

    def load_baselines(self, directory: str | Path) -> int:
        """Load every settings document in ``directory`` as a baseline."""
        directory = Path(directory)
        count = 0
        if directory.is_dir():
            for f in sorted(directory.iterdir()):
                if f.is_file() and f.suffix.lower() in (".psd1", ".yml", ".yaml", ".json"):
                    self.set_baseline(f.stem, self._loader.load_file(f))
                    count += 1
        return count

    def check_drift(self, name: str, current: RuleConfiguration,
                    default: bool = True) -> dict[str, Any]:
        """Check whether ``current`` has drifted from the baseline for ``name``."""
        if name not in self._baselines:
            return {
                "name": name,
                "drifted": False,
                "error": "No baseline configured for this name",
            }

        baseline = self._baselines[name]
        current_text = _normalized(current)
        current_hash = _fingerprint(current_text)

        if current_hash == self._baseline_hashes[name]:
            return {
                "name": name,
                "drifted": False,
                "message": "Settings match baseline",
            }

        diff_lines = list(difflib.unified_diff(
            _normalized(baseline).splitlines(),
            current_text.splitlines(),
            fromfile=f"{name} (baseline)",
            tofile=f"{name} (current)",
            lineterm="",
        ))

        return {
            "name": name,
            "drifted": True,
            "checked_at": datetime.now(timezone.utc).isoformat(),
            "baseline_hash": self._baseline_hashes[name],
            "current_hash": current_hash,
            "changes": compare(baseline, current, default),
            "full_diff": "\n".join(diff_lines),
        }

    def check_all(self, configs: dict[str, RuleConfiguration],
                  default: bool = True) -> list[dict[str, Any]]:
        """Check drift for several named configurations."""
        return [self.check_drift(name, config, default) for name, config in configs.items()]

    @property
    def baseline_names(self) -> list[str]:
        return list(self._baselines.keys())
