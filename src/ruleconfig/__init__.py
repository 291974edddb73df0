"""ruleconfig — load and query static-analysis rule settings documents."""

__version__ = "1.0.0"

from ruleconfig.errors import ParseError
from ruleconfig.ingest.loader import load
from ruleconfig.models import RuleConfiguration, RuleSetting, is_enabled, options_for

__all__ = [
    "ParseError",
    "RuleConfiguration",
    "RuleSetting",
    "__version__",
    "is_enabled",
    "load",
    "options_for",
]
