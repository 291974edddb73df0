"""Settings drift detection."""

from ruleconfig.scan.drift import DriftDetector

__all__ = ["DriftDetector"]
