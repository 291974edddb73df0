"""Read-only HTTP API over a loaded settings document."""

from ruleconfig.api.app import create_app

__all__ = ["create_app"]
