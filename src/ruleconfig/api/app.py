"""Flask REST API for ruleconfig.

Endpoints:
  GET  /api/v1/status              — Service health check
  GET  /api/v1/rules               — List rules with effective enablement
  GET  /api/v1/rules/<rule_id>     — Enablement and options for one rule
  POST /api/v1/validate            — Validate settings text
  GET  /api/v1/settings/<format>   — Loaded settings as psd1, yaml or json
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify, request

from ruleconfig import __version__
from ruleconfig.errors import ParseError
from ruleconfig.export.writer import SettingsWriter
from ruleconfig.ingest.loader import SettingsLoader
from ruleconfig.models import RuleConfiguration, SettingsFormat

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    SettingsFormat.PSD1: "text/plain; charset=utf-8",
    SettingsFormat.YAML: "application/yaml",
    SettingsFormat.JSON: "application/json",
}


def _parse_bool(raw: str | None, fallback: bool) -> bool | None:
    if raw is None:
        return fallback
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def _error_body(err: ParseError) -> dict:
    return {"error": err.message, "line": err.line, "column": err.column}


def create_app(config: RuleConfiguration | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.json.sort_keys = False

    _config = config or RuleConfiguration()
    _loader = SettingsLoader()
    _writer = SettingsWriter()

    @app.route("/api/v1/status", methods=["GET"])
    def status():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "version": __version__,
            "source": _config.source,
            "rules_configured": len(_config.rules),
            "rules_excluded": len(_config.excluded_rules),
        })

    @app.route("/api/v1/rules", methods=["GET"])
    def list_rules():
        """List every rule the document mentions."""
        default = _parse_bool(request.args.get("default"), True)
        if default is None:
            return jsonify({"error": "'default' must be true or false"}), 400

        return jsonify({
            "count": len(_config.rule_ids),
            "rules": [
                {
                    "rule_id": rule_id,
                    "enabled": _config.is_enabled(rule_id, default),
                    "excluded": rule_id in _config.excluded_rules,
                    "options": _config.options_for(rule_id),
                }
                for rule_id in _config.rule_ids
            ],
        })

    @app.route("/api/v1/rules/<rule_id>", methods=["GET"])
    def get_rule(rule_id: str):
        """Effective enablement and options for one rule."""
        default = _parse_bool(request.args.get("default"), True)
        if default is None:
            return jsonify({"error": "'default' must be true or false"}), 400

        return jsonify({
            "rule_id": rule_id,
            "enabled": _config.is_enabled(rule_id, default),
            "configured": rule_id in _config.rules,
            "excluded": rule_id in _config.excluded_rules,
            "options": _config.options_for(rule_id),
        })

    @app.route("/api/v1/validate", methods=["POST"])
    def validate():
        """Parse submitted settings text and report what it contains."""
        data = request.get_json(silent=True)
        if not data or "settings" not in data:
            return jsonify({"error": "Missing 'settings' in request body"}), 400

        fmt = None
        if data.get("format"):
            try:
                fmt = SettingsFormat(data["format"])
            except ValueError:
                return jsonify({"error": f"Unknown format: {data['format']}"}), 400

        try:
            parsed = _loader.load_text(data["settings"], fmt)
        except ParseError as e:
            logger.info("Rejected settings: %s", e)
            return jsonify({"valid": False, **_error_body(e)}), 400

        return jsonify({
            "valid": True,
            "rules_configured": len(parsed.rules),
            "rules_excluded": sorted(parsed.excluded_rules),
            "enabled_rules": parsed.enabled_rules(),
        })

    @app.route("/api/v1/settings/<fmt>", methods=["GET"])
    def export_settings(fmt: str):
        """Serialize the loaded settings."""
        try:
            settings_format = SettingsFormat(fmt)
        except ValueError:
            return jsonify({"error": f"Unknown format: {fmt}"}), 400

        return Response(_writer.dumps(_config, settings_format),
                        content_type=_CONTENT_TYPES[settings_format])

    return app
