from __future__ import annotations
from flask import Blueprint, jsonify, current_app

main_bp = Blueprint("main", __name__)

# Config keys reported by /api/env-check (presence only, never values)
ENV_KEYS = ("SECRET_KEY", "SUPABASE_URL", "SUPABASE_KEY", "OPENAI_API_KEY")


@main_bp.get("/api/env-check")
def env_check():
    cfg = current_app.config
    out = {"ENV": cfg.get("ENV_NAME")}
    for key in ENV_KEYS:
        out[key] = "Set" if cfg.get(key) else "Not set"
    out["STORE_ANALYSES"] = bool(cfg.get("STORE_ANALYSES"))
    return jsonify(out)


@main_bp.get("/api/analyzer-status")
def analyzer_status():
    analyzer = current_app.config.get("ANALYZER")
    if analyzer is None:
        return jsonify(hasKey=False, error="No analyzer configured")
    return jsonify(analyzer.status())
