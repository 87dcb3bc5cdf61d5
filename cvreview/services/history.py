# cvreview/services/history.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


def save_analysis(db, auth_id: str, result: dict) -> bool:
    """Store a finished analysis. Returns False (and logs) when the insert fails."""
    analysis = result.get("analysis") or {}
    meta = result.get("metadata") or {}
    row = {
        "auth_id": auth_id,
        "job_role": meta.get("jobRole"),
        "file_name": meta.get("fileName"),
        "final_score": analysis.get("overallScore"),
        "level": (analysis.get("scoreInterpretation") or {}).get("level"),
        "payload": result,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        db.table("analyses").insert(row).execute()
        return True
    except Exception:
        logger.exception("failed to store analysis for %s", auth_id)
        return False


def clamp_limit(raw, default: int = DEFAULT_LIMIT) -> int:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, min(MAX_LIMIT, n))


def list_analyses(db, auth_id: str, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    r = (
        db.table("analyses")
        .select("job_role,file_name,final_score,level,payload,created_at")
        .eq("auth_id", auth_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return getattr(r, "data", None) or []
