# cvreview/routes/resumes.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user

from ..security.auth import api_login_required
from ..services.analyzer import AnalyzerError, AnalyzerConfigError
from ..services.history import clamp_limit, list_analyses, save_analysis
from ..services.resumes import (
    UploadError, extract_pdf_text, run_analysis, sample_calculation, validate_upload,
)

resumes_bp = Blueprint("resumes", __name__)


# 1) CV analysis (multipart: cv=<pdf>, jobRole=<str>)
@resumes_bp.post("/api/analyze-cv")
@api_login_required
def analyze_cv():
    analyzer = current_app.config.get("ANALYZER")
    if analyzer is None or not analyzer.configured:
        current_app.logger.error("CV analysis requested but the analyzer is not configured")
        return jsonify(error=AnalyzerConfigError.public_message), AnalyzerConfigError.status_code

    try:
        raw, file_name, job_role = validate_upload(
            request.files.get("cv"),
            request.form.get("jobRole"),
            max_bytes=current_app.config["MAX_UPLOAD_BYTES"],
        )
        cv_text = extract_pdf_text(raw)
        current_app.logger.info("CV text extracted: file=%s chars=%d role=%s", file_name, len(cv_text), job_role)

        result = run_analysis(analyzer, cv_text, job_role, file_name=file_name, file_size=len(raw))

    except UploadError as e:
        return jsonify(error=str(e)), 400
    except AnalyzerError as e:
        current_app.logger.error("CV analysis failed upstream (%s): %s", type(e).__name__, e)
        return jsonify(error=e.public_message), e.status_code
    except Exception:
        current_app.logger.exception("Unhandled error in /api/analyze-cv")
        return jsonify(error="Failed to analyze CV. Please try again."), 500

    if current_app.config.get("STORE_ANALYSES"):
        save_analysis(current_app.config["DATABASE"], current_user.id, result)

    return jsonify(result), 200


# 2) Formula self-check on a fixed sample
@resumes_bp.get("/api/analyze-cv")
def analyze_cv_selftest():
    return jsonify(
        success=True,
        calculation=sample_calculation(),
        message="ATS scoring formula test completed successfully",
    )


# 3) Recent analyses for the dashboard
@resumes_bp.get("/api/analyses")
@api_login_required
def recent_analyses():
    if not current_app.config.get("STORE_ANALYSES"):
        return jsonify(enabled=False, analyses=[])

    limit = clamp_limit(request.args.get("limit"))
    try:
        rows = list_analyses(current_app.config["DATABASE"], current_user.id, limit)
    except Exception:
        current_app.logger.exception("Could not load analyses")
        return jsonify(error="Could not load analyses. Please try again."), 500
    return jsonify(enabled=True, analyses=rows)
