# cvreview/services/resumes.py
from __future__ import annotations

import re, logging
from datetime import datetime, timezone
from io import BytesIO

from PyPDF2 import PdfReader

from .scoring import SectionScores, aggregate, interpret, score_breakdown
from .analyzer import OpenAIAnalyzer

logger = logging.getLogger(__name__)

# ========= Constants =========
PDF_MIMETYPE = "application/pdf"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
SCORING_METHOD = "weighted_ats_formula"

# PDF literal strings: "(...)" in content streams of uncompressed text PDFs
_PDF_LITERAL = re.compile(rb"\(([^)]+)\)")


class UploadError(ValueError):
    """Bad upload input; message is safe to show to the user."""


# ========= Upload validation =========
def validate_upload(file_storage, job_role: str | None, max_bytes: int = MAX_UPLOAD_BYTES):
    """
    Checks the multipart `cv` file and `jobRole` field.
    Returns (raw_bytes, filename, job_role).
    """
    if file_storage is None or not (file_storage.filename or ""):
        raise UploadError("No CV file provided")

    job_role = (job_role or "").strip()
    if not job_role:
        raise UploadError("No job role specified")

    if (file_storage.mimetype or "").lower() != PDF_MIMETYPE:
        raise UploadError("Only PDF files are supported")

    raw = file_storage.read()
    if len(raw) > max_bytes:
        limit = f"{max_bytes // (1024 * 1024)}MB" if max_bytes >= 1024 * 1024 else f"{max_bytes} bytes"
        raise UploadError(f"File size must be less than {limit}")
    return raw, file_storage.filename, job_role


# ========= Text extraction =========
def _literal_strings(raw_bytes: bytes) -> str:
    parts = []
    for m in _PDF_LITERAL.finditer(raw_bytes or b""):
        text = m.group(1).decode("utf-8", errors="ignore").strip()
        if len(text) > 2:
            parts.append(text)
    return " ".join(parts)


def extract_pdf_text(raw_bytes: bytes) -> str:
    text = ""
    try:
        reader = PdfReader(BytesIO(raw_bytes))
        text = "\n".join((p.extract_text() or "") for p in reader.pages)
    except Exception:
        logger.warning("PyPDF2 could not read upload; scanning raw literal strings instead", exc_info=True)

    if not text.strip():
        text = _literal_strings(raw_bytes)

    if not text.strip():
        raise UploadError("Could not extract text from PDF. Please ensure the PDF contains selectable text.")
    return text


# ========= Analysis =========
def run_analysis(analyzer: OpenAIAnalyzer, cv_text: str, job_role: str,
                 file_name: str | None = None, file_size: int | None = None) -> dict:
    """
    Calls the analyzer, recomputes the headline score with the weighted ATS formula
    and returns the response body for the browser. Analyzer errors propagate.
    """
    analysis = analyzer.analyze(cv_text, job_role)

    sections = SectionScores.from_mapping(analysis.section_scores())
    match_score = analysis.match_score
    keyword_density = analysis.keywords.density

    final_score = aggregate(sections, match_score, keyword_density)
    interpretation = interpret(final_score)
    breakdown = score_breakdown(sections, match_score, keyword_density)

    # The model's own overall score is replaced by the formula's result.
    logger.info(
        "ATS score calculation: original=%s final=%s weighted=%s bonuses=%s",
        analysis.overall_score, final_score, breakdown["weightedScore"], breakdown["bonuses"],
    )

    payload = analysis.to_payload()
    payload["overallScore"] = final_score
    payload["scoreInterpretation"] = interpretation

    return {
        "success": True,
        "analysis": payload,
        "metadata": {
            "jobRole": job_role,
            "fileName": file_name,
            "fileSize": file_size,
            "analyzedAt": datetime.now(timezone.utc).isoformat(),
            "scoringMethod": SCORING_METHOD,
            "scoreBreakdown": {
                **sections.as_dict(),
                "matchScore": match_score,
                "keywordDensity": keyword_density,
                "finalScore": final_score,
            },
        },
    }


def sample_calculation() -> dict:
    """Runs the formula on a fixed sample; used as a self-check endpoint."""
    sections = SectionScores(contact=85, summary=78, experience=92, skills=88, education=82, formatting=75)
    return score_breakdown(sections, match_score=85, keyword_density=75)
