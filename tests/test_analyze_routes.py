import json
from io import BytesIO

import httpx
import openai
import pytest

from cvreview import create_app
from cvreview.services.analyzer import OpenAIAnalyzer

from conftest import FakeOpenAI, analyzer_payload


def _upload(client, data, role="Backend Engineer", name="cv.pdf", mimetype="application/pdf"):
    form = {"jobRole": role}
    if data is not None:
        form["cv"] = (BytesIO(data), name, mimetype)
    return client.post("/api/analyze-cv", data=form, content_type="multipart/form-data")


def test_requires_login(client, pdf_bytes):
    r = _upload(client, pdf_bytes)
    assert r.status_code == 401
    assert r.get_json()["error"] == "Authentication required"


def test_analyze_success(logged_in, pdf_bytes, openai_client):
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["analysis"]["overallScore"] == 94
    assert body["analysis"]["scoreInterpretation"]["level"] == "Excellent"
    assert body["metadata"]["jobRole"] == "Backend Engineer"
    assert body["metadata"]["fileSize"] == len(pdf_bytes)

    prompt = openai_client.chat.completions.calls[0]["messages"][-1]["content"]
    assert "Jane Doe Senior Software Engineer" in prompt


@pytest.mark.parametrize("kwargs, message", [
    ({"data": None}, "No CV file provided"),
    ({"role": ""}, "No job role specified"),
    ({"mimetype": "image/png", "name": "cv.png"}, "Only PDF files are supported"),
])
def test_bad_input(logged_in, pdf_bytes, kwargs, message):
    args = {"data": pdf_bytes}
    args.update(kwargs)
    r = _upload(logged_in, **args)
    assert r.status_code == 400
    assert r.get_json()["error"] == message


def test_too_large(logged_in, app, pdf_bytes):
    app.config["MAX_UPLOAD_BYTES"] = 10
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == 400
    assert r.get_json()["error"].startswith("File size must be less than")


def test_unreadable_pdf(logged_in):
    r = _upload(logged_in, b"%PDF-1.4 scanned image only")
    assert r.status_code == 400
    assert "Could not extract text" in r.get_json()["error"]


def test_analyzer_not_configured(supabase, pdf_bytes):
    app = create_app("test", database=supabase, analyzer=OpenAIAnalyzer(None))
    with app.test_client() as c:
        c.post("/api/auth/signup", json={"name": "B", "email": "b@example.com", "password": "s3cret!"})
        c.post("/api/auth/login", json={"email": "b@example.com", "password": "s3cret!"})
        r = _upload(c, pdf_bytes)
    assert r.status_code == 500
    assert "not configured" in r.get_json()["error"]


_REQ = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


@pytest.mark.parametrize("error, status", [
    (openai.RateLimitError("quota", response=httpx.Response(429, request=_REQ), body=None), 429),
    (openai.AuthenticationError("bad key", response=httpx.Response(401, request=_REQ), body=None), 401),
    (openai.APIConnectionError(request=_REQ), 500),
])
def test_upstream_failures_map_to_status(logged_in, openai_client, pdf_bytes, error, status):
    openai_client.chat.completions.error = error
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == status
    assert r.get_json()["error"]


def test_malformed_model_output(logged_in, openai_client, pdf_bytes):
    openai_client.chat.completions.content = "sorry, I can't help with that"
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == 500
    assert r.get_json()["error"] == "AI model error. Please try again."


def test_unexpected_failure_is_generic(logged_in, pdf_bytes, monkeypatch):
    def boom(*a, **kw):
        raise KeyError("surprise")
    monkeypatch.setattr("cvreview.routes.resumes.run_analysis", boom)
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == 500
    assert r.get_json()["error"] == "Failed to analyze CV. Please try again."


def test_selftest_endpoint(client):
    r = client.get("/api/analyze-cv")
    assert r.status_code == 200
    calc = r.get_json()["calculation"]
    assert calc["finalScore"] == 94
    assert calc["bonuses"] == {"matchScoreBonus": 5, "keywordDensityBonus": 3}


# ---------- history ----------
def test_history_disabled_by_default(logged_in, supabase, pdf_bytes):
    assert _upload(logged_in, pdf_bytes).status_code == 200
    assert "analyses" not in supabase.tables
    r = logged_in.get("/api/analyses")
    assert r.get_json() == {"enabled": False, "analyses": []}


def test_history_records_and_lists(logged_in, app, supabase, pdf_bytes):
    app.config["STORE_ANALYSES"] = True
    _upload(logged_in, pdf_bytes, role="Data Engineer")
    _upload(logged_in, pdf_bytes, role="Platform Engineer")

    rows = supabase.tables["analyses"]
    assert len(rows) == 2
    assert rows[0]["final_score"] == 94 and rows[0]["level"] == "Excellent"

    r = logged_in.get("/api/analyses?limit=1")
    body = r.get_json()
    assert body["enabled"] is True
    assert [a["job_role"] for a in body["analyses"]] == ["Platform Engineer"]


def test_history_failure_does_not_fail_request(logged_in, app, supabase, pdf_bytes):
    app.config["STORE_ANALYSES"] = True
    supabase.failing_tables.add("analyses")
    assert _upload(logged_in, pdf_bytes).status_code == 200


def test_non_finite_model_number_is_a_model_error(logged_in, openai_client, pdf_bytes):
    openai_client.chat.completions.content = json.dumps(analyzer_payload(matchScore=float("nan")))
    r = _upload(logged_in, pdf_bytes)
    assert r.status_code == 500
    body = r.get_data(as_text=True)
    assert "NaN" not in body
    assert json.loads(body)["error"] == "AI model error. Please try again."


def test_breakdown_echoes_integers(logged_in, pdf_bytes):
    body = json.loads(_upload(logged_in, pdf_bytes).get_data(as_text=True))
    breakdown = body["metadata"]["scoreBreakdown"]
    assert all(isinstance(breakdown[k], int) for k in ("contact", "skills", "matchScore", "keywordDensity"))
    assert isinstance(body["analysis"]["sections"]["contactInfo"]["score"], int)
