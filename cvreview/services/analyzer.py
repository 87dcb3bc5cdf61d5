# cvreview/services/analyzer.py
from __future__ import annotations

import json, re, logging
from datetime import datetime, timezone

import openai
from openai import OpenAI
from pydantic import ValidationError

from ..schemas import CVAnalysis

logger = logging.getLogger(__name__)

PROVIDER = "OpenAI"


# ========= Errors =========
class AnalyzerError(RuntimeError):
    """Upstream analyzer failure. `status_code` is the HTTP status the web layer answers with."""
    status_code = 500
    public_message = "AI analysis failed. Please try again."


class AnalyzerConfigError(AnalyzerError):
    public_message = "AI analyzer is not configured. Please add OPENAI_API_KEY to your environment variables."


class AnalyzerAuthError(AnalyzerError):
    status_code = 401
    public_message = "AI provider configuration error. Please check your API key."


class AnalyzerQuotaError(AnalyzerError):
    status_code = 429
    public_message = "AI provider rate limit exceeded. Please try again later."


class AnalyzerResponseError(AnalyzerError):
    public_message = "AI model error. Please try again."


# ========= Prompt =========
ANALYSIS_PROMPT = """
You are an expert ATS (Applicant Tracking System) consultant and career advisor.
Analyze the following CV for the job role: "{job_role}".

IMPORTANT SCORING GUIDELINES:
- Provide realistic, industry-standard scores for each section (0-100)
- Contact Info: 70-100 for complete contact details
- Summary: 60-95 based on relevance and professionalism
- Experience: 50-100 based on relevance and achievements
- Skills: 60-100 based on technical and soft skills match
- Education: 70-100 for relevant degrees/certifications
- Formatting: 60-100 for ATS-friendliness
- matchScore: how well the CV matches the role (50-100)
- keywords.density: keyword coverage for the role (0-100)

Return ONLY valid JSON (no backticks) with exactly this shape:
{{
  "overallScore": 0-100,
  "sections": {{
    "contactInfo": {{"score": 0-100, "found": ["..."], "missing": ["..."], "suggestions": ["..."]}},
    "summary": {{"score": 0-100, "hasObjective": true, "isRelevant": true, "suggestions": ["..."]}},
    "experience": {{"score": 0-100, "yearsOfExperience": 0, "hasQuantifiableAchievements": true,
                    "relevantRoles": 0, "suggestions": ["..."]}},
    "skills": {{"score": 0-100, "technicalSkills": ["..."], "softSkills": ["..."],
                "missingKeySkills": ["..."], "suggestions": ["..."]}},
    "education": {{"score": 0-100, "degrees": ["..."], "isRelevant": true, "suggestions": ["..."]}},
    "formatting": {{"score": 0-100, "isATSFriendly": true, "issues": ["..."], "suggestions": ["..."]}}
  }},
  "keywords": {{"found": ["..."], "missing": ["..."], "density": 0-100}},
  "recommendations": {{"immediate": ["..."], "longTerm": ["..."], "atsOptimization": ["..."]}},
  "matchScore": 0-100
}}

Be specific and constructive. Focus on what will help this candidate pass ATS systems
and appeal to hiring managers for this role.

CV Content:
{cv_text}

Job Role Context: {job_role}
""".strip()


def build_prompt(cv_text: str, job_role: str, max_chars: int = 12000) -> str:
    return ANALYSIS_PROMPT.format(job_role=job_role, cv_text=(cv_text or "")[:max_chars])


def parse_analysis(content: str) -> CVAnalysis:
    """Strip fences, take the outermost JSON object and validate it."""
    content = re.sub(r"```(?:json)?", "", content or "").strip()
    s, e = content.find("{"), content.rfind("}")
    if s < 0 or e <= s:
        raise AnalyzerResponseError("analyzer returned no JSON object")
    try:
        return CVAnalysis.model_validate(json.loads(content[s:e + 1]))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AnalyzerResponseError(f"analyzer returned malformed JSON: {exc}") from exc


class OpenAIAnalyzer:
    """Chat-completions backed CV analyzer returning a validated CVAnalysis."""

    def __init__(self, client: OpenAI | None, model: str = "gpt-4o-mini",
                 temperature: float = 0.0, max_chars: int = 12000):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_chars = max_chars

    @property
    def configured(self) -> bool:
        return self.client is not None

    def analyze(self, cv_text: str, job_role: str) -> CVAnalysis:
        if not self.configured:
            raise AnalyzerConfigError("OPENAI_API_KEY is not set")

        prompt = build_prompt(cv_text, job_role, self.max_chars)
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are an ATS-certified resume analyst. Reply with JSON only."},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise AnalyzerAuthError(str(exc)) from exc
        except openai.RateLimitError as exc:
            raise AnalyzerQuotaError(str(exc)) from exc
        except openai.BadRequestError as exc:
            raise AnalyzerResponseError(str(exc)) from exc
        except openai.OpenAIError as exc:
            raise AnalyzerError(str(exc)) from exc

        content = (resp.choices[0].message.content or "").strip()
        return parse_analysis(content)

    def status(self) -> dict:
        return {
            "hasKey": self.configured,
            "provider": PROVIDER,
            "model": self.model,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
