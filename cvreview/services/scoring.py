# cvreview/services/scoring.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

# ========= Weights / thresholds =========
# Weights sum to 100, so the weighted score stays on the 0-100 scale.
SECTION_WEIGHTS = {
    "contact":    10,
    "summary":    15,
    "experience": 30,
    "skills":     25,
    "education":  10,
    "formatting": 10,
}

MATCH_BONUS_THRESHOLD   = 80
MATCH_BONUS             = 5
KEYWORD_BONUS_THRESHOLD = 70
KEYWORD_BONUS           = 3

MIN_FINAL_SCORE = 20
MAX_FINAL_SCORE = 100

# Evaluated top-down, first match wins. The last row catches everything below 50.
INTERPRETATIONS = (
    (90, "Excellent",  "Outstanding CV with excellent ATS compatibility"),
    (80, "Very Good",  "Strong CV with good ATS compatibility and minor improvements needed"),
    (70, "Good",       "Solid CV with decent ATS compatibility but room for improvement"),
    (60, "Fair",       "Acceptable CV but needs significant improvements for better ATS performance"),
    (50, "Needs Work", "CV requires substantial improvements to pass ATS systems"),
)
POOR = ("Poor", "CV needs major revisions to be ATS-compatible")

# Analyzer JSON keys -> section names used here
_SECTION_ALIASES = {
    "contactInfo": "contact",
    "contact_info": "contact",
}


def clamp_score(value, low: float = 0, high: float = 100) -> float:
    """Coerce to float and clamp into [low, high]. NaN counts as `low`."""
    v = float(value)
    if v != v:
        return float(low)
    return max(float(low), min(float(high), v))


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SectionScores:
    contact: float
    summary: float
    experience: float
    skills: float
    education: float
    formatting: float

    @classmethod
    def from_mapping(cls, data: Mapping) -> "SectionScores":
        """
        Accepts either flat numbers ({"contact": 85, ...}) or the analyzer's
        nested shape ({"contactInfo": {"score": 85}, ...}).
        """
        values = {}
        for key, raw in (data or {}).items():
            name = _SECTION_ALIASES.get(key, key)
            if name not in SECTION_WEIGHTS:
                continue
            if isinstance(raw, Mapping):
                raw = raw.get("score")
            values[name] = raw
        missing = [k for k in SECTION_WEIGHTS if values.get(k) is None]
        if missing:
            raise ValueError(f"missing section scores: {', '.join(missing)}")
        return cls(**values)

    def clamped(self) -> "SectionScores":
        return SectionScores(**{k: clamp_score(v) for k, v in asdict(self).items()})

    def as_dict(self) -> dict:
        return asdict(self)


def weighted_score(sections: SectionScores) -> float:
    s = sections.clamped()
    total = (
        s.contact    * SECTION_WEIGHTS["contact"] +
        s.summary    * SECTION_WEIGHTS["summary"] +
        s.experience * SECTION_WEIGHTS["experience"] +
        s.skills     * SECTION_WEIGHTS["skills"] +
        s.education  * SECTION_WEIGHTS["education"] +
        s.formatting * SECTION_WEIGHTS["formatting"]
    )
    return total / 100


def match_bonus(match_score) -> int:
    return MATCH_BONUS if float(match_score) > MATCH_BONUS_THRESHOLD else 0


def keyword_bonus(keyword_density) -> int:
    return KEYWORD_BONUS if float(keyword_density) > KEYWORD_BONUS_THRESHOLD else 0


def aggregate(sections: SectionScores | Mapping, match_score, keyword_density) -> int:
    """
    Weighted ATS score in [20, 100]:
    (contact*10 + summary*15 + experience*30 + skills*25 + education*10 + formatting*10) / 100,
    +5 when match_score > 80, +3 when keyword_density > 70, rounded half-up, then clamped.
    """
    if not isinstance(sections, SectionScores):
        sections = SectionScores.from_mapping(sections)
    score = weighted_score(sections) + match_bonus(match_score) + keyword_bonus(keyword_density)
    return max(MIN_FINAL_SCORE, min(MAX_FINAL_SCORE, round_half_up(score)))


def interpret(final_score: int) -> dict:
    for floor, level, description in INTERPRETATIONS:
        if final_score >= floor:
            return {"level": level, "description": description}
    level, description = POOR
    return {"level": level, "description": description}


def score_breakdown(sections: SectionScores | Mapping, match_score, keyword_density) -> dict:
    if not isinstance(sections, SectionScores):
        sections = SectionScores.from_mapping(sections)
    s = sections.clamped()
    ws = weighted_score(s)
    final = aggregate(s, match_score, keyword_density)

    def _fmt(v: float) -> str:
        return f"{v:g}"

    formula = (
        f"({_fmt(s.contact)}×10 + {_fmt(s.summary)}×15 + {_fmt(s.experience)}×30 + "
        f"{_fmt(s.skills)}×25 + {_fmt(s.education)}×10 + {_fmt(s.formatting)}×10) ÷ 100 + bonuses"
    )
    return {
        "sections": s.as_dict(),
        "matchScore": match_score,
        "keywordDensity": keyword_density,
        "weightedScore": round(ws, 2),
        "bonuses": {
            "matchScoreBonus": match_bonus(match_score),
            "keywordDensityBonus": keyword_bonus(keyword_density),
        },
        "finalScore": final,
        "interpretation": interpret(final),
        "formula": formula,
    }
