# cvreview/schemas.py
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Out-of-range scores are clamped by services.scoring, not rejected here.
# NaN and infinity are rejected: they cannot be sent back as JSON.
# Integers stay integers so the response echoes the model's numbers as sent.
Number = Union[int, float]


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)


class ContactInfo(_Camel):
    score: Number
    found: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class Summary(_Camel):
    score: Number
    has_objective: bool = Field(False, alias="hasObjective")
    is_relevant: bool = Field(False, alias="isRelevant")
    suggestions: List[str] = Field(default_factory=list)


class Experience(_Camel):
    score: Number
    years_of_experience: Number = Field(0, alias="yearsOfExperience")
    has_quantifiable_achievements: bool = Field(False, alias="hasQuantifiableAchievements")
    relevant_roles: Number = Field(0, alias="relevantRoles")
    suggestions: List[str] = Field(default_factory=list)


class Skills(_Camel):
    score: Number
    technical_skills: List[str] = Field(default_factory=list, alias="technicalSkills")
    soft_skills: List[str] = Field(default_factory=list, alias="softSkills")
    missing_key_skills: List[str] = Field(default_factory=list, alias="missingKeySkills")
    suggestions: List[str] = Field(default_factory=list)


class Education(_Camel):
    score: Number
    degrees: List[str] = Field(default_factory=list)
    is_relevant: bool = Field(False, alias="isRelevant")
    suggestions: List[str] = Field(default_factory=list)


class Formatting(_Camel):
    score: Number
    is_ats_friendly: bool = Field(False, alias="isATSFriendly")
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class Sections(_Camel):
    contact_info: ContactInfo = Field(alias="contactInfo")
    summary: Summary
    experience: Experience
    skills: Skills
    education: Education
    formatting: Formatting


class Keywords(_Camel):
    found: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    density: Number = 0


class Recommendations(_Camel):
    immediate: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list, alias="longTerm")
    ats_optimization: List[str] = Field(default_factory=list, alias="atsOptimization")


class CVAnalysis(_Camel):
    """Structured analyzer output for one CV / job role pair."""

    overall_score: Optional[Number] = Field(None, alias="overallScore")
    sections: Sections
    keywords: Keywords = Field(default_factory=Keywords)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    match_score: Number = Field(0, alias="matchScore")

    def section_scores(self) -> dict:
        s = self.sections
        return {
            "contact": s.contact_info.score,
            "summary": s.summary.score,
            "experience": s.experience.score,
            "skills": s.skills.score,
            "education": s.education.score,
            "formatting": s.formatting.score,
        }

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
