import json
import logging
from typing import List, Optional

from groq import AsyncGroq
from pydantic import BaseModel, ValidationError, field_validator

from ..config import get_settings
from ..errors import NarrativeUnavailable
from ..schemas import RiskLevel

log = logging.getLogger("risk-portal.narrative")

FALLBACK_RECOMMENDATIONS = [
    "Immediate academic counseling",
    "Weekly attendance monitoring",
    "Targeted subject improvement",
]

SYSTEM_PROMPT = (
    "You are a precision academic auditor. Write for faculty reviewing a student's standing. "
    "The numeric score and risk level are final; do not recompute or contradict them."
)

class Narrative(BaseModel):
    summary: str
    recommendations: List[str]

class _NarrativePayload(BaseModel):
    # only the text fields are read; anything numeric the model echoes back is dropped
    summary: str
    recommendations: List[str]

    @field_validator("summary")
    @classmethod
    def _summary_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("empty summary")
        return v

    @field_validator("recommendations")
    @classmethod
    def _three_recommendations(cls, v: List[str]) -> List[str]:
        recs = [r.strip() for r in v if isinstance(r, str) and r.strip()]
        if len(recs) < 3:
            raise ValueError(f"expected 3 recommendations, got {len(recs)}")
        return recs[:3]

def fallback_narrative(performance_score: int, risk_level: RiskLevel) -> Narrative:
    return Narrative(
        summary=f"Automated assessment: Performance Score {performance_score}%. Risk Level: {risk_level.value}.",
        recommendations=list(FALLBACK_RECOMMENDATIONS),
    )

def build_prompt(performance_score: int, risk_level: RiskLevel,
                 attendance: float, internal_marks: float, assignment_score: float) -> str:
    return f"""
    Calculated Performance Score: {performance_score}/100
    Attendance: {attendance:g}%
    Internal Marks: {internal_marks:g}/100
    Assignment Score: {assignment_score:g}/100

    Formula:
    ({attendance:g} + {internal_marks:g} + {assignment_score:g}) / 3 = {performance_score}

    Risk Level: {risk_level.value}

    Generate an academic audit report for this student.
    Return STRICT JSON: {{"summary": "...", "recommendations": ["...", "...", "..."]}}
    with a professional summary and exactly 3 actionable recommendations.
    """

def parse_narrative(content: Optional[str]) -> Narrative:
    if not content:
        raise NarrativeUnavailable("empty response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise NarrativeUnavailable(f"unparsable response: {e}") from e
    if not isinstance(data, dict):
        raise NarrativeUnavailable("response is not a JSON object")
    try:
        payload = _NarrativePayload.model_validate(data)
    except ValidationError as e:
        raise NarrativeUnavailable(f"incomplete response: {e.error_count()} field error(s)") from e
    return Narrative(summary=payload.summary, recommendations=payload.recommendations)

class NarrativeGenerator:
    """Remote text generation for prediction summaries.

    With no client configured the generator is unavailable and every call
    raises NarrativeUnavailable, which callers answer with fallback_narrative().
    """

    def __init__(self, client=None, model: Optional[str] = None):
        self.client = client
        self.model = model or get_settings().NARRATIVE_MODEL

    @classmethod
    def from_settings(cls, settings) -> "NarrativeGenerator":
        client = AsyncGroq(api_key=settings.GROQ_API_KEY) if settings.GROQ_API_KEY else None
        if client is None:
            log.info("GROQ_API_KEY not set; narratives run in fallback-only mode")
        return cls(client=client, model=settings.NARRATIVE_MODEL)

    @property
    def available(self) -> bool:
        return self.client is not None

    async def generate(self, performance_score: int, risk_level: RiskLevel,
                       attendance: float, internal_marks: float, assignment_score: float) -> Narrative:
        if self.client is None:
            raise NarrativeUnavailable("narrative service not configured")
        prompt = build_prompt(performance_score, risk_level, attendance, internal_marks, assignment_score)
        try:
            completion = await self.client.chat.completions.create(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                model=self.model,
                response_format={"type": "json_object"},
            )
            content = completion.choices[0].message.content
        except Exception as e:
            raise NarrativeUnavailable(f"narrative request failed: {e}") from e
        return parse_narrative(content)
