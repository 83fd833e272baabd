"""
Contract for external qualitative assessment.

Consumers may send a profile to an external scoring service (an LLM or a
human panel) for a second opinion. This module only shapes the request and
the expected reply; it makes no calls, and an opinion never changes the
deterministic eligibility score.
"""

from dataclasses import dataclass, field
from typing import Optional

from processing.aggregation.profile import ProfileResult, Recommendation, to_jsonable


@dataclass(frozen=True)
class AssessmentRequest:
    summary: str
    fields: dict


@dataclass(frozen=True)
class AssessmentOpinion:
    """Score/flags/recommendation triple returned by the external service."""
    score: int
    flags: tuple[str, ...] = field(default_factory=tuple)
    recommendation: Optional[Recommendation] = None

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"Assessment score must be within [0, 100], got {self.score}")

    @classmethod
    def from_dict(cls, data: dict) -> "AssessmentOpinion":
        recommendation = data.get("recommendation")
        return cls(
            score=int(data.get("score", 0)),
            flags=tuple(data.get("flags") or ()),
            recommendation=Recommendation(recommendation) if recommendation else None,
        )


def build_assessment_request(result: ProfileResult) -> AssessmentRequest:
    """Render a profile as summary text plus structured fields."""
    profile = result.profile
    lines = [f"Name: {profile.canonical_name}"]
    if profile.description:
        lines.append(f"Description: {profile.description}")
    if profile.company.tags:
        lines.append(f"Tags: {', '.join(profile.company.tags)}")
    if profile.company.stage:
        lines.append(f"Stage: {profile.company.stage}")
    if profile.funding.total_raised is not None:
        lines.append(f"Total raised: ${profile.funding.total_raised:,.0f}")
    if profile.team.size is not None:
        lines.append(f"Team size: {profile.team.size}")
    lines.append(f"Sources: {', '.join(profile.metadata.sources)}")

    fields = {
        "canonical_name": profile.canonical_name,
        "identifiers": profile.identifiers.to_dict(),
        "company": to_jsonable(profile.company),
        "team": to_jsonable(profile.team),
        "funding": {
            "total_raised": profile.funding.total_raised,
            "investors": list(profile.funding.investors),
        },
        "metrics": dict(profile.metrics),
        "eligibility_score": result.score.eligibility_score,
        "recommendation": result.score.recommendation.value,
    }
    return AssessmentRequest(summary="\n".join(lines), fields=fields)
