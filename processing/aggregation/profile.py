"""
Unified profile data structures.

A UnifiedProfile is the fusion of one EntityGroup; a ScoreResult carries the
quality and eligibility verdicts computed from it. Both are plain frozen
dataclasses with no references back into the batch, so each ProfileResult
serializes on its own.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from processing.entity_resolution.identifiers import Identifiers


class VerificationLevel(Enum):
    NONE = "none"
    PARTIAL = "partial"
    VERIFIED = "verified"


class Recommendation(Enum):
    FEATURE = "feature"
    APPROVE = "approve"
    REVIEW = "review"
    REJECT = "reject"

    @property
    def needs_human_review(self) -> bool:
        return self in (Recommendation.REVIEW, Recommendation.REJECT)


@dataclass(frozen=True)
class CompanyFacts:
    founded_date: Optional[date] = None
    location: Optional[str] = None
    industry: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    stage: Optional[str] = None


@dataclass(frozen=True)
class TeamFacts:
    founders: tuple[str, ...] = ()
    size: Optional[int] = None
    size_range: Optional[str] = None


@dataclass(frozen=True)
class FundingRound:
    amount: float
    source: str
    stage: Optional[str] = None
    announced_on: Optional[date] = None


@dataclass(frozen=True)
class FundingFacts:
    total_raised: Optional[float] = None
    rounds: tuple[FundingRound, ...] = ()
    investors: tuple[str, ...] = ()


@dataclass(frozen=True)
class NewsArticle:
    title: str
    url: str
    source: str
    date: Optional[datetime] = None
    summary: Optional[str] = None


@dataclass(frozen=True)
class Launch:
    platform: str
    url: str
    date: Optional[datetime] = None
    upvotes: Optional[float] = None


@dataclass(frozen=True)
class BlogPost:
    title: str
    url: str
    author: Optional[str] = None
    date: Optional[datetime] = None


@dataclass(frozen=True)
class SocialPost:
    platform: str
    url: str
    content: Optional[str] = None
    engagement: Optional[float] = None
    date: Optional[datetime] = None


@dataclass(frozen=True)
class ContentBuckets:
    news_articles: tuple[NewsArticle, ...] = ()
    launches: tuple[Launch, ...] = ()
    blog_posts: tuple[BlogPost, ...] = ()
    social_posts: tuple[SocialPost, ...] = ()

    @property
    def total(self) -> int:
        return (
            len(self.news_articles) + len(self.launches)
            + len(self.blog_posts) + len(self.social_posts)
        )


@dataclass(frozen=True)
class MatchConfidence:
    overall: float
    signals: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class ProfileMetadata:
    sources: tuple[str, ...]
    source_urls: dict[str, str]
    item_count: int
    match_confidence: MatchConfidence


@dataclass(frozen=True)
class UnifiedProfile:
    """The fused record for one entity across all matched sources."""
    canonical_name: str
    aliases: tuple[str, ...]
    description: Optional[str]
    identifiers: Identifiers
    company: CompanyFacts
    team: TeamFacts
    funding: FundingFacts
    metrics: dict[str, float]
    content: ContentBuckets
    metadata: ProfileMetadata

    @property
    def source_count(self) -> int:
        return len(self.metadata.sources)

    def to_dict(self) -> dict:
        return to_jsonable(self)

    def __repr__(self) -> str:
        return f"<UnifiedProfile({self.canonical_name!r}, sources={self.source_count})>"


@dataclass(frozen=True)
class ScoreResult:
    """Quality and eligibility verdicts for one profile."""
    completeness: int
    confidence: int
    verification_level: VerificationLevel
    verified_fields: tuple[str, ...]
    missing_fields: tuple[str, ...]
    eligibility_score: int
    eligible: bool
    criteria_met: dict[str, bool]
    recommendation: Recommendation

    def to_dict(self) -> dict:
        return to_jsonable(self)


@dataclass(frozen=True)
class ProfileResult:
    """A profile paired with its scores, as handed to consumers."""
    profile: UnifiedProfile
    score: ScoreResult

    def to_dict(self) -> dict:
        return {"profile": self.profile.to_dict(), "score": self.score.to_dict()}


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses, enums and dates to JSON-ready values."""
    if isinstance(value, Identifiers):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value
