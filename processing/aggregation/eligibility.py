"""
Eligibility scoring for unified profiles.

Base score 30 plus independent bonuses:
a) Early stage (seed / pre-seed, or known funding under the early ceiling)  +20
b) Domain focus (tags hit a focus keyword, or a focus metric is present)    +15
c) Known funding under the hard ceiling                                     +20
d) Known team size within the small-team limit                              +15
e) Founded in or after the cutoff year                                      +20
f) round(completeness * 0.2)
g) Three or more distinct sources                                           +10

Clamped to [0, 100]. Unknown values never satisfy a criterion.
"""

from dataclasses import dataclass, field
from typing import Optional

from config.settings import settings
from processing.aggregation.profile import Recommendation, UnifiedProfile
from processing.aggregation.quality import round_half_up

BASE_SCORE = 30
EARLY_STAGE_BONUS = 20
DOMAIN_FOCUS_BONUS = 15
UNDER_CEILING_BONUS = 20
SMALL_TEAM_BONUS = 15
LAUNCH_CUTOFF_BONUS = 20
COMPLETENESS_FACTOR = 0.2
MULTI_SOURCE_BONUS = 10
MULTI_SOURCE_MIN = 3


@dataclass
class EligibilityPolicy:
    """Acceptance policy; every ceiling and threshold is configurable."""
    early_stages: tuple[str, ...] = ("seed", "pre-seed")
    early_stage_funding_ceiling: float = 2_000_000
    funding_hard_ceiling: float = 500_000
    max_team_size: int = 10
    launch_cutoff_year: int = 2024
    focus_keywords: tuple[str, ...] = ("web3", "crypto", "blockchain", "defi", "nft")
    focus_metrics: tuple[str, ...] = ("tvl",)

    # Recommendation thresholds
    feature_threshold: int = 80
    approve_threshold: int = 60
    review_threshold: int = 40

    def __post_init__(self):
        if not (self.feature_threshold >= self.approve_threshold >= self.review_threshold):
            raise ValueError(
                "Recommendation thresholds must satisfy feature >= approve >= review, got "
                f"{self.feature_threshold}/{self.approve_threshold}/{self.review_threshold}"
            )
        self.focus_keywords = tuple(k.lower() for k in self.focus_keywords)
        self.early_stages = tuple(s.lower() for s in self.early_stages)

    @classmethod
    def from_settings(cls) -> "EligibilityPolicy":
        return cls(
            early_stage_funding_ceiling=settings.EARLY_STAGE_FUNDING_CEILING,
            funding_hard_ceiling=settings.FUNDING_HARD_CEILING,
            max_team_size=settings.MAX_TEAM_SIZE,
            launch_cutoff_year=settings.LAUNCH_CUTOFF_YEAR,
            focus_keywords=tuple(settings.FOCUS_KEYWORDS),
            focus_metrics=tuple(settings.FOCUS_METRICS),
            feature_threshold=settings.FEATURE_THRESHOLD,
            approve_threshold=settings.APPROVE_THRESHOLD,
            review_threshold=settings.REVIEW_THRESHOLD,
        )


@dataclass(frozen=True)
class EligibilityResult:
    score: int
    eligible: bool
    recommendation: Recommendation
    criteria_met: dict[str, bool] = field(default_factory=dict)


class EligibilityScorer:
    """
    Applies an EligibilityPolicy to a profile.

    Usage:
        scorer = EligibilityScorer(EligibilityPolicy(launch_cutoff_year=2025))
        result = scorer.score(profile, completeness=75)
    """

    def __init__(self, policy: Optional[EligibilityPolicy] = None):
        self.policy = policy or EligibilityPolicy.from_settings()

    def criteria(self, profile: UnifiedProfile) -> dict[str, bool]:
        policy = self.policy
        total = profile.funding.total_raised
        stage = (profile.company.stage or "").lower()
        tags = {t.lower() for t in profile.company.tags}
        founded = profile.company.founded_date

        return {
            "is_early_stage": stage in policy.early_stages
            or (total is not None and total < policy.early_stage_funding_ceiling),
            "has_domain_focus": bool(tags & set(policy.focus_keywords))
            or any(m in profile.metrics for m in policy.focus_metrics),
            "under_funding_ceiling": total is not None and total < policy.funding_hard_ceiling,
            "small_team": profile.team.size is not None and profile.team.size <= policy.max_team_size,
            "launched_after_cutoff": founded is not None and founded.year >= policy.launch_cutoff_year,
        }

    def score(self, profile: UnifiedProfile, completeness: int) -> EligibilityResult:
        criteria = self.criteria(profile)

        score = BASE_SCORE
        if criteria["is_early_stage"]:
            score += EARLY_STAGE_BONUS
        if criteria["has_domain_focus"]:
            score += DOMAIN_FOCUS_BONUS
        if criteria["under_funding_ceiling"]:
            score += UNDER_CEILING_BONUS
        if criteria["small_team"]:
            score += SMALL_TEAM_BONUS
        if criteria["launched_after_cutoff"]:
            score += LAUNCH_CUTOFF_BONUS

        score += round_half_up(completeness * COMPLETENESS_FACTOR)

        if profile.source_count >= MULTI_SOURCE_MIN:
            score += MULTI_SOURCE_BONUS

        score = max(0, min(100, score))

        return EligibilityResult(
            score=score,
            eligible=score >= self.policy.approve_threshold,
            recommendation=self.recommend(score),
            criteria_met=criteria,
        )

    def recommend(self, score: int) -> Recommendation:
        if score >= self.policy.feature_threshold:
            return Recommendation.FEATURE
        if score >= self.policy.approve_threshold:
            return Recommendation.APPROVE
        if score >= self.policy.review_threshold:
            return Recommendation.REVIEW
        return Recommendation.REJECT
