"""
Profile Aggregation Module

Fuses entity groups into unified profiles and scores them:
- Field-by-field fusion through an explicit strategy table
- Data quality (completeness, confidence, verification level)
- Configurable eligibility scoring and recommendation tiers
"""

from processing.aggregation.aggregator import (
    AggregationResult,
    AggregationStats,
    FounderLink,
    SignalAggregator,
    aggregate,
    find_shared_founders,
)
from processing.aggregation.assessment import (
    AssessmentOpinion,
    AssessmentRequest,
    build_assessment_request,
)
from processing.aggregation.eligibility import (
    EligibilityPolicy,
    EligibilityResult,
    EligibilityScorer,
)
from processing.aggregation.profile import (
    ProfileResult,
    Recommendation,
    ScoreResult,
    UnifiedProfile,
    VerificationLevel,
)
from processing.aggregation.profile_builder import ProfileBuilder
from processing.aggregation.quality import DataQuality, QualityScorer

__all__ = [
    "AggregationResult",
    "AggregationStats",
    "AssessmentOpinion",
    "AssessmentRequest",
    "DataQuality",
    "EligibilityPolicy",
    "EligibilityResult",
    "EligibilityScorer",
    "FounderLink",
    "ProfileBuilder",
    "ProfileResult",
    "QualityScorer",
    "Recommendation",
    "ScoreResult",
    "SignalAggregator",
    "UnifiedProfile",
    "VerificationLevel",
    "aggregate",
    "build_assessment_request",
    "find_shared_founders",
]
