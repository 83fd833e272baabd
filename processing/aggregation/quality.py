"""
Data quality scoring for unified profiles.

Completeness is a weighted share of required (weight 3) and important
(weight 2) fields present on the profile. Confidence and verification level
depend only on how many distinct sources fed the profile.
"""

import math
from dataclasses import dataclass
from typing import Callable

from processing.aggregation.profile import UnifiedProfile, VerificationLevel

REQUIRED_WEIGHT = 3
IMPORTANT_WEIGHT = 2

MULTI_SOURCE_CONFIDENCE = 85
SINGLE_SOURCE_CONFIDENCE = 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (62.5 -> 63)."""
    return math.floor(value + 0.5)


REQUIRED_FIELDS: dict[str, Callable[[UnifiedProfile], bool]] = {
    "canonical_name": lambda p: bool(p.canonical_name),
    "description": lambda p: bool(p.description),
    "identifiers": lambda p: p.identifiers.has_any,
    "company.founded_date": lambda p: p.company.founded_date is not None,
    "team.size": lambda p: p.team.size is not None,
    "team.founders": lambda p: bool(p.team.founders),
}

IMPORTANT_FIELDS: dict[str, Callable[[UnifiedProfile], bool]] = {
    "funding.total_raised": lambda p: p.funding.total_raised is not None,
    "metrics": lambda p: bool(p.metrics),
    "content": lambda p: p.content.total > 0,
}


@dataclass(frozen=True)
class DataQuality:
    completeness: int
    confidence: int
    verification_level: VerificationLevel
    verified_fields: tuple[str, ...]
    missing_fields: tuple[str, ...]


class QualityScorer:
    """Computes completeness, confidence and verification level."""

    def score(self, profile: UnifiedProfile) -> DataQuality:
        achieved = 0
        maximum = 0
        verified: list[str] = []
        missing: list[str] = []

        for checks, weight in ((REQUIRED_FIELDS, REQUIRED_WEIGHT), (IMPORTANT_FIELDS, IMPORTANT_WEIGHT)):
            for name, present in checks.items():
                maximum += weight
                if present(profile):
                    achieved += weight
                    verified.append(name)
                else:
                    missing.append(name)

        source_count = profile.source_count
        return DataQuality(
            completeness=round_half_up(100 * achieved / maximum),
            confidence=MULTI_SOURCE_CONFIDENCE if source_count >= 2 else SINGLE_SOURCE_CONFIDENCE,
            verification_level=self.verification_level(source_count),
            verified_fields=tuple(verified),
            missing_fields=tuple(missing),
        )

    @staticmethod
    def verification_level(source_count: int) -> VerificationLevel:
        if source_count >= 3:
            return VerificationLevel.VERIFIED
        if source_count == 2:
            return VerificationLevel.PARTIAL
        return VerificationLevel.NONE
