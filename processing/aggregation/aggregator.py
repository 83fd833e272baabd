"""
Multi-source aggregation.

Runs the full pipeline over one in-memory batch:

    raw records -> RawItems -> EntityGroups -> UnifiedProfiles -> ScoreResults

``aggregate`` is a pure function of its input batch and configuration. It
keeps no state between calls and assigns no cross-run identity, so callers
that persist profiles must key them by their own stable IDs.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from config.logging import logger
from processing.aggregation.eligibility import EligibilityPolicy, EligibilityScorer
from processing.aggregation.profile import ProfileResult, ScoreResult, UnifiedProfile
from processing.aggregation.profile_builder import ProfileBuilder
from processing.aggregation.quality import QualityScorer
from processing.entity_resolution.resolver import EntityGroup, EntityGrouper, ResolverConfig
from processing.entity_resolution.schema import RawItem, parse_batch

# Profiles above this completeness count as enriched
ENRICHED_COMPLETENESS = 50

# Profiles above this eligibility score count as high quality
HIGH_QUALITY_SCORE = 60


@dataclass
class AggregationStats:
    """Statistics from an aggregation run."""
    original_count: int = 0
    skipped_count: int = 0
    unified_count: int = 0
    enriched_count: int = 0
    average_completeness: float = 0.0
    sources_used: list[str] = field(default_factory=list)


@dataclass
class AggregationResult:
    """Profiles of one batch, in seed input order, plus run statistics."""
    results: list[ProfileResult]
    groups: list[EntityGroup]
    stats: AggregationStats

    @property
    def profiles(self) -> list[UnifiedProfile]:
        return [r.profile for r in self.results]

    def statistics(self) -> dict[str, float]:
        """Deduplication, enrichment and high-quality rates, and sources per profile."""
        unified = self.stats.unified_count
        parsed = self.stats.original_count - self.stats.skipped_count
        if unified == 0 or parsed == 0:
            return {
                "deduplication_rate": 0.0,
                "enrichment_rate": 0.0,
                "high_quality_rate": 0.0,
                "sources_per_item": 0.0,
            }

        high_quality = sum(1 for r in self.results if r.score.eligibility_score > HIGH_QUALITY_SCORE)
        source_mentions = sum(r.profile.source_count for r in self.results)
        return {
            "deduplication_rate": 1 - unified / parsed,
            "enrichment_rate": self.stats.enriched_count / unified,
            "high_quality_rate": high_quality / unified,
            "sources_per_item": source_mentions / unified,
        }

    def to_dicts(self) -> list[dict]:
        return [r.to_dict() for r in self.results]


@dataclass(frozen=True)
class FounderLink:
    """A founder name shared by several profiles of the same batch."""
    founder: str
    profile_indices: tuple[int, ...]


class SignalAggregator:
    """
    Groups, fuses and scores a batch of raw items.

    Usage:
        aggregator = SignalAggregator()
        result = aggregator.aggregate(records)
        for profile_result in result.results:
            print(profile_result.profile.canonical_name, profile_result.score.recommendation)
    """

    def __init__(
        self,
        resolver_config: Optional[ResolverConfig] = None,
        policy: Optional[EligibilityPolicy] = None,
        description_min_length: Optional[int] = None,
    ):
        self.resolver_config = resolver_config or ResolverConfig.from_settings()
        self.builder = ProfileBuilder(description_min_length=description_min_length)
        self.quality_scorer = QualityScorer()
        self.eligibility_scorer = EligibilityScorer(policy)

    def score(self, profile: UnifiedProfile) -> ScoreResult:
        quality = self.quality_scorer.score(profile)
        eligibility = self.eligibility_scorer.score(profile, quality.completeness)
        return ScoreResult(
            completeness=quality.completeness,
            confidence=quality.confidence,
            verification_level=quality.verification_level,
            verified_fields=quality.verified_fields,
            missing_fields=quality.missing_fields,
            eligibility_score=eligibility.score,
            eligible=eligibility.eligible,
            criteria_met=eligibility.criteria_met,
            recommendation=eligibility.recommendation,
        )

    def aggregate(
        self,
        batch: Iterable[Union[RawItem, Mapping[str, Any]]],
    ) -> AggregationResult:
        records = list(batch)
        items, skipped = parse_batch(records)
        logger.info(f"Aggregating {len(items)} items ({skipped} skipped)")

        # A fresh grouper per run keeps stats from leaking across batches
        groups = EntityGrouper(self.resolver_config).group(items)

        results: list[ProfileResult] = []
        for group in groups:
            profile = self.builder.build(group)
            results.append(ProfileResult(profile=profile, score=self.score(profile)))

        stats = AggregationStats(
            original_count=len(records),
            skipped_count=skipped,
            unified_count=len(results),
            enriched_count=sum(1 for r in results if r.score.completeness > ENRICHED_COMPLETENESS),
            average_completeness=(
                sum(r.score.completeness for r in results) / len(results) if results else 0.0
            ),
            sources_used=sorted({item.source for item in items}),
        )

        logger.info("=" * 60)
        logger.info("AGGREGATION COMPLETE")
        logger.info("=" * 60)
        logger.info(f"Original items: {stats.original_count}")
        logger.info(f"Skipped items: {stats.skipped_count}")
        logger.info(f"Unified entities: {stats.unified_count}")
        logger.info(f"Average completeness: {stats.average_completeness:.1f}%")
        logger.info(f"Sources combined: {', '.join(stats.sources_used)}")
        logger.info("=" * 60)

        return AggregationResult(results=results, groups=groups, stats=stats)


def aggregate(
    batch: Iterable[Union[RawItem, Mapping[str, Any]]],
    resolver_config: Optional[ResolverConfig] = None,
    policy: Optional[EligibilityPolicy] = None,
) -> AggregationResult:
    """Run the full pipeline over one batch with a fresh aggregator."""
    return SignalAggregator(resolver_config=resolver_config, policy=policy).aggregate(batch)


def find_shared_founders(results: list[ProfileResult]) -> list[FounderLink]:
    """
    Report founder names that appear on more than one profile.

    Profiles are referenced by their index in ``results``; nothing is merged
    or modified.
    """
    by_founder: dict[str, list[int]] = {}
    display: dict[str, str] = {}

    for index, result in enumerate(results):
        for founder in result.profile.team.founders:
            key = founder.lower()
            display.setdefault(key, founder)
            indices = by_founder.setdefault(key, [])
            if index not in indices:
                indices.append(index)

    return [
        FounderLink(founder=display[key], profile_indices=tuple(indices))
        for key, indices in by_founder.items()
        if len(indices) > 1
    ]
