"""
Profile Builder

Fuses the items of one EntityGroup into a UnifiedProfile by composing the
per-field strategies in field_strategies. The profile is a pure function of
its group: nothing here reads batch-wide state or the clock.
"""

from typing import Optional

from config.settings import settings
from processing.aggregation import field_strategies as fs
from processing.aggregation.profile import (
    CompanyFacts,
    FundingFacts,
    MatchConfidence,
    ProfileMetadata,
    TeamFacts,
    UnifiedProfile,
)
from processing.entity_resolution.identifiers import IdentifierExtractor
from processing.entity_resolution.matchers import MatchType
from processing.entity_resolution.resolver import EntityGroup

# Overall match confidence for merged vs single-item groups
MERGED_MATCH_CONFIDENCE = 0.9
SINGLE_MATCH_CONFIDENCE = 0.7


class ProfileBuilder:
    """
    Builds one UnifiedProfile per EntityGroup.

    Usage:
        builder = ProfileBuilder()
        profile = builder.build(group)
    """

    def __init__(
        self,
        description_min_length: Optional[int] = None,
        strategies: Optional[dict] = None,
    ):
        self.description_min_length = (
            settings.DESCRIPTION_MIN_LENGTH
            if description_min_length is None
            else description_min_length
        )
        self.strategies = {**fs.FIELD_STRATEGIES, **(strategies or {})}
        self.extractor = IdentifierExtractor()

    def context(self, group: EntityGroup) -> fs.GroupContext:
        items = tuple(group.items)
        return fs.GroupContext(
            items=items,
            identifiers=tuple(self.extractor.extract(item) for item in items),
            description_min_length=self.description_min_length,
        )

    def resolve(self, field_name: str, ctx: fs.GroupContext):
        return self.strategies[field_name](ctx)

    def build(self, group: EntityGroup) -> UnifiedProfile:
        ctx = self.context(group)

        def get(field_name: str):
            return self.resolve(field_name, ctx)

        team_size = get("team_size")

        return UnifiedProfile(
            canonical_name=get("canonical_name"),
            aliases=get("aliases"),
            description=get("description"),
            identifiers=get("identifiers"),
            company=CompanyFacts(
                founded_date=get("founded_date"),
                location=get("location"),
                industry=get("industry"),
                tags=get("tags"),
                stage=get("stage"),
            ),
            team=TeamFacts(
                founders=get("founders"),
                size=team_size,
                size_range=fs.team_size_range(team_size),
            ),
            funding=FundingFacts(
                total_raised=get("total_raised"),
                rounds=get("funding_rounds"),
                investors=get("investors"),
            ),
            metrics=get("metrics"),
            content=get("content"),
            metadata=ProfileMetadata(
                sources=get("sources"),
                source_urls=get("source_urls"),
                item_count=len(group),
                match_confidence=self.match_confidence(group),
            ),
        )

    def match_confidence(self, group: EntityGroup) -> MatchConfidence:
        """Summarize which matching rules admitted the group's members."""
        matched_on = group.matched_on
        match_types = group.match_types

        signals = {
            "domain_match": "domain" in matched_on,
            "code_host_match": "code_host_handle" in matched_on,
            "social_match": "social_handle" in matched_on,
            "name_match": "name" in matched_on,
            "cohort_match": MatchType.COHORT in match_types or "batch" in matched_on,
            "location_match": "location" in matched_on,
            "tags_match": "tags" in matched_on,
        }
        overall = MERGED_MATCH_CONFIDENCE if len(group) > 1 else SINGLE_MATCH_CONFIDENCE
        return MatchConfidence(overall=overall, signals=signals)
