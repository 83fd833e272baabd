"""
Entity Resolution Module

Decides which raw mentions describe the same real-world entity:
- Identifier-based matching (domain, code-host handle, social handle)
- Fuzzy name matching (rapidfuzz Levenshtein) gated by shared context
- Seed-vs-rest grouping with optional blocking for large batches
"""

from processing.entity_resolution.identifiers import (
    IdentifierExtractor,
    Identifiers,
    extract_funding_mention,
)
from processing.entity_resolution.matchers import (
    FuzzyNameMatcher,
    IdentifierMatcher,
    MatcherConfig,
    MatchResult,
    MatchType,
    PairwiseMatcher,
    normalize_name,
)
from processing.entity_resolution.resolver import (
    EntityGroup,
    EntityGrouper,
    ResolverConfig,
    group_items,
)
from processing.entity_resolution.schema import (
    ItemMetadata,
    RawItem,
    SourceCategory,
    classify_source,
    parse_batch,
)

__all__ = [
    "EntityGroup",
    "EntityGrouper",
    "FuzzyNameMatcher",
    "IdentifierExtractor",
    "IdentifierMatcher",
    "Identifiers",
    "ItemMetadata",
    "MatchResult",
    "MatchType",
    "MatcherConfig",
    "PairwiseMatcher",
    "RawItem",
    "ResolverConfig",
    "SourceCategory",
    "classify_source",
    "extract_funding_mention",
    "group_items",
    "normalize_name",
    "parse_batch",
]
