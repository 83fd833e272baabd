"""
Pairwise matching strategies for entity resolution.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from rapidfuzz.distance import Levenshtein

from config.logging import logger
from config.settings import settings
from processing.entity_resolution.identifiers import (
    IdentifierExtractor,
    Identifiers,
    normalize_domain,
)
from processing.entity_resolution.schema import RawItem


class MatchType(Enum):
    """Type of match found."""
    EXACT_IDENTIFIER = "exact_identifier"  # Domain, code-host or social handle
    FUZZY_NAME = "fuzzy_name"              # Name similarity + shared context
    COHORT = "cohort"                      # Same batch label + looser name similarity
    NO_MATCH = "no_match"


@dataclass
class MatchResult:
    """Result of comparing two raw items."""
    match_type: MatchType = MatchType.NO_MATCH
    confidence: float = 0.0
    matched_on: list[str] = field(default_factory=list)
    details: dict = field(default_factory=dict)

    @property
    def is_match(self) -> bool:
        return self.match_type != MatchType.NO_MATCH

    def __repr__(self) -> str:
        if self.is_match:
            return f"<MatchResult({self.match_type.value}, conf={self.confidence:.2f}, on={self.matched_on})>"
        return "<MatchResult(no match)>"


@dataclass
class MatcherConfig:
    """Thresholds for pairwise matching."""
    # Normalized similarity must exceed this for a name match (0-1)
    name_threshold: float = 0.85

    # Looser threshold when both items carry the same batch label
    cohort_threshold: float = 0.70

    # Normalized names shorter than this never match on name alone
    min_name_length: int = 4

    # Identical tags needed to count as shared context
    min_shared_tags: int = 2

    def __post_init__(self):
        for name in ("name_threshold", "cohort_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.min_name_length < 1:
            raise ValueError("min_name_length must be positive")

    @classmethod
    def from_settings(cls) -> "MatcherConfig":
        return cls(
            name_threshold=settings.FUZZY_MATCH_THRESHOLD / 100.0,
            cohort_threshold=settings.COHORT_MATCH_THRESHOLD / 100.0,
            min_name_length=settings.MIN_NAME_LENGTH,
            min_shared_tags=settings.MIN_SHARED_TAGS,
        )


# Generic corporate suffix words, removed from the end of a name
CORPORATE_SUFFIXES = {
    "inc", "incorporated", "llc", "ltd", "limited", "corp", "corporation",
    "co", "company", "labs", "lab", "technologies", "technology", "tech",
    "ai", "io",
}

# TLD-style suffixes glued to the name ("Acme.io", "Foo.ai")
TLD_SUFFIX = re.compile(r"\.(io|ai|xyz|com|co|app|dev|so|org|net|finance|fi)$")


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize an entity name for comparison.

    - Lowercase
    - Remove TLD-style suffixes (.io, .ai, ...)
    - Remove trailing corporate suffixes (Inc, LLC, Labs, Technologies, ...)
    - Remove a leading "the"
    - Drop everything that is not a letter or digit
    """
    if not name:
        return ""

    normalized = name.strip().lower()
    normalized = TLD_SUFFIX.sub("", normalized)

    tokens = re.findall(r"[a-z0-9]+", normalized)

    # Multiple passes for stacked suffixes ("Acme Labs Inc")
    while tokens and tokens[-1] in CORPORATE_SUFFIXES:
        tokens.pop()

    if len(tokens) > 1 and tokens[0] == "the":
        tokens = tokens[1:]

    return "".join(tokens)


def name_similarity(norm1: str, norm2: str) -> float:
    """
    Normalized Levenshtein similarity: 1 - distance / max(len1, len2).

    Returns 0.0 when either name is empty.
    """
    if not norm1 or not norm2:
        return 0.0
    return Levenshtein.normalized_similarity(norm1, norm2)


def coarse_location(location: Optional[str]) -> Optional[str]:
    """First comma-separated part of a location, lower-cased ("San Francisco, CA" -> "san francisco")."""
    if not location:
        return None
    head = location.split(",")[0]
    head = re.sub(r"\s+", " ", head).strip().lower()
    return head or None


@dataclass(frozen=True)
class ItemFeatures:
    """Pre-computed comparison features for one item."""
    item: RawItem
    identifiers: Identifiers
    normalized_name: str
    batch: Optional[str]
    location: Optional[str]
    tags: frozenset

    @property
    def has_usable_name(self) -> bool:
        return bool(self.normalized_name)


class IdentifierMatcher:
    """
    Matches items that resolve the same identifier.

    Priority order:
    1. Domain - the entity's own website
    2. Code-host handle
    3. Social handle
    """

    def match(self, ids1: Identifiers, ids2: Identifiers) -> MatchResult:
        """
        Compare identifiers case-insensitively.

        Returns match with confidence 1.0 for identifier matches.
        """
        domain1 = normalize_domain(ids1.domain)
        domain2 = normalize_domain(ids2.domain)
        if domain1 and domain1 == domain2:
            return MatchResult(
                match_type=MatchType.EXACT_IDENTIFIER,
                confidence=1.0,
                matched_on=["domain"],
                details={"domain": domain1},
            )

        for name in ("code_host_handle", "social_handle"):
            value1 = getattr(ids1, name)
            value2 = getattr(ids2, name)
            if value1 and value2 and value1.lower() == value2.lower():
                return MatchResult(
                    match_type=MatchType.EXACT_IDENTIFIER,
                    confidence=1.0,
                    matched_on=[name],
                    details={name: value1.lower()},
                )

        return MatchResult()


class FuzzyNameMatcher:
    """
    Matches items on normalized-name similarity, gated by shared context.

    Short or generic names ("Labs" normalizes to "") never match on name
    alone, and a name match without corroborating context is rejected.
    """

    def __init__(self, config: MatcherConfig):
        self.config = config

    def has_shared_context(self, f1: ItemFeatures, f2: ItemFeatures) -> bool:
        """Same batch label, same coarse location, or enough identical tags."""
        if f1.batch and f2.batch and f1.batch == f2.batch:
            return True
        if f1.location and f2.location and f1.location == f2.location:
            return True
        return len(f1.tags & f2.tags) >= self.config.min_shared_tags

    def match(self, f1: ItemFeatures, f2: ItemFeatures) -> MatchResult:
        norm1, norm2 = f1.normalized_name, f2.normalized_name
        min_length = self.config.min_name_length
        if len(norm1) < min_length or len(norm2) < min_length:
            return MatchResult()

        similarity = name_similarity(norm1, norm2)
        details = {"name_a": norm1, "name_b": norm2, "similarity": round(similarity, 4)}

        if similarity > self.config.name_threshold and self.has_shared_context(f1, f2):
            matched_on = ["name"]
            if f1.batch and f1.batch == f2.batch:
                matched_on.append("batch")
            if f1.location and f1.location == f2.location:
                matched_on.append("location")
            if len(f1.tags & f2.tags) >= self.config.min_shared_tags:
                matched_on.append("tags")
            return MatchResult(
                match_type=MatchType.FUZZY_NAME,
                confidence=similarity,
                matched_on=matched_on,
                details=details,
            )

        if f1.batch and f1.batch == f2.batch and similarity > self.config.cohort_threshold:
            return MatchResult(
                match_type=MatchType.COHORT,
                confidence=similarity,
                matched_on=["name", "batch"],
                details=details,
            )

        return MatchResult()


class PairwiseMatcher:
    """
    Decides whether two raw items describe the same entity.

    Decision order (first satisfied rule wins):
    a) Same domain, code-host handle or social handle -> MATCH
    b) Name similarity > name_threshold AND shared context -> MATCH
    c) Same batch label AND name similarity > cohort_threshold -> MATCH
    d) Otherwise -> NO MATCH

    The rules favour precision: an ambiguous pair stays separate.

    Usage:
        matcher = PairwiseMatcher()
        if matcher.matches(item_a, item_b):
            ...
    """

    def __init__(self, config: Optional[MatcherConfig] = None):
        self.config = config or MatcherConfig.from_settings()
        self.extractor = IdentifierExtractor()
        self.identifier_matcher = IdentifierMatcher()
        self.fuzzy_matcher = FuzzyNameMatcher(self.config)

    def features(self, item: RawItem) -> ItemFeatures:
        meta = item.metadata
        return ItemFeatures(
            item=item,
            identifiers=self.extractor.extract(item),
            normalized_name=normalize_name(item.title),
            batch=meta.batch.strip().lower() if meta.batch else None,
            location=coarse_location(meta.location),
            tags=frozenset(t.strip().lower() for t in item.tags if t.strip()),
        )

    def evaluate(
        self,
        a: Union[RawItem, ItemFeatures],
        b: Union[RawItem, ItemFeatures],
    ) -> MatchResult:
        """Compare two items and return the full match result."""
        f1 = a if isinstance(a, ItemFeatures) else self.features(a)
        f2 = b if isinstance(b, ItemFeatures) else self.features(b)

        result = self.identifier_matcher.match(f1.identifiers, f2.identifiers)
        if not result.is_match:
            result = self.fuzzy_matcher.match(f1, f2)

        if result.is_match:
            logger.debug(f"Match: '{f1.item.title}' <-> '{f2.item.title}' {result}")
        return result

    def matches(
        self,
        a: Union[RawItem, ItemFeatures],
        b: Union[RawItem, ItemFeatures],
    ) -> bool:
        return self.evaluate(a, b).is_match
