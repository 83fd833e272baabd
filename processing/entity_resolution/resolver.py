"""
Entity Grouping

Clusters a batch of raw items into disjoint entity groups.

Each unassigned item, in input order, seeds a new group and absorbs every
still-unassigned item the PairwiseMatcher accepts against that seed. Only
the seed is compared, so the result depends on input order: the same order
always yields the same partition, a different order may pick different
seeds and accept different borderline matches.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from config.logging import logger
from config.settings import settings
from processing.entity_resolution.matchers import (
    ItemFeatures,
    MatcherConfig,
    MatchResult,
    MatchType,
    PairwiseMatcher,
)
from processing.entity_resolution.schema import RawItem


@dataclass
class ResolverConfig:
    """Configuration for entity grouping."""
    matcher: MatcherConfig = field(default_factory=MatcherConfig.from_settings)

    # Batches of at least this many items are split into blocks before matching
    blocking_min_batch: int = 2000

    # Length of the normalized-name prefix used as blocking key
    block_prefix_length: int = 4

    @classmethod
    def from_settings(cls) -> "ResolverConfig":
        return cls(
            matcher=MatcherConfig.from_settings(),
            blocking_min_batch=settings.BLOCKING_MIN_BATCH,
        )


@dataclass(frozen=True)
class GroupMember:
    """An item in a group plus the match that admitted it (None for the seed)."""
    item: RawItem
    position: int
    match: Optional[MatchResult] = None


@dataclass
class EntityGroup:
    """A set of raw items believed to denote one entity."""
    members: list[GroupMember] = field(default_factory=list)

    @property
    def seed(self) -> RawItem:
        return self.members[0].item

    @property
    def items(self) -> list[RawItem]:
        return [m.item for m in self.members]

    @property
    def positions(self) -> list[int]:
        return [m.position for m in self.members]

    @property
    def sources(self) -> list[str]:
        """Distinct source labels, in order of first appearance."""
        seen: list[str] = []
        for member in self.members:
            if member.item.source not in seen:
                seen.append(member.item.source)
        return seen

    @property
    def match_types(self) -> set[MatchType]:
        return {m.match.match_type for m in self.members if m.match is not None}

    @property
    def matched_on(self) -> set[str]:
        signals: set[str] = set()
        for member in self.members:
            if member.match is not None:
                signals.update(member.match.matched_on)
        return signals

    def __len__(self) -> int:
        return len(self.members)

    def __repr__(self) -> str:
        return f"<EntityGroup(seed={self.seed.title!r}, size={len(self)})>"


@dataclass
class GroupingStats:
    """Statistics from a grouping run."""
    total_items: int = 0
    total_groups: int = 0
    singleton_groups: int = 0
    comparisons: int = 0
    identifier_matches: int = 0
    name_matches: int = 0
    cohort_matches: int = 0
    blocked: bool = False
    blocks: int = 0


class EntityGrouper:
    """
    Partitions a batch of raw items into entity groups.

    Usage:
        grouper = EntityGrouper()
        groups = grouper.group(items)
        for group in groups:
            print(group.seed.title, len(group))
    """

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        matcher: Optional[PairwiseMatcher] = None,
    ):
        self.config = config or ResolverConfig.from_settings()
        self.matcher = matcher or PairwiseMatcher(self.config.matcher)
        self.stats = GroupingStats()

    def group(self, items: list[RawItem]) -> list[EntityGroup]:
        """
        Group items into entities.

        Batches below ``blocking_min_batch`` use a single seed-vs-rest scan
        over the whole batch; larger batches are bucketed first.

        Returns:
            Groups ordered by the input position of their seed
        """
        self.stats = GroupingStats(total_items=len(items))
        features = [self.matcher.features(item) for item in items]

        if len(items) >= self.config.blocking_min_batch:
            groups = self._group_blocked(features)
        else:
            groups = self._scan(features, list(range(len(features))))

        groups.sort(key=lambda g: g.members[0].position)

        self.stats.total_groups = len(groups)
        self.stats.singleton_groups = sum(1 for g in groups if len(g) == 1)
        logger.info(
            f"Grouped {self.stats.total_items} items into {self.stats.total_groups} groups "
            f"({self.stats.singleton_groups} singletons, {self.stats.comparisons} comparisons"
            f"{', blocked' if self.stats.blocked else ''})"
        )
        return groups

    def _scan(self, features: list[ItemFeatures], positions: list[int]) -> list[EntityGroup]:
        """Seed-vs-rest scan over the given positions, in order."""
        groups: list[EntityGroup] = []
        assigned: set[int] = set()

        for i, seed_pos in enumerate(positions):
            if seed_pos in assigned:
                continue
            assigned.add(seed_pos)
            seed = features[seed_pos]
            group = EntityGroup(members=[GroupMember(item=seed.item, position=seed_pos)])

            for candidate_pos in positions[i + 1:]:
                if candidate_pos in assigned:
                    continue
                self.stats.comparisons += 1
                result = self.matcher.evaluate(seed, features[candidate_pos])
                if not result.is_match:
                    continue
                assigned.add(candidate_pos)
                group.members.append(GroupMember(
                    item=features[candidate_pos].item,
                    position=candidate_pos,
                    match=result,
                ))
                self._count(result)

            groups.append(group)

        return groups

    def _count(self, result: MatchResult):
        if result.match_type == MatchType.EXACT_IDENTIFIER:
            self.stats.identifier_matches += 1
        elif result.match_type == MatchType.FUZZY_NAME:
            self.stats.name_matches += 1
        elif result.match_type == MatchType.COHORT:
            self.stats.cohort_matches += 1

    def block_key(self, features: ItemFeatures) -> Optional[str]:
        """
        Cheap blocking key: normalized-name prefix, else domain, else handle.

        Names too short to match on never produce a name key.
        """
        name = features.normalized_name
        if len(name) >= self.config.matcher.min_name_length:
            return f"name:{name[:self.config.block_prefix_length]}"
        ids = features.identifiers
        if ids.domain:
            return f"domain:{ids.domain}"
        if ids.code_host_handle:
            return f"code:{ids.code_host_handle}"
        if ids.social_handle:
            return f"social:{ids.social_handle}"
        return None

    def _group_blocked(self, features: list[ItemFeatures]) -> list[EntityGroup]:
        """Run the scan within each block, then once over all keyless items."""
        blocks: dict[str, list[int]] = defaultdict(list)
        keyless: list[int] = []

        for position, f in enumerate(features):
            key = self.block_key(f)
            if key is None:
                keyless.append(position)
            else:
                blocks[key].append(position)

        self.stats.blocked = True
        self.stats.blocks = len(blocks)
        logger.info(
            f"Blocking {len(features)} items into {len(blocks)} blocks "
            f"({len(keyless)} without a key)"
        )

        groups: list[EntityGroup] = []
        # dict preserves first-appearance order, so blocks run deterministically
        for positions in blocks.values():
            groups.extend(self._scan(features, positions))
        if keyless:
            groups.extend(self._scan(features, keyless))
        return groups


def group_items(
    items: list[RawItem],
    config: Optional[ResolverConfig] = None,
) -> list[EntityGroup]:
    """Convenience wrapper: partition ``items`` with a fresh grouper."""
    return EntityGrouper(config).group(items)
