"""
Field selection strategies for profile fusion.

One pure function per profile field. Each takes the GroupContext of a single
entity group and returns the fused value; none of them raises on missing or
malformed input, absence is returned instead. ProfileBuilder composes them
through FIELD_STRATEGIES, and each can be tested on its own.

Policies:
- canonical name: authoritative source class first, then longest title
- description: longest above the minimum length, else shortest available
- identifiers: first seen wins per identifier
- metrics and funding totals: maximum observed
- tags, investors, founders: case-insensitive union, first casing kept
- dates, location: first non-null in group order
- content: one bucket per item by source category, appended
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from processing.aggregation.profile import (
    BlogPost,
    ContentBuckets,
    FundingRound,
    Launch,
    NewsArticle,
    SocialPost,
)
from processing.entity_resolution.identifiers import (
    FundingMention,
    Identifiers,
    extract_funding_mention,
)
from processing.entity_resolution.schema import RawItem, SourceCategory


# Lower rank wins the canonical name
NAME_AUTHORITY = {
    SourceCategory.REGISTRY: 0,
    SourceCategory.LAUNCH_BOARD: 1,
}
DEFAULT_AUTHORITY = 2

CONTENT_BUCKETS = {
    SourceCategory.NEWS: "news_articles",
    SourceCategory.LAUNCH_BOARD: "launches",
    SourceCategory.REGISTRY: "launches",
    SourceCategory.CODE_HOST: "launches",
    SourceCategory.BLOG: "blog_posts",
    SourceCategory.SOCIAL: "social_posts",
    SourceCategory.ONCHAIN: "news_articles",
    SourceCategory.OTHER: "news_articles",
}

# Sources whose item author is the maker of the product
MAKER_CATEGORIES = {
    SourceCategory.REGISTRY,
    SourceCategory.LAUNCH_BOARD,
    SourceCategory.CODE_HOST,
}

# Profile metric name -> metadata attribute
METRIC_FIELDS = {
    "github_stars": "github_stars",
    "github_forks": "github_forks",
    "twitter_followers": "twitter_followers",
    "discord_members": "discord_members",
    "telegram_members": "telegram_members",
    "tvl": "tvl",
    "market_cap": "market_cap",
    "daily_volume": "daily_volume",
    "monthly_active_users": "monthly_active_users",
}

GENERIC_TAGS = {"startup", "startups", "yc", "news", "launch", "2023", "2024", "2025"}

TEAM_SIZE_RANGES = [
    (1, "solo"),
    (5, "2-5"),
    (10, "6-10"),
    (25, "11-25"),
    (50, "26-50"),
]

SUMMARY_LENGTH = 200
SOCIAL_CONTENT_LENGTH = 280


@dataclass(frozen=True)
class GroupContext:
    """Everything the strategies may read for one group."""
    items: tuple[RawItem, ...]
    identifiers: tuple[Identifiers, ...]
    description_min_length: int = 20


def _union_ci(values) -> tuple[str, ...]:
    """Case-insensitive de-duplication keeping the first casing seen."""
    seen: set[str] = set()
    merged: list[str] = []
    for value in values:
        if not value:
            continue
        value = value.strip()
        key = value.lower()
        if value and key not in seen:
            seen.add(key)
            merged.append(value)
    return tuple(merged)


def normalize_stage(stage: Optional[str]) -> Optional[str]:
    """Normalize a stage label, e.g. 'Pre Seed' -> 'pre-seed', 'Series A' -> 'series-a'."""
    if not stage:
        return None
    normalized = re.sub(r"[\s_]+", "-", stage.strip().lower())
    if normalized == "preseed":
        normalized = "pre-seed"
    return normalized or None


def item_funding(item: RawItem) -> Optional[FundingMention]:
    """Funding reported by one item: metadata first, then a text mention."""
    meta = item.metadata
    if meta.funding_amount is not None and meta.funding_amount >= 0:
        return FundingMention(amount=meta.funding_amount, stage=normalize_stage(meta.funding_stage))
    return extract_funding_mention(f"{item.title} {item.description}")


# --- Identity ---------------------------------------------------------------

def select_canonical_name(ctx: GroupContext) -> str:
    def rank(indexed):
        index, item = indexed
        authority = NAME_AUTHORITY.get(item.category, DEFAULT_AUTHORITY)
        return (authority, -len(item.title), index)

    _, best = min(enumerate(ctx.items), key=rank)
    return best.title


def collect_aliases(ctx: GroupContext) -> tuple[str, ...]:
    aliases: list[str] = []
    for item in ctx.items:
        for name in (item.title, item.metadata.company_name):
            if name and name not in aliases:
                aliases.append(name)
    return tuple(aliases)


def select_description(ctx: GroupContext) -> Optional[str]:
    candidates = [item.description.strip() for item in ctx.items if item.description.strip()]
    if not candidates:
        return None
    qualified = [d for d in candidates if len(d) > ctx.description_min_length]
    if qualified:
        return max(qualified, key=len)
    return min(candidates, key=len)


def merge_identifiers(ctx: GroupContext) -> Identifiers:
    merged: dict[str, Optional[str]] = {
        "domain": None,
        "code_host_handle": None,
        "social_handle": None,
        "other_platform_slug": None,
    }
    for ids in ctx.identifiers:
        for name in merged:
            if merged[name] is None:
                merged[name] = getattr(ids, name)
    return Identifiers(**merged)


# --- Company ----------------------------------------------------------------

def select_founded_date(ctx: GroupContext) -> Optional[date]:
    for item in ctx.items:
        if item.metadata.founded_date is not None:
            return item.metadata.founded_date
    return None


def select_location(ctx: GroupContext) -> Optional[str]:
    for item in ctx.items:
        if item.metadata.location:
            return item.metadata.location
    return None


def merge_tags(ctx: GroupContext) -> tuple[str, ...]:
    return _union_ci(tag for item in ctx.items for tag in item.tags)


def merge_industries(ctx: GroupContext) -> tuple[str, ...]:
    values: list[str] = []
    for item in ctx.items:
        if item.metadata.industry:
            values.append(item.metadata.industry)
        values.extend(t for t in item.tags if t.strip().lower() not in GENERIC_TAGS)
    return _union_ci(values)


def determine_stage(ctx: GroupContext) -> Optional[str]:
    """Explicit stage first, then a stage named in text, then derived from the total."""
    for item in ctx.items:
        stage = normalize_stage(item.metadata.funding_stage)
        if stage:
            return stage

    for item in ctx.items:
        mention = item_funding(item)
        if mention is not None and mention.stage:
            return mention.stage

    total = select_total_raised(ctx)
    if total is None:
        return None
    if total < 150_000:
        return "pre-seed"
    if total < 2_000_000:
        return "seed"
    if total < 15_000_000:
        return "series-a"
    return "series-b+"


# --- Team -------------------------------------------------------------------

def merge_founders(ctx: GroupContext) -> tuple[str, ...]:
    names: list[str] = []
    for item in ctx.items:
        names.extend(item.metadata.founders)
        author = (item.author or "").strip()
        if author and item.category in MAKER_CATEGORIES and "bot" not in author.lower():
            names.append(author)
    return _union_ci(names)


def select_team_size(ctx: GroupContext) -> Optional[int]:
    for item in ctx.items:
        if item.metadata.team_size is not None:
            return item.metadata.team_size
    return None


def team_size_range(size: Optional[int]) -> Optional[str]:
    if size is None:
        return None
    for ceiling, label in TEAM_SIZE_RANGES:
        if size <= ceiling:
            return label
    return "50+"


# --- Funding ----------------------------------------------------------------

def select_total_raised(ctx: GroupContext) -> Optional[float]:
    """Maximum funding amount reported by any item; never summed."""
    amounts = [m.amount for m in (item_funding(item) for item in ctx.items) if m is not None]
    return max(amounts) if amounts else None


def collect_funding_rounds(ctx: GroupContext) -> tuple[FundingRound, ...]:
    rounds: list[FundingRound] = []
    for item in ctx.items:
        mention = item_funding(item)
        if mention is None:
            continue
        rounds.append(FundingRound(
            amount=mention.amount,
            source=item.source,
            stage=mention.stage,
            announced_on=item.published.date() if item.published else None,
        ))
    return tuple(rounds)


def merge_investors(ctx: GroupContext) -> tuple[str, ...]:
    return _union_ci(name for item in ctx.items for name in item.metadata.investors)


# --- Metrics ----------------------------------------------------------------

def merge_metrics(ctx: GroupContext) -> dict[str, float]:
    """Element-wise maximum of every metric observed in the group."""
    observed: dict[str, list[float]] = {}
    for item in ctx.items:
        for metric, attribute in METRIC_FIELDS.items():
            value = getattr(item.metadata, attribute)
            if value is not None and value >= 0:
                observed.setdefault(metric, []).append(value)
        if item.category == SourceCategory.LAUNCH_BOARD and item.metadata.upvotes is not None:
            observed.setdefault("launch_votes", []).append(item.metadata.upvotes)

    return {metric: max(values) for metric, values in observed.items()}


# --- Content ----------------------------------------------------------------

def categorize_content(ctx: GroupContext) -> ContentBuckets:
    buckets: dict[str, list] = {
        "news_articles": [],
        "launches": [],
        "blog_posts": [],
        "social_posts": [],
    }

    for item in ctx.items:
        bucket = CONTENT_BUCKETS[item.category]
        description = item.description.strip() or None

        if bucket == "news_articles":
            buckets[bucket].append(NewsArticle(
                title=item.title,
                url=item.url,
                source=item.source,
                date=item.published,
                summary=description[:SUMMARY_LENGTH] if description else None,
            ))
        elif bucket == "launches":
            buckets[bucket].append(Launch(
                platform=item.source,
                url=item.url,
                date=item.published,
                upvotes=item.metadata.upvotes,
            ))
        elif bucket == "blog_posts":
            buckets[bucket].append(BlogPost(
                title=item.title,
                url=item.url,
                author=item.author,
                date=item.published,
            ))
        else:
            meta = item.metadata
            buckets[bucket].append(SocialPost(
                platform=item.source,
                url=item.url,
                content=description[:SOCIAL_CONTENT_LENGTH] if description else None,
                engagement=meta.upvotes if meta.upvotes is not None else meta.likes,
                date=item.published,
            ))

    return ContentBuckets(**{name: tuple(entries) for name, entries in buckets.items()})


# --- Sourcing ---------------------------------------------------------------

def collect_sources(ctx: GroupContext) -> tuple[str, ...]:
    sources: list[str] = []
    for item in ctx.items:
        if item.source not in sources:
            sources.append(item.source)
    return tuple(sources)


def collect_source_urls(ctx: GroupContext) -> dict[str, str]:
    urls: dict[str, str] = {}
    for item in ctx.items:
        if item.url and item.source not in urls:
            urls[item.source] = item.url
    return urls


FIELD_STRATEGIES: dict[str, Callable[[GroupContext], object]] = {
    "canonical_name": select_canonical_name,
    "aliases": collect_aliases,
    "description": select_description,
    "identifiers": merge_identifiers,
    "founded_date": select_founded_date,
    "location": select_location,
    "industry": merge_industries,
    "tags": merge_tags,
    "stage": determine_stage,
    "founders": merge_founders,
    "team_size": select_team_size,
    "total_raised": select_total_raised,
    "funding_rounds": collect_funding_rounds,
    "investors": merge_investors,
    "metrics": merge_metrics,
    "content": categorize_content,
    "sources": collect_sources,
    "source_urls": collect_source_urls,
}
