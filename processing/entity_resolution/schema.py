"""
Raw item schema for entity resolution.

A RawItem is one source's observation of a candidate entity, handed over by
the ingestion layer. Known source fields live on ItemMetadata as optional
typed attributes; anything else a source sends is kept in ``extras`` and is
never read by the matching or fusion logic.
"""

import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from config.logging import logger


class SourceCategory(Enum):
    """Coarse class of the source that produced an item."""
    REGISTRY = "registry"          # Accelerator / company registries
    CODE_HOST = "code_host"
    LAUNCH_BOARD = "launch_board"
    NEWS = "news"
    BLOG = "blog"
    SOCIAL = "social"
    ONCHAIN = "onchain"
    OTHER = "other"


# Checked in order against the lower-cased source label (punctuation removed).
# Launch boards come before news so "HackerNews" is not read as a news feed.
SOURCE_CATEGORY_RULES: list[tuple[str, SourceCategory]] = [
    ("ycombinator", SourceCategory.REGISTRY),
    ("crunchbase", SourceCategory.REGISTRY),
    ("techstars", SourceCategory.REGISTRY),
    ("wellfound", SourceCategory.REGISTRY),
    ("angellist", SourceCategory.REGISTRY),
    ("github", SourceCategory.CODE_HOST),
    ("gitlab", SourceCategory.CODE_HOST),
    ("bitbucket", SourceCategory.CODE_HOST),
    ("producthunt", SourceCategory.LAUNCH_BOARD),
    ("hackernews", SourceCategory.LAUNCH_BOARD),
    ("showhn", SourceCategory.LAUNCH_BOARD),
    ("betalist", SourceCategory.LAUNCH_BOARD),
    ("indiehackers", SourceCategory.LAUNCH_BOARD),
    ("reddit", SourceCategory.SOCIAL),
    ("twitter", SourceCategory.SOCIAL),
    ("x.com", SourceCategory.SOCIAL),
    ("farcaster", SourceCategory.SOCIAL),
    ("discord", SourceCategory.SOCIAL),
    ("telegram", SourceCategory.SOCIAL),
    ("medium", SourceCategory.BLOG),
    ("mirror", SourceCategory.BLOG),
    ("substack", SourceCategory.BLOG),
    ("dev.to", SourceCategory.BLOG),
    ("hashnode", SourceCategory.BLOG),
    ("blog", SourceCategory.BLOG),
    ("rss", SourceCategory.NEWS),
    ("techcrunch", SourceCategory.NEWS),
    ("coindesk", SourceCategory.NEWS),
    ("cointelegraph", SourceCategory.NEWS),
    ("theblock", SourceCategory.NEWS),
    ("decrypt", SourceCategory.NEWS),
    ("venturebeat", SourceCategory.NEWS),
    ("news", SourceCategory.NEWS),
    ("defillama", SourceCategory.ONCHAIN),
    ("dappradar", SourceCategory.ONCHAIN),
    ("etherscan", SourceCategory.ONCHAIN),
    ("dune", SourceCategory.ONCHAIN),
    ("onchain", SourceCategory.ONCHAIN),
]


def classify_source(source: str) -> SourceCategory:
    """Map a free-form source label to its SourceCategory."""
    label = re.sub(r"[^a-z0-9.]", "", (source or "").lower())
    for needle, category in SOURCE_CATEGORY_RULES:
        if needle in label:
            return category
    return SourceCategory.OTHER


def _coerce_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings ("1,200") become floats, anything else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        number = value.replace(",", "").replace("$", "").strip()
    else:
        return None
    try:
        number = float(number)
    except (ValueError, OverflowError):
        return None
    # inf and nan are treated as unreported
    return number if math.isfinite(number) else None


def _coerce_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int) and 1900 <= value <= 2100:
        return date(value, 1, 1)
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"\d{4}", text):
            return date(int(text), 1, 1)
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def _unique_strings(values: Iterable[Any]) -> tuple[str, ...]:
    """Ordered, exact-duplicate-free tuple of non-empty strings."""
    seen: list[str] = []
    for value in values:
        if isinstance(value, Mapping):
            value = value.get("name")
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


class ItemMetadata(BaseModel):
    """Known optional fields a source may report for an item."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    # Identity hints
    website: Optional[str] = None
    company_name: Optional[str] = None
    github_url: Optional[str] = None
    github_handle: Optional[str] = None
    twitter_url: Optional[str] = None
    twitter_handle: Optional[str] = None
    product_hunt_slug: Optional[str] = None

    # Context
    batch: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("batch", "yc_batch", "cohort")
    )
    location: Optional[str] = None
    industry: Optional[str] = None

    # Company / funding / team
    founded_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("founded_date", "launch_date")
    )
    funding_amount: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("funding_amount", "funding_raised")
    )
    funding_stage: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("funding_stage", "funding_round")
    )
    investors: tuple[str, ...] = ()
    founders: tuple[str, ...] = ()
    team_size: Optional[int] = None

    # Metrics
    github_stars: Optional[float] = None
    github_forks: Optional[float] = None
    twitter_followers: Optional[float] = None
    discord_members: Optional[float] = None
    telegram_members: Optional[float] = None
    upvotes: Optional[float] = None
    likes: Optional[float] = None
    tvl: Optional[float] = None
    market_cap: Optional[float] = None
    daily_volume: Optional[float] = None
    monthly_active_users: Optional[float] = None

    @field_validator(
        "funding_amount", "github_stars", "github_forks", "twitter_followers",
        "discord_members", "telegram_members", "upvotes", "likes", "tvl",
        "market_cap", "daily_volume", "monthly_active_users",
        mode="before",
    )
    @classmethod
    def _numbers(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("team_size", mode="before")
    @classmethod
    def _team_size(cls, value: Any) -> Optional[int]:
        number = _coerce_number(value)
        if number is None or number < 0:
            return None
        return int(number)

    @field_validator("founded_date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> Optional[date]:
        return _coerce_date(value)

    @field_validator("investors", "founders", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, (str, Mapping)):
            value = [value]
        if not isinstance(value, Iterable):
            return ()
        return _unique_strings(value)

    @field_validator(
        "website", "company_name", "github_url", "github_handle", "twitter_url",
        "twitter_handle", "product_hunt_slug", "batch", "location", "industry",
        "funding_stage",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def extras(self) -> dict[str, Any]:
        """Source-specific fields not modelled above."""
        return dict(self.model_extra or {})


class RawItem(BaseModel):
    """One observation from one source. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    source: str = Field(min_length=1)
    description: str = ""
    url: str = ""
    author: Optional[str] = None
    published: Optional[datetime] = None
    tags: tuple[str, ...] = ()
    metadata: ItemMetadata = Field(default_factory=ItemMetadata)

    @field_validator("title", "source", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("description", "url", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("published", mode="before")
    @classmethod
    def _published(cls, value: Any) -> Optional[datetime]:
        if value is None or value == "" or isinstance(value, datetime):
            return value or None
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, Iterable) or isinstance(value, Mapping):
            return ()
        return _unique_strings(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def category(self) -> SourceCategory:
        return classify_source(self.source)


def parse_batch(
    records: Iterable[Union[RawItem, Mapping[str, Any]]],
) -> tuple[list[RawItem], int]:
    """
    Validate a batch of raw records into RawItems.

    Records that fail validation are skipped and counted; the rest of the
    batch is always returned.

    Returns:
        Tuple of (items, skipped_count)
    """
    items: list[RawItem] = []
    skipped = 0

    for index, record in enumerate(records):
        if isinstance(record, RawItem):
            items.append(record)
            continue
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping record {index}: expected a mapping, got {type(record).__name__}")
            skipped += 1
            continue
        try:
            items.append(RawItem.model_validate(dict(record)))
        except ValidationError as e:
            logger.warning(
                f"Skipping record {index} ({record.get('source', '?')}): "
                f"{e.error_count()} validation error(s)"
            )
            skipped += 1

    return items, skipped
