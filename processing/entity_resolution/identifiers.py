"""
Identifier extraction for raw items.

Derives weak identity signals (domain, code-host handle, social handle,
launch-board slug) from an item's URL, description and metadata. Extraction
is purely syntactic: no network access and no validation against live
services. Anything that cannot be parsed is reported as absent.
"""

import math
import re
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import urlparse

from processing.entity_resolution.schema import RawItem, SourceCategory


# Shared hosts: an item pointing at one of these tells us nothing about the
# entity's own domain.
PLATFORM_HOSTS = {
    # Code hosts
    "github.com", "gitlab.com", "bitbucket.org", "github.io",
    # Social
    "twitter.com", "x.com", "reddit.com", "linkedin.com", "discord.gg",
    "discord.com", "t.me", "warpcast.com", "youtube.com", "facebook.com",
    # Launch boards / registries
    "producthunt.com", "news.ycombinator.com", "ycombinator.com",
    "crunchbase.com", "wellfound.com", "angel.co", "betalist.com",
    "indiehackers.com",
    # Blogging platforms
    "medium.com", "mirror.xyz", "substack.com", "dev.to", "hashnode.com",
    # News outlets
    "techcrunch.com", "coindesk.com", "cointelegraph.com", "theblock.co",
    "decrypt.co", "venturebeat.com",
    # On-chain indexers
    "defillama.com", "dappradar.com", "etherscan.io", "dune.com",
}

CODE_HOSTS = {"github.com", "gitlab.com", "bitbucket.org"}
SOCIAL_HOSTS = {"twitter.com", "x.com"}

# Categories whose item URL points at content about the entity rather than
# at the entity itself.
CONTENT_CATEGORIES = {SourceCategory.NEWS, SourceCategory.BLOG, SourceCategory.SOCIAL}

# A content item URL counts as the entity's own site only when the host label
# (e.g. "zentrix" in zentrix.xyz) is this long and appears in the item name.
MIN_HOST_LABEL_LENGTH = 4

# Path segments that are site sections, not account handles
RESERVED_PATHS = {
    "about", "explore", "features", "home", "i", "intent", "login", "orgs",
    "search", "settings", "share", "topics", "trending", "hashtag", "sponsors",
}

CODE_HOST_MENTION = re.compile(r"github\.com/([a-z0-9](?:[a-z0-9-]{0,38}))", re.IGNORECASE)
SOCIAL_MENTION = re.compile(r"(?<![\w.@])@([a-z0-9_]{2,15})\b", re.IGNORECASE)
PRODUCT_HUNT_POST = re.compile(r"producthunt\.com/(?:posts|products)/([a-z0-9-]+)", re.IGNORECASE)

FUNDING_KEYWORDS = re.compile(r"\b(rais\w*|fund\w*|round|seed|series|invest\w*|backed)\b", re.IGNORECASE)
FUNDING_AMOUNT = re.compile(
    r"\$\s?(\d+(?:[.,]\d+)*)\s?(k|m|mm|b|thousand|million|billion)?\b",
    re.IGNORECASE,
)
FUNDING_MULTIPLIERS = {
    "k": 1_000, "thousand": 1_000,
    "m": 1_000_000, "mm": 1_000_000, "million": 1_000_000,
    "b": 1_000_000_000, "billion": 1_000_000_000,
}
# Longer stage names first so "pre-seed" is not read as "seed"
FUNDING_STAGES = [
    (re.compile(r"\bpre[- ]?seed\b", re.IGNORECASE), "pre-seed"),
    (re.compile(r"\bseed\b", re.IGNORECASE), "seed"),
    (re.compile(r"\bseries[- ]a\b", re.IGNORECASE), "series-a"),
    (re.compile(r"\bseries[- ][b-z]\b", re.IGNORECASE), "series-b+"),
]


@dataclass(frozen=True)
class Identifiers:
    """Advisory identity signals for one item (or merged for a group)."""
    domain: Optional[str] = None
    code_host_handle: Optional[str] = None
    social_handle: Optional[str] = None
    other_platform_slug: Optional[str] = None

    @property
    def has_any(self) -> bool:
        return any((self.domain, self.code_host_handle, self.social_handle, self.other_platform_slug))

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class FundingMention:
    """Funding amount (and stage, when named) parsed out of free text."""
    amount: float
    stage: Optional[str] = None


def hostname(url: Optional[str]) -> Optional[str]:
    """Lower-cased hostname with ``www.`` stripped, or None if unparsable."""
    if not url:
        return None
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        host = urlparse(candidate).hostname
    except ValueError:
        return None
    if not host or "." not in host:
        return None
    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host or None


def normalize_domain(domain: Optional[str]) -> Optional[str]:
    """Normalize a bare domain or URL for equality checks."""
    return hostname(domain)


def is_platform_host(host: str) -> bool:
    return any(host == p or host.endswith(f".{p}") for p in PLATFORM_HOSTS)


def _first_path_segment(url: str) -> Optional[str]:
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        path = urlparse(candidate).path
    except ValueError:
        return None
    segments = [s for s in path.split("/") if s]
    if not segments:
        return None
    handle = segments[0].lstrip("@").lower()
    if not handle or handle in RESERVED_PATHS:
        return None
    return handle


def _handle_from_url(url: Optional[str], hosts: set[str]) -> Optional[str]:
    host = hostname(url)
    if not host or host not in hosts:
        return None
    return _first_path_segment(url)


def _alnum(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def _clean_handle(handle: Optional[str]) -> Optional[str]:
    if not handle:
        return None
    handle = handle.strip().lstrip("@").lower()
    return handle or None


class IdentifierExtractor:
    """
    Extracts identifiers from a single RawItem.

    Explicit metadata always wins over values pattern-matched out of the
    item's URL or description.
    """

    def extract(self, item: RawItem) -> Identifiers:
        return Identifiers(
            domain=self.extract_domain(item),
            code_host_handle=self.extract_code_host_handle(item),
            social_handle=self.extract_social_handle(item),
            other_platform_slug=self.extract_platform_slug(item),
        )

    def extract_domain(self, item: RawItem) -> Optional[str]:
        """Entity domain from metadata website, else from the item URL."""
        host = hostname(item.metadata.website)
        if host and not is_platform_host(host):
            return host

        host = hostname(item.url)
        if not host or is_platform_host(host):
            return None
        if item.category in CONTENT_CATEGORIES and not self._names_host(item, host):
            return None
        return host

    @staticmethod
    def _names_host(item: RawItem, host: str) -> bool:
        """True if the host's registrable label appears in the item's name."""
        label = _alnum(host.split(".")[-2])
        if len(label) < MIN_HOST_LABEL_LENGTH:
            return False
        names = (item.title, item.metadata.company_name or "")
        return any(label in _alnum(name) for name in names)

    def extract_code_host_handle(self, item: RawItem) -> Optional[str]:
        meta = item.metadata
        return (
            _clean_handle(meta.github_handle)
            or _handle_from_url(meta.github_url, CODE_HOSTS)
            or _handle_from_url(item.url, CODE_HOSTS)
            or self._mention(CODE_HOST_MENTION, item.description)
        )

    def extract_social_handle(self, item: RawItem) -> Optional[str]:
        meta = item.metadata
        return (
            _clean_handle(meta.twitter_handle)
            or _handle_from_url(meta.twitter_url, SOCIAL_HOSTS)
            or _handle_from_url(item.url, SOCIAL_HOSTS)
            or self._mention(SOCIAL_MENTION, item.description)
        )

    def extract_platform_slug(self, item: RawItem) -> Optional[str]:
        if item.metadata.product_hunt_slug:
            return item.metadata.product_hunt_slug.strip().lower()
        match = PRODUCT_HUNT_POST.search(item.url or "")
        return match.group(1).lower() if match else None

    @staticmethod
    def _mention(pattern: re.Pattern, text: Optional[str]) -> Optional[str]:
        if not text:
            return None
        match = pattern.search(text)
        return match.group(1).lower() if match else None


def extract_funding_mention(text: Optional[str]) -> Optional[FundingMention]:
    """
    Parse a funding announcement such as "Acme raised $4.2M seed".

    Only text that carries a funding keyword is considered, so prices and
    other dollar figures are not read as funding.
    """
    if not text or not FUNDING_KEYWORDS.search(text):
        return None

    match = FUNDING_AMOUNT.search(text)
    if not match:
        return None

    raw_number = match.group(1).replace(",", "")
    try:
        amount = float(raw_number)
    except ValueError:
        return None

    unit = (match.group(2) or "").lower()
    amount *= FUNDING_MULTIPLIERS.get(unit, 1)
    if not math.isfinite(amount):
        return None

    stage = None
    for pattern, name in FUNDING_STAGES:
        if pattern.search(text):
            stage = name
            break

    return FundingMention(amount=round(amount, 2), stage=stage)
