#!/usr/bin/env python3
"""
Tests for profile fusion: field strategies and the profile builder.
"""

import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from processing.aggregation import field_strategies as fs
from processing.aggregation.profile_builder import ProfileBuilder
from processing.entity_resolution import IdentifierExtractor, MatchResult, MatchType, RawItem
from processing.entity_resolution.resolver import EntityGroup, GroupMember


def make_item(title, source="producthunt", **kwargs):
    return RawItem(title=title, source=source, **kwargs)


def context(*items, description_min_length=20):
    extractor = IdentifierExtractor()
    return fs.GroupContext(
        items=tuple(items),
        identifiers=tuple(extractor.extract(i) for i in items),
        description_min_length=description_min_length,
    )


def make_group(*items):
    return EntityGroup(members=[GroupMember(item=item, position=i) for i, item in enumerate(items)])


def test_canonical_name():
    """Authoritative sources win the name, then the longest title."""
    print("\n=== CANONICAL NAME TESTS ===\n")

    ctx = context(
        make_item("Acme Corp announces wallet", source="techcrunch"),
        make_item("Acme", source="ycombinator"),
        make_item("Acme.io", source="producthunt"),
    )
    assert fs.select_canonical_name(ctx) == "Acme"
    print("✓ Registry title beats launch board and news")

    ctx = context(
        make_item("Acme", source="github"),
        make_item("Acme Wallet", source="reddit"),
    )
    assert fs.select_canonical_name(ctx) == "Acme Wallet"
    print("✓ Longest title when no authoritative source")

    ctx = context(
        make_item("Acme", source="ycombinator", metadata={"company_name": "Acme Holdings"}),
        make_item("Acme", source="github"),
        make_item("Acme.io"),
    )
    assert fs.collect_aliases(ctx) == ("Acme", "Acme Holdings", "Acme.io")
    print("✓ Aliases collected without duplicates")


def test_description_selection():
    """Longest description above the minimum, else the shortest available."""
    print("\n=== DESCRIPTION TESTS ===\n")

    long_text = "Acme builds self-custody wallets for DAOs"
    ctx = context(
        make_item("Acme", description="Tiny"),
        make_item("Acme", description=long_text),
        make_item("Acme", description="A somewhat shorter blurb here"),
    )
    assert fs.select_description(ctx) == long_text

    ctx = context(
        make_item("Acme", description="Short one"),
        make_item("Acme", description="Tiny"),
    )
    assert fs.select_description(ctx) == "Tiny"

    ctx = context(make_item("Acme"), make_item("Acme", description="   "))
    assert fs.select_description(ctx) is None
    print("✓ Description fallback rules")


def test_identifier_merge():
    """First identifier seen wins per kind."""
    print("\n=== IDENTIFIER MERGE TESTS ===\n")

    ctx = context(
        make_item("Acme", source="github", url="https://github.com/acme/acme-core"),
        make_item("Acme", url="https://acme.io"),
        make_item("Acme", source="ycombinator", metadata={"website": "acme.dev", "github_handle": "acme-two"}),
    )
    ids = fs.merge_identifiers(ctx)
    assert ids.code_host_handle == "acme"
    assert ids.domain == "acme.io"
    print("✓ Identifiers merged in group order")


def test_union_keeps_first_casing():
    """Tags, investors and founders union case-insensitively."""
    print("\n=== UNION TESTS ===\n")

    ctx = context(
        make_item("Acme", tags=["DeFi", "web3"], metadata={"investors": ["Paradigm"]}),
        make_item("Acme", tags=["defi", "Web3", "NFT"], metadata={"investors": ["paradigm", "a16z"]}),
    )
    assert fs.merge_tags(ctx) == ("DeFi", "web3", "NFT")
    assert fs.merge_investors(ctx) == ("Paradigm", "a16z")
    print("✓ First casing kept")

    ctx = context(
        make_item("Acme", source="ycombinator", author="jane doe", metadata={"founders": ["Jane Doe"]}),
        make_item("Acme", source="techcrunch", author="Staff Reporter"),
        make_item("Acme", source="github", author="dependabot[bot]"),
        make_item("Acme", source="github", author="John Roe"),
    )
    assert fs.merge_founders(ctx) == ("Jane Doe", "John Roe")
    print("✓ Only maker-source authors count as founders")

    ctx = context(make_item("Acme", tags=["startup", "DeFi"], metadata={"industry": "Fintech"}))
    assert fs.merge_industries(ctx) == ("Fintech", "DeFi")
    print("✓ Industry drops generic tags")


def test_metrics_take_maximum():
    """Every metric is the maximum observed, never a sum."""
    print("\n=== METRICS TESTS ===\n")

    ctx = context(
        make_item("Acme", source="github", metadata={"github_stars": 10, "github_forks": 3}),
        make_item("Acme", source="github", metadata={"github_stars": 250}),
        make_item("Acme", source="defillama", metadata={"tvl": "1,000"}),
        make_item("Acme", source="producthunt", metadata={"upvotes": 120}),
        make_item("Acme", source="hackernews", metadata={"upvotes": 300}),
    )
    metrics = fs.merge_metrics(ctx)
    assert metrics == {
        "github_stars": 250.0,
        "github_forks": 3.0,
        "tvl": 1000.0,
        "launch_votes": 300.0,
    }
    print("✓ Element-wise maximum")

    assert fs.merge_metrics(context(make_item("Acme"))) == {}
    print("✓ No metrics when none observed")


def test_funding_fusion():
    """Totals take the maximum; stage comes from labels, text, then amount."""
    print("\n=== FUNDING TESTS ===\n")

    ctx = context(
        make_item("Acme", source="ycombinator", metadata={"funding_amount": 1_000_000}),
        make_item("Acme", source="techcrunch", description="Acme raised $3M to expand",
                  published="2024-05-01T10:00:00Z"),
    )
    assert fs.select_total_raised(ctx) == 3_000_000
    rounds = fs.collect_funding_rounds(ctx)
    assert [r.amount for r in rounds] == [1_000_000, 3_000_000]
    assert rounds[1].source == "techcrunch"
    assert rounds[1].announced_on == date(2024, 5, 1)
    assert fs.determine_stage(ctx) == "series-a"
    print("✓ Maximum total, rounds kept, stage derived from amount")

    ctx = context(make_item("Acme", metadata={"funding_amount": 100_000, "funding_round": "Series A"}))
    assert fs.determine_stage(ctx) == "series-a"

    ctx = context(make_item("Acme", source="techcrunch", description="Acme raised $1M seed round"))
    assert fs.determine_stage(ctx) == "seed"

    ctx = context(make_item("Acme", metadata={"funding_amount": 100_000}))
    assert fs.determine_stage(ctx) == "pre-seed"

    assert fs.determine_stage(context(make_item("Acme"))) is None
    assert fs.select_total_raised(context(make_item("Acme"))) is None
    print("✓ Stage precedence")

    assert fs.normalize_stage("Pre Seed") == "pre-seed"
    assert fs.normalize_stage("preseed") == "pre-seed"
    assert fs.normalize_stage("Series_B") == "series-b"
    print("✓ Stage labels normalized")


def test_team_size_ranges():
    """Team sizes bucket into fixed ranges."""
    print("\n=== TEAM SIZE TESTS ===\n")

    test_cases = [
        (None, None), (1, "solo"), (3, "2-5"), (5, "2-5"), (10, "6-10"),
        (11, "11-25"), (26, "26-50"), (50, "26-50"), (51, "50+"),
    ]
    for size, expected in test_cases:
        assert fs.team_size_range(size) == expected, f"{size} should be {expected}"
    print("✓ Size ranges")


def test_content_buckets():
    """Each item lands in exactly one content bucket."""
    print("\n=== CONTENT BUCKET TESTS ===\n")

    ctx = context(
        make_item("Acme raises seed", source="techcrunch", url="https://techcrunch.com/acme",
                  description="Acme raised money"),
        make_item("Acme", source="producthunt", url="https://producthunt.com/posts/acme",
                  metadata={"upvotes": 120}),
        make_item("Why we built Acme", source="medium", url="https://medium.com/@jane/acme",
                  author="Jane Doe"),
        make_item("Acme is live", source="twitter", url="https://x.com/acmehq/status/1",
                  metadata={"likes": 42}),
        make_item("Acme", source="defillama", url="https://defillama.com/protocol/acme"),
        make_item("Acme", source="github", url="https://github.com/acme/acme-core"),
    )
    content = fs.categorize_content(ctx)

    assert [a.source for a in content.news_articles] == ["techcrunch", "defillama"]
    assert content.news_articles[0].summary == "Acme raised money"
    assert [launch.platform for launch in content.launches] == ["producthunt", "github"]
    assert content.launches[0].upvotes == 120
    assert content.blog_posts[0].author == "Jane Doe"
    assert content.social_posts[0].engagement == 42
    assert content.total == 6
    print("✓ Items routed by source category")


def test_profile_builder():
    """The builder composes strategies into a profile."""
    print("\n=== PROFILE BUILDER TESTS ===\n")
    builder = ProfileBuilder(description_min_length=20)

    seed, member = (
        make_item("Acme", source="github", url="https://github.com/acme/acme-core",
                  tags=["web3", "defi"], metadata={"github_stars": 80}),
        make_item("Acme", source="techcrunch", description="Acme raised $4.2M seed round",
                  tags=["web3", "defi"]),
    )
    match = MatchResult(match_type=MatchType.FUZZY_NAME, confidence=1.0, matched_on=["name", "tags"])
    group = EntityGroup(members=[
        GroupMember(item=seed, position=0),
        GroupMember(item=member, position=1, match=match),
    ])
    profile = builder.build(group)

    assert profile.canonical_name == "Acme"
    assert profile.description == "Acme raised $4.2M seed round"
    assert profile.identifiers.code_host_handle == "acme"
    assert profile.funding.total_raised == 4_200_000
    assert profile.company.stage == "seed"
    assert profile.metrics == {"github_stars": 80.0}
    assert profile.metadata.sources == ("github", "techcrunch")
    assert profile.metadata.item_count == 2
    assert profile.metadata.source_urls == {"github": "https://github.com/acme/acme-core"}
    assert profile.metadata.match_confidence.overall == 0.9
    assert profile.metadata.match_confidence.signals["name_match"]
    assert profile.metadata.match_confidence.signals["tags_match"]
    assert not profile.metadata.match_confidence.signals["domain_match"]
    print("✓ Merged profile built")

    single = builder.build(make_group(make_item("Zentrix")))
    assert single.metadata.match_confidence.overall == 0.7
    assert single.description is None
    assert single.team.size_range is None
    print("✓ Singleton profile built")

    custom = ProfileBuilder(strategies={"canonical_name": lambda ctx: "Override"})
    assert custom.build(make_group(make_item("Zentrix"))).canonical_name == "Override"
    print("✓ Strategies can be replaced per field")


if __name__ == "__main__":
    tests = [
        ("Canonical Name", test_canonical_name),
        ("Description", test_description_selection),
        ("Identifier Merge", test_identifier_merge),
        ("Unions", test_union_keeps_first_casing),
        ("Metrics", test_metrics_take_maximum),
        ("Funding", test_funding_fusion),
        ("Team Size", test_team_size_ranges),
        ("Content Buckets", test_content_buckets),
        ("Profile Builder", test_profile_builder),
    ]

    failed = 0
    for name, test in tests:
        try:
            test()
            print(f"{name}: PASSED")
        except AssertionError as e:
            print(f"{name}: FAILED ({e})")
            failed += 1

    sys.exit(1 if failed else 0)
