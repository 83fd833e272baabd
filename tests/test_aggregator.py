#!/usr/bin/env python3
"""
End-to-end tests for batch aggregation.
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from processing.aggregation import (
    AssessmentOpinion,
    EligibilityPolicy,
    Recommendation,
    VerificationLevel,
    aggregate,
    build_assessment_request,
    find_shared_founders,
)
from processing.entity_resolution import MatcherConfig, ResolverConfig


ACME_BATCH = [
    {
        "title": "Acme",
        "source": "github",
        "url": "https://github.com/acme/acme-core",
        "description": "Open-source wallet toolkit",
        "tags": ["web3", "defi"],
        "metadata": {"github_stars": 420},
    },
    {
        "title": "Acme",
        "source": "techcrunch",
        "url": "https://techcrunch.com/2024/03/12/acme-seed",
        "description": "Acme raised $4.2M seed round to build DAO wallets",
        "published": "2024-03-12T09:30:00Z",
        "tags": ["web3", "defi"],
    },
    {
        "title": "Acme",
        "source": "producthunt",
        "url": "https://acme.io",
        "tags": ["web3", "defi", "wallets"],
        "metadata": {"upvotes": 310},
    },
]


def run(batch):
    return aggregate(
        batch,
        resolver_config=ResolverConfig(matcher=MatcherConfig()),
        policy=EligibilityPolicy(),
    )


def test_three_sources_fuse_into_one_profile():
    """Code host, news and launch board mentions of one company merge."""
    print("\n=== MULTI-SOURCE FUSION TESTS ===\n")

    result = run(ACME_BATCH)
    assert len(result.results) == 1
    assert result.groups[0].positions == [0, 1, 2]

    profile = result.profiles[0]
    assert profile.canonical_name == "Acme"
    assert profile.funding.total_raised == 4_200_000
    assert profile.company.stage == "seed"
    assert profile.identifiers.domain == "acme.io"
    assert profile.identifiers.code_host_handle == "acme"
    assert profile.metrics == {"github_stars": 420.0, "launch_votes": 310.0}
    assert profile.metadata.sources == ("github", "techcrunch", "producthunt")
    assert profile.content.total == 3
    print("✓ One profile with funding from the news mention")

    score = result.results[0].score
    assert score.confidence == 85
    assert score.verification_level == VerificationLevel.VERIFIED
    assert score.criteria_met["is_early_stage"]
    assert score.criteria_met["has_domain_focus"]
    print(f"✓ Scored {score.eligibility_score} ({score.recommendation.value})")


def test_aggregation_is_deterministic():
    """Same batch, same configuration, byte-identical output."""
    first = json.dumps(run(ACME_BATCH).to_dicts(), sort_keys=True)
    second = json.dumps(run(ACME_BATCH).to_dicts(), sort_keys=True)
    assert first == second
    print("✓ Output is identical across runs")


def test_runs_share_no_state():
    """A run never sees items from an earlier run."""
    run(ACME_BATCH)
    result = run([{"title": "Zentrix", "source": "producthunt", "url": "https://zentrix.xyz"}])
    assert len(result.results) == 1
    assert result.profiles[0].metadata.item_count == 1
    print("✓ No state carried between runs")


def test_malformed_records_are_skipped():
    """Bad records are counted; the rest of the batch still aggregates."""
    print("\n=== MALFORMED INPUT TESTS ===\n")

    batch = ACME_BATCH + [
        {"source": "github"},
        {"title": "", "source": "github"},
        "not a record",
    ]
    result = run(batch)
    assert result.stats.original_count == 6
    assert result.stats.skipped_count == 3
    assert result.stats.unified_count == 1
    assert result.stats.sources_used == ["github", "producthunt", "techcrunch"]
    print("✓ Skipped records counted")


def test_extreme_metadata_degrades_to_absence():
    """Overflowing, infinite, NaN and negative metadata never crash a run."""
    print("\n=== EXTREME METADATA TESTS ===\n")

    batch = [
        {"title": "Acme", "source": "ycombinator", "url": "https://acme.io",
         "metadata": {"team_size": "1e400", "funding_amount": 10**400, "github_stars": float("inf")}},
        {"title": "Zentrix", "source": "defillama", "url": "https://zentrix.xyz",
         "metadata": {"team_size": "nan", "funding_amount": float("nan"), "tvl": "nan"}},
        {"title": "Ploverly", "source": "producthunt", "url": "https://ploverly.app",
         "metadata": {"team_size": -5, "funding_amount": "-1", "upvotes": "-10"}},
        {"title": "Quasarbyte", "source": "ycombinator", "url": "https://quasarbyte.dev",
         "metadata": {"team_size": "12", "funding_amount": "1,500", "twitter_followers": "1e308"}},
    ]
    result = run(batch)
    assert result.stats.skipped_count == 0
    assert [p.canonical_name for p in result.profiles] == ["Acme", "Zentrix", "Ploverly", "Quasarbyte"]
    print("✓ Every item yields a profile")

    for entry in result.results:
        score = entry.score
        assert 0 <= score.completeness <= 100
        assert 0 <= score.confidence <= 100
        assert 0 <= score.eligibility_score <= 100
        json.dumps(entry.to_dict(), allow_nan=False)
    print("✓ Scores stay in [0, 100] and payloads stay finite")

    acme, zentrix, ploverly, quasarbyte = result.profiles
    assert acme.team.size is None and acme.funding.total_raised is None
    assert zentrix.team.size is None and zentrix.funding.total_raised is None
    assert ploverly.team.size is None and ploverly.funding.total_raised is None
    assert quasarbyte.team.size == 12
    assert quasarbyte.funding.total_raised == 1_500
    print("✓ Unusable values read as unreported")


def test_statistics():
    """Run statistics and rates."""
    print("\n=== STATISTICS TESTS ===\n")

    empty = run([])
    assert empty.results == []
    assert empty.statistics() == {
        "deduplication_rate": 0.0,
        "enrichment_rate": 0.0,
        "high_quality_rate": 0.0,
        "sources_per_item": 0.0,
    }
    print("✓ Empty batch yields zero rates")

    batch = ACME_BATCH + [{"title": "Zentrix", "source": "producthunt", "url": "https://zentrix.xyz"}]
    stats = run(batch).statistics()
    assert stats["deduplication_rate"] == pytest.approx(0.5)
    assert stats["sources_per_item"] == pytest.approx(2.0)
    assert 0.0 <= stats["enrichment_rate"] <= 1.0
    assert 0.0 <= stats["high_quality_rate"] <= 1.0
    print(f"✓ Rates: {stats}")


def test_shared_founders():
    """Founders appearing on several profiles are reported, not merged."""
    print("\n=== SHARED FOUNDER TESTS ===\n")

    batch = [
        {"title": "Acme", "source": "ycombinator", "metadata": {"founders": ["Jane Doe"]}},
        {"title": "Zentrix", "source": "ycombinator", "metadata": {"founders": ["jane doe", "John Roe"]}},
        {"title": "Ploverly", "source": "ycombinator", "metadata": {"founders": ["John Roe"]}},
    ]
    result = run(batch)
    assert len(result.results) == 3

    links = find_shared_founders(result.results)
    assert [(link.founder, link.profile_indices) for link in links] == [
        ("Jane Doe", (0, 1)),
        ("John Roe", (1, 2)),
    ]
    print("✓ Shared founders linked by profile index")


def test_assessment_request():
    """Profiles render into an external assessment request."""
    print("\n=== ASSESSMENT TESTS ===\n")

    result = run(ACME_BATCH).results[0]
    request = build_assessment_request(result)

    assert "Name: Acme" in request.summary
    assert "Total raised: $4,200,000" in request.summary
    assert request.fields["funding"]["total_raised"] == 4_200_000
    assert request.fields["recommendation"] == result.score.recommendation.value
    json.dumps(request.fields)
    print("✓ Request carries summary and serializable fields")

    opinion = AssessmentOpinion.from_dict(
        {"score": 72, "flags": ["thin team"], "recommendation": "approve"}
    )
    assert opinion.score == 72
    assert opinion.flags == ("thin team",)
    assert opinion.recommendation == Recommendation.APPROVE

    with pytest.raises(ValueError):
        AssessmentOpinion.from_dict({"score": 140})
    print("✓ Opinions validated")


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
