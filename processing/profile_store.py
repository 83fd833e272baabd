"""
Persistence for aggregation output.

Stores each ProfileResult under a caller-supplied stable ID. Saving the same
ID again overwrites the stored profile; nothing here tries to work out which
stored record a new profile "is", since aggregation runs carry no identity of
their own.
"""

from collections.abc import Sequence
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from config.logging import logger
from processing.aggregation.profile import ProfileResult
from processing.models import ProfileRecord, ReviewRoute


class ProfileStore:
    """
    Upserts profiles and lists the ones routed to human review.

    Usage:
        db = SessionLocal()
        store = ProfileStore(db)
        store.save(result.results, stable_ids=[...])
        for record in store.review_queue():
            ...
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def route_for(result: ProfileResult) -> ReviewRoute:
        if result.score.recommendation.needs_human_review:
            return ReviewRoute.HUMAN_REVIEW
        return ReviewRoute.AUTO_ACCEPT

    def save(self, results: Sequence[ProfileResult], stable_ids: Sequence[str]) -> int:
        """
        Insert or update one record per result.

        Returns the number of newly created records.
        """
        if len(results) != len(stable_ids):
            raise ValueError(
                f"Got {len(stable_ids)} stable IDs for {len(results)} profiles"
            )
        if len(set(stable_ids)) != len(stable_ids):
            raise ValueError("Stable IDs must be unique within one save")

        created = 0
        try:
            for stable_id, result in zip(stable_ids, results):
                record = self.db.get(ProfileRecord, stable_id)
                if record is None:
                    record = ProfileRecord(stable_id=stable_id)
                    self.db.add(record)
                    created += 1
                self._apply(record, result)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Saved {len(results)} profiles ({created} new, {len(results) - created} updated)"
        )
        return created

    def _apply(self, record: ProfileRecord, result: ProfileResult) -> None:
        profile, score = result.profile, result.score
        record.canonical_name = profile.canonical_name
        record.domain = profile.identifiers.domain
        record.eligibility_score = score.eligibility_score
        record.completeness = score.completeness
        record.confidence = score.confidence
        record.verification_level = score.verification_level.value
        record.recommendation = score.recommendation.value
        record.eligible = score.eligible
        record.route = self.route_for(result)
        record.sources = list(profile.metadata.sources)
        record.profile = profile.to_dict()
        record.score = score.to_dict()

    def get(self, stable_id: str) -> Optional[ProfileRecord]:
        return self.db.get(ProfileRecord, stable_id)

    def review_queue(self, limit: Optional[int] = None) -> list[ProfileRecord]:
        """Records needing a human decision, highest eligibility score first."""
        stmt = (
            select(ProfileRecord)
            .where(ProfileRecord.route == ReviewRoute.HUMAN_REVIEW)
            .order_by(ProfileRecord.eligibility_score.desc(), ProfileRecord.stable_id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt))

    def accepted(self) -> list[ProfileRecord]:
        stmt = (
            select(ProfileRecord)
            .where(ProfileRecord.route == ReviewRoute.AUTO_ACCEPT)
            .order_by(ProfileRecord.eligibility_score.desc(), ProfileRecord.stable_id)
        )
        return list(self.db.scalars(stmt))
