"""
Signal Entity Engine - Database Models

SQLAlchemy ORM models for persisting aggregation output. The engine never
assigns identity across runs; every record is keyed by a stable ID supplied
by the caller.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ReviewRoute(PyEnum):
    """Where a stored profile goes next."""
    HUMAN_REVIEW = "human_review"    # review / reject tiers
    AUTO_ACCEPT = "auto_accept"      # feature / approve tiers


class ProfileRecord(Base):
    """
    One persisted unified profile with its scores.
    """

    __tablename__ = "profiles"

    stable_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    canonical_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    domain: Mapped[Optional[str]] = mapped_column(String(255), index=True)

    # Scores
    eligibility_score: Mapped[int] = mapped_column(Integer, nullable=False)
    completeness: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False)
    verification_level: Mapped[str] = mapped_column(String(20), nullable=False)
    recommendation: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    route: Mapped[ReviewRoute] = mapped_column(Enum(ReviewRoute), nullable=False, index=True)

    # Serialized payloads
    sources: Mapped[Optional[list]] = mapped_column(JSON, default=list)
    profile: Mapped[dict] = mapped_column(JSON, nullable=False)
    score: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_profiles_route_score", "route", "eligibility_score"),
    )

    @property
    def needs_review(self) -> bool:
        return self.route == ReviewRoute.HUMAN_REVIEW

    def __repr__(self) -> str:
        return (
            f"<ProfileRecord(id={self.stable_id}, name={self.canonical_name}, "
            f"recommendation={self.recommendation})>"
        )
