"""SQLAlchemy models for KDP Signal."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kdpsignal.signals.windows import ListingInfo, Sample

from .database import Base


def _to_float(value: Decimal | float | None) -> float | None:
    return float(value) if value is not None else None


class Listing(Base):
    """A tracked KDP book listing owned by a user."""

    __tablename__ = "asin_data"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str] = mapped_column(String(10), nullable=False, default="com")
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    interior_type: Mapped[str] = mapped_column(String(20), nullable=False, default="bw")
    trim_size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dimensions_raw: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    samples: Mapped[list["AsinSample"]] = relationship(
        back_populates="listing", cascade="all, delete-orphan"
    )

    def to_info(self) -> ListingInfo:
        return ListingInfo(
            asin=self.asin,
            country=self.country,
            page_count=self.page_count,
            price=_to_float(self.price),
            interior_type=self.interior_type,
            trim_size=self.trim_size,
            dimensions_raw=self.dimensions_raw,
        )

    def __repr__(self) -> str:
        return f"<Listing(asin={self.asin}, user_id={self.user_id})>"


class AsinSample(Base):
    """One scraped observation of a listing."""

    __tablename__ = "asin_history"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("asin_data.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    bsr: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    review_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    listing: Mapped["Listing"] = relationship(back_populates="samples")

    def to_sample(self, asin: str, country: str | None = None) -> Sample:
        return Sample(
            asin=asin,
            timestamp=self.created_at,
            country=country,
            bsr=self.bsr,
            price=_to_float(self.price),
            review_count=self.review_count,
        )

    def __repr__(self) -> str:
        return f"<AsinSample(listing_id={self.listing_id}, created_at={self.created_at})>"


class NotificationSnapshot(Base):
    """Persisted, immutable notification snapshot."""

    __tablename__ = "notification_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    net_impact: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sentiment: Mapped[str] = mapped_column(String(50), nullable=False)
    drivers: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list
    recommendations: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON list
    confidence: Mapped[str] = mapped_column(String(10), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="{}")  # JSON object
    algo_version: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    def __repr__(self) -> str:
        return f"<NotificationSnapshot(asin={self.asin}, status={self.status})>"


class NotificationDailyRollup(Base):
    """Per user/asin/day status counters and learnt weights."""

    __tablename__ = "notification_daily_rollup"
    __table_args__ = (UniqueConstraint("user_id", "asin", "date", name="uq_rollup_user_asin_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    better: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    worse: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stable: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net_impact_avg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    weights: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON object

    def __repr__(self) -> str:
        return f"<NotificationDailyRollup(asin={self.asin}, date={self.date})>"


class NotificationFeedback(Base):
    """Durable log of user reactions to snapshots."""

    __tablename__ = "notification_feedback"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    snapshot_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("notification_snapshots.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    sign: Mapped[str] = mapped_column(String(10), nullable=False, default="positive")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<NotificationFeedback(asin={self.asin}, action={self.action})>"


class FeedbackLedgerRecord(Base):
    """Serialized feedback ledger, one per user."""

    __tablename__ = "feedback_ledgers"

    user_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    ledger: Mapped[str] = mapped_column(Text, nullable=False, default="{}")  # JSON object
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<FeedbackLedgerRecord(user_id={self.user_id})>"
