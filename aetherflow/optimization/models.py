import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from aetherflow.db.base import Base, TimestampMixin, UpdatedAtMixin, UUIDMixin


class OptimizationRecord(UUIDMixin, TimestampMixin, UpdatedAtMixin, Base):
    """One optimized prompt plus every refinement round applied to it.

    provider/model are denormalized strings so history survives credential deletion.
    """
    __tablename__ = "optimization_records"
    __table_args__ = (
        Index("ix_optimization_owner_created", "owner_id", "created_at"),
        Index("ix_optimization_owner_category", "owner_id", "category"),
        CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="ck_rating_range"),
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    original_prompt: Mapped[str] = mapped_column(Text, nullable=False)
    optimized_prompt: Mapped[str] = mapped_column(Text, nullable=False)
    improvements: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expected_benefits: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="general")
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    model: Mapped[str] = mapped_column(String(128), nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Append-only list of {optimized_prompt, improvements, expected_benefits,
    # provider, model, timestamp}; always reassigned, never mutated in place
    iterations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
