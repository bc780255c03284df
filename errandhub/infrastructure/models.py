"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``         -- identities owned by the auth service (read-only here)
* ``runners``       -- runner capability profile, one per user
* ``errands``       -- task requests and their lifecycle state
* ``transactions``  -- settlement record, exactly one per completed errand
* ``reviews``       -- customer review of a completed errand
* ``reports``       -- trust & safety reports against a user

Indexes
-------
* **B-Tree** on ``status``, ``customer_id``, ``runner_id``,
  ``(accepted_by, accepted_at)`` and ``(cancelled_by, cancelled_at)`` for the
  abuse-guard counts.
* **CHECK** constraints mirror the migration so ``create_all`` enforces them.
* **Unique** on ``runners.user_id`` and ``transactions.errand_id``.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from errandhub.domain.enums import (
    Category,
    ErrandStatus,
    PaymentMethod,
    PaymentStatus,
    ReportStatus,
    Urgency,
    UserType,
)


def _enum(enum_cls):
    # persist the lowercase values, not the member names
    return Enum(enum_cls, values_callable=lambda e: [m.value for m in e])


def _money():
    return Numeric(12, 2, asdecimal=True)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(120), nullable=False)
    phone_number = Column(String(20), unique=True, nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    user_type = Column(_enum(UserType), default=UserType.CUSTOMER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RunnerModel(Base):
    __tablename__ = "runners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    rating = Column(Float, default=5.0, nullable=False)
    completed_errands = Column(Integer, default=0, nullable=False)
    earnings = Column(_money(), default=0, nullable=False)
    cancellation_rate = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserModel", lazy="raise")

    __table_args__ = (
        Index("idx_runners_available", "is_available"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="rating"),
    )


class ErrandModel(Base):
    __tablename__ = "errands"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    runner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # first runner to claim the errand; survives cancellation
    accepted_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(_enum(Category), nullable=False)
    urgency = Column(_enum(Urgency), default=Urgency.STANDARD, nullable=False)
    location_from = Column(String(255), nullable=False)
    location_to = Column(String(255), nullable=False)
    distance_km = Column(Float, default=0.0, nullable=False)
    estimated_duration_min = Column(Integer, nullable=True)

    # Fee breakdown, fixed at creation
    base_price = Column(_money(), nullable=False)
    final_price = Column(_money(), nullable=False)
    platform_fee = Column(_money(), nullable=False)
    runner_earnings = Column(_money(), nullable=False)
    distance_fee = Column(_money(), nullable=False)
    urgency_fee = Column(_money(), nullable=False)

    status = Column(_enum(ErrandStatus), default=ErrandStatus.PENDING, nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    customer = relationship("UserModel", foreign_keys=[customer_id], lazy="raise")
    runner = relationship("UserModel", foreign_keys=[runner_id], lazy="raise")
    transaction = relationship(
        "TransactionModel", back_populates="errand", uselist=False, lazy="raise"
    )
    review = relationship("ReviewModel", uselist=False, lazy="raise")

    __table_args__ = (
        Index("idx_errands_status", "status"),
        Index("idx_errands_customer", "customer_id"),
        Index("idx_errands_runner", "runner_id"),
        Index("idx_errands_accepted", "accepted_by", "accepted_at"),
        Index("idx_errands_cancelled", "cancelled_by", "cancelled_at"),
        CheckConstraint("base_price > 0", name="base_price"),
        CheckConstraint(
            "(runner_id IS NOT NULL) = "
            "(status IN ('accepted', 'in_progress', 'completed'))",
            name="runner_matches_status",
        ),
        CheckConstraint(
            "runner_id IS NULL OR runner_id <> customer_id",
            name="no_self_dealing",
        ),
    )


class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    errand_id = Column(Integer, ForeignKey("errands.id"), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    runner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(_money(), nullable=False)
    base_amount = Column(_money(), nullable=False)
    platform_fee = Column(_money(), nullable=False)
    runner_earnings = Column(_money(), nullable=False)
    payment_status = Column(
        _enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    payment_method = Column(
        _enum(PaymentMethod), default=PaymentMethod.WALLET, nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    errand = relationship("ErrandModel", back_populates="transaction", lazy="raise")


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    errand_id = Column(Integer, ForeignKey("errands.id"), unique=True, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reviewee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ReportModel(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reporter_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reported_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    errand_id = Column(Integer, ForeignKey("errands.id"), nullable=True)
    report_type = Column(String(50), nullable=False)
    status = Column(_enum(ReportStatus), default=ReportStatus.PENDING, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_reports_reported", "reported_user_id", "status"),)
