"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Errand``: enforces valid lifecycle transitions
  (PENDING -> ACCEPTED -> IN_PROGRESS -> COMPLETED | CANCELLED).
- ``Errand.cancellation_denial`` evaluates the cancellation policy table.

These are the typed values handed back to callers once a transaction has
committed; the ORM rows never leave the lifecycle engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .enums import (
    CANCELLATION_POLICY,
    ERRAND_TRANSITIONS,
    ActorRole,
    Category,
    ErrandStatus,
    PaymentMethod,
    PaymentStatus,
    Urgency,
    UserType,
)
from .errors import InvalidStatusTransition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class UserSummary:
    id: int
    full_name: str
    phone_number: Optional[str] = None
    user_type: UserType = UserType.CUSTOMER


@dataclass(frozen=True)
class ErrandDetails:
    """Customer-entered input for ``create``."""

    title: str
    category: Category
    urgency: Urgency
    location_from: str
    location_to: str
    base_price: Decimal
    description: Optional[str] = None
    distance_km: float = 0.0
    estimated_duration_min: Optional[int] = None


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Runner:
    user_id: int
    id: Optional[int] = None
    is_available: bool = True
    is_approved: bool = False
    rating: float = 5.0
    completed_errands: int = 0
    earnings: Decimal = Decimal("0.00")
    cancellation_rate: float = 0.0


@dataclass
class Transaction:
    errand_id: int
    customer_id: int
    runner_id: int
    amount: Decimal
    base_amount: Decimal
    platform_fee: Decimal
    runner_earnings: Decimal
    id: Optional[int] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.WALLET
    created_at: Optional[datetime] = None


@dataclass
class Review:
    errand_id: int
    reviewer_id: int
    reviewee_id: int
    rating: int
    id: Optional[int] = None
    comment: Optional[str] = None


@dataclass
class Errand:
    customer_id: int
    title: str = ""
    category: Category = Category.OTHER
    urgency: Urgency = Urgency.STANDARD
    location_from: str = ""
    location_to: str = ""
    base_price: Decimal = Decimal("0.00")
    id: Optional[int] = None
    description: Optional[str] = None
    runner_id: Optional[int] = None
    accepted_by: Optional[int] = None
    status: ErrandStatus = ErrandStatus.PENDING
    final_price: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    runner_earnings: Optional[Decimal] = None
    distance_fee: Optional[Decimal] = None
    urgency_fee: Optional[Decimal] = None
    distance_km: float = 0.0
    estimated_duration_min: Optional[int] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    created_at: Optional[datetime] = None
    customer: Optional[UserSummary] = None
    runner: Optional[UserSummary] = None
    transaction: Optional[Transaction] = None
    review: Optional[Review] = None

    def transition_to(self, new_status: ErrandStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        ensure_transition(self.status, new_status)
        self.status = new_status

    def role_of(self, user_id: int) -> Optional[ActorRole]:
        if user_id == self.customer_id:
            return ActorRole.CUSTOMER
        if self.runner_id is not None and user_id == self.runner_id:
            return ActorRole.RUNNER
        return None

    def cancellation_denial(self, user_id: int) -> Optional[str]:
        return cancellation_denial(ErrandStatus(self.status), self.role_of(user_id))


# ── Rules shared by entities and ORM rows ─────────────────────────────


def ensure_transition(current: ErrandStatus, new_status: ErrandStatus) -> None:
    allowed = ERRAND_TRANSITIONS.get(ErrandStatus(current), set())
    if new_status not in allowed:
        raise InvalidStatusTransition(
            f"Cannot transition from {ErrandStatus(current).value} "
            f"to {new_status.value}"
        )


def cancellation_denial(
    status: ErrandStatus, role: Optional[ActorRole]
) -> Optional[str]:
    """Return why *role* may not cancel in *status*, or None if it may."""
    if role is None:
        return "Not authorized to cancel this errand"
    key = (status, role)
    if key not in CANCELLATION_POLICY:
        return f"Cannot cancel errand in {status.value} status"
    return CANCELLATION_POLICY[key]
