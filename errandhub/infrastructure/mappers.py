"""ORM row -> domain entity conversion (call while the session is open)."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .models import (
    ErrandModel,
    ReviewModel,
    TransactionModel,
    UserModel,
)
from errandhub.domain.entities import Errand, Review, Transaction, UserSummary
from errandhub.domain.enums import (
    Category,
    ErrandStatus,
    PaymentMethod,
    PaymentStatus,
    Urgency,
    UserType,
)


def _money(value) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def to_user_summary(user: Optional[UserModel]) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(
        id=user.id,
        full_name=user.full_name,
        phone_number=user.phone_number,
        user_type=UserType(user.user_type),
    )


def to_transaction(txn: Optional[TransactionModel]) -> Optional[Transaction]:
    if txn is None:
        return None
    return Transaction(
        id=txn.id,
        errand_id=txn.errand_id,
        customer_id=txn.customer_id,
        runner_id=txn.runner_id,
        amount=_money(txn.amount),
        base_amount=_money(txn.base_amount),
        platform_fee=_money(txn.platform_fee),
        runner_earnings=_money(txn.runner_earnings),
        payment_status=PaymentStatus(txn.payment_status),
        payment_method=PaymentMethod(txn.payment_method),
        created_at=txn.created_at,
    )


def to_review(review: Optional[ReviewModel]) -> Optional[Review]:
    if review is None:
        return None
    return Review(
        id=review.id,
        errand_id=review.errand_id,
        reviewer_id=review.reviewer_id,
        reviewee_id=review.reviewee_id,
        rating=review.rating,
        comment=review.comment,
    )


def to_errand(errand: ErrandModel) -> Errand:
    """Hydrate from a row loaded via ``ErrandRepository.get_with_details``."""
    return Errand(
        id=errand.id,
        customer_id=errand.customer_id,
        runner_id=errand.runner_id,
        accepted_by=errand.accepted_by,
        title=errand.title,
        description=errand.description,
        category=Category(errand.category),
        urgency=Urgency(errand.urgency),
        location_from=errand.location_from,
        location_to=errand.location_to,
        distance_km=errand.distance_km,
        estimated_duration_min=errand.estimated_duration_min,
        base_price=_money(errand.base_price),
        final_price=_money(errand.final_price),
        platform_fee=_money(errand.platform_fee),
        runner_earnings=_money(errand.runner_earnings),
        distance_fee=_money(errand.distance_fee),
        urgency_fee=_money(errand.urgency_fee),
        status=ErrandStatus(errand.status),
        accepted_at=errand.accepted_at,
        started_at=errand.started_at,
        completed_at=errand.completed_at,
        cancelled_at=errand.cancelled_at,
        cancellation_reason=errand.cancellation_reason,
        cancelled_by=errand.cancelled_by,
        created_at=errand.created_at,
        customer=to_user_summary(errand.customer),
        runner=to_user_summary(errand.runner),
        transaction=to_transaction(errand.transaction),
        review=to_review(errand.review),
    )
