"""Domain enumerations and state-transition rules."""

import enum


class ErrandStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
ERRAND_TRANSITIONS: dict[ErrandStatus, set[ErrandStatus]] = {
    ErrandStatus.PENDING: {ErrandStatus.ACCEPTED, ErrandStatus.CANCELLED},
    ErrandStatus.ACCEPTED: {ErrandStatus.IN_PROGRESS, ErrandStatus.CANCELLED},
    ErrandStatus.IN_PROGRESS: {ErrandStatus.COMPLETED, ErrandStatus.CANCELLED},
    ErrandStatus.COMPLETED: set(),
    ErrandStatus.CANCELLED: set(),
}


class Category(str, enum.Enum):
    DELIVERY = "delivery"
    SHOPPING = "shopping"
    FOOD_DELIVERY = "food_delivery"
    DOCUMENTS = "documents"
    OTHER = "other"


class Urgency(str, enum.Enum):
    STANDARD = "standard"
    URGENT = "urgent"
    ASAP = "asap"


class UserType(str, enum.Enum):
    CUSTOMER = "customer"
    RUNNER = "runner"
    BOTH = "both"


class ActorRole(str, enum.Enum):
    """Relationship of the acting user to a particular errand."""

    CUSTOMER = "customer"
    RUNNER = "runner"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    WALLET = "wallet"
    MOBILE_MONEY = "mobile_money"
    CASH = "cash"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


# Cancellation policy: (status, actor role) -> denial reason, or None if allowed.
# Statuses missing from the table (completed, cancelled) are never cancellable.
CANCELLATION_POLICY: dict[tuple[ErrandStatus, ActorRole], str | None] = {
    (ErrandStatus.PENDING, ActorRole.CUSTOMER): None,
    (ErrandStatus.ACCEPTED, ActorRole.CUSTOMER): None,
    (ErrandStatus.ACCEPTED, ActorRole.RUNNER): None,
    (ErrandStatus.IN_PROGRESS, ActorRole.CUSTOMER): (
        "Cannot cancel errand that is in progress. Please contact support."
    ),
    (ErrandStatus.IN_PROGRESS, ActorRole.RUNNER): None,
}
