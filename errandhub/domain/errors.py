"""
Typed lifecycle errors.

Every failure the engine can raise carries a stable machine-readable
``code`` and the HTTP status it maps to at the API boundary.  Messages
are safe to show to end users.
"""

from __future__ import annotations


class ErrandError(Exception):
    """Base class for all errand lifecycle failures."""

    code = "ERRAND_ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# ── Categories ────────────────────────────────────────────────────────


class NotFoundError(ErrandError):
    status_code = 404


class AuthorizationError(ErrandError):
    status_code = 403


class StateConflictError(ErrandError):
    status_code = 409


class RateLimitError(ErrandError):
    status_code = 429


class ValidationError(ErrandError):
    status_code = 400


class InfrastructureError(ErrandError):
    status_code = 500


# ── Not found ─────────────────────────────────────────────────────────


class CustomerNotFound(NotFoundError):
    code = "CUSTOMER_NOT_FOUND"


class ErrandNotFound(NotFoundError):
    code = "ERRAND_NOT_FOUND"


class RunnerNotFound(NotFoundError):
    code = "RUNNER_NOT_FOUND"


# ── Authorization ─────────────────────────────────────────────────────


class AccountInactive(AuthorizationError):
    code = "ACCOUNT_INACTIVE"


class RunnerUnavailable(AuthorizationError):
    code = "RUNNER_UNAVAILABLE"


class SelfAcceptanceNotAllowed(AuthorizationError):
    code = "SELF_ACCEPTANCE_NOT_ALLOWED"


class NotAssignedRunner(AuthorizationError):
    code = "NOT_ASSIGNED_RUNNER"


class CancellationNotAllowed(AuthorizationError):
    code = "CANCELLATION_NOT_ALLOWED"


class NotAuthorized(AuthorizationError):
    code = "NOT_AUTHORIZED"


# ── State conflict ────────────────────────────────────────────────────


class ErrandUnavailable(StateConflictError):
    code = "ERRAND_UNAVAILABLE"


class ErrandAlreadyAssigned(StateConflictError):
    code = "ERRAND_ALREADY_ASSIGNED"


class InvalidStatusTransition(StateConflictError):
    code = "INVALID_STATUS_TRANSITION"


# ── Rate limits ───────────────────────────────────────────────────────


class TooManyPendingErrands(RateLimitError):
    code = "TOO_MANY_PENDING_ERRANDS"


class DailyLimitReached(RateLimitError):
    code = "DAILY_LIMIT_REACHED"


class TooManyCancellations(RateLimitError):
    code = "TOO_MANY_CANCELLATIONS"


class RunnerTooManyCancellations(RateLimitError):
    code = "RUNNER_TOO_MANY_CANCELLATIONS"


# ── Validation ────────────────────────────────────────────────────────


class InvalidBudget(ValidationError):
    code = "INVALID_BUDGET"


class InvalidDistance(ValidationError):
    code = "INVALID_DISTANCE"


class InvalidCategory(ValidationError):
    code = "INVALID_CATEGORY"


class InvalidUrgency(ValidationError):
    code = "INVALID_URGENCY"


# ── Infrastructure ────────────────────────────────────────────────────


class PersistenceUnavailable(InfrastructureError):
    """The store failed or timed out; the transaction was rolled back."""

    code = "PERSISTENCE_UNAVAILABLE"
    retryable = True
