"""
Abuse Guard
===========

Stateless predicates over point-in-time counts.  Callers fetch the counts
inside the same transaction as the mutation being gated, so the rate-limit
window cannot move between the check and the write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from .errors import (
    DailyLimitReached,
    RunnerTooManyCancellations,
    TooManyCancellations,
    TooManyPendingErrands,
)

CANCELLATION_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class AbuseLimits:
    max_pending_errands: int = 10
    max_daily_accepts: int = 15
    max_customer_cancellations: int = 3
    max_runner_cancellations: int = 2
    fraud_cancellation_window: timedelta = timedelta(days=7)
    fraud_cancellation_threshold: int = 3
    fraud_report_window: timedelta = timedelta(days=30)
    fraud_report_threshold: int = 2
    timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings) -> "AbuseLimits":
        return cls(
            max_pending_errands=settings.max_pending_errands,
            max_daily_accepts=settings.max_daily_accepts,
            max_customer_cancellations=settings.max_customer_cancellations_per_day,
            max_runner_cancellations=settings.max_runner_cancellations_per_day,
            fraud_cancellation_window=timedelta(
                days=settings.fraud_cancellation_window_days
            ),
            fraud_cancellation_threshold=settings.fraud_cancellation_threshold,
            fraud_report_window=timedelta(days=settings.fraud_report_window_days),
            fraud_report_threshold=settings.fraud_report_threshold,
            timezone=settings.business_timezone,
        )

    # ── windows ───────────────────────────────────────────────────

    def start_of_day(self, now: datetime) -> datetime:
        """Local midnight for *now*, expressed in UTC."""
        local = now.astimezone(ZoneInfo(self.timezone))
        midnight = datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)
        return midnight.astimezone(timezone.utc)

    @staticmethod
    def cancellation_window_start(now: datetime) -> datetime:
        return now - CANCELLATION_WINDOW


# ── Predicates ────────────────────────────────────────────────────────


def check_pending_errands(pending_count: int, limits: AbuseLimits) -> None:
    if pending_count >= limits.max_pending_errands:
        raise TooManyPendingErrands(
            "You have too many pending errands. Please complete or cancel "
            "some before creating new ones."
        )


def check_daily_accepts(accepted_today: int, limits: AbuseLimits) -> None:
    if accepted_today >= limits.max_daily_accepts:
        raise DailyLimitReached(
            "Daily errand acceptance limit reached "
            f"({limits.max_daily_accepts} errands per day)"
        )


def check_customer_cancellations(recent: int, limits: AbuseLimits) -> None:
    if recent >= limits.max_customer_cancellations:
        raise TooManyCancellations(
            "Too many cancellations in the last 24 hours. Please contact support."
        )


def check_runner_cancellations(recent: int, limits: AbuseLimits) -> None:
    if recent >= limits.max_runner_cancellations:
        raise RunnerTooManyCancellations(
            "Too many cancellations as runner in the last 24 hours."
        )


def fraud_warnings(
    recent_cancellations: int, recent_resolved_reports: int, limits: AbuseLimits
) -> list[str]:
    """Heuristic warnings feeding the trust-score review queue."""
    warnings: list[str] = []
    if recent_cancellations >= limits.fraud_cancellation_threshold:
        warnings.append("High cancellation rate detected")
    if recent_resolved_reports >= limits.fraud_report_threshold:
        warnings.append("Multiple resolved reports against user")
    return warnings
