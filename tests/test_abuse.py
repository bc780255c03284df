"""Unit tests for abuse-guard predicates and windows."""

from datetime import datetime, timedelta, timezone

import pytest

from errandhub.config import Settings
from errandhub.domain.abuse import (
    AbuseLimits,
    check_customer_cancellations,
    check_daily_accepts,
    check_pending_errands,
    check_runner_cancellations,
    fraud_warnings,
)
from errandhub.domain.errors import (
    DailyLimitReached,
    RunnerTooManyCancellations,
    TooManyCancellations,
    TooManyPendingErrands,
)


class TestPredicates:
    def setup_method(self):
        self.limits = AbuseLimits()

    def test_pending_below_limit_passes(self):
        check_pending_errands(9, self.limits)

    def test_pending_at_limit_fails(self):
        with pytest.raises(TooManyPendingErrands) as exc:
            check_pending_errands(10, self.limits)
        assert exc.value.status_code == 429

    def test_daily_accepts_at_limit_fails(self):
        check_daily_accepts(14, self.limits)
        with pytest.raises(DailyLimitReached, match="15 errands per day"):
            check_daily_accepts(15, self.limits)

    def test_customer_cancellations(self):
        check_customer_cancellations(2, self.limits)
        with pytest.raises(TooManyCancellations):
            check_customer_cancellations(3, self.limits)

    def test_runner_cancellations(self):
        check_runner_cancellations(1, self.limits)
        with pytest.raises(RunnerTooManyCancellations):
            check_runner_cancellations(2, self.limits)


class TestWindows:
    def test_start_of_day_in_utc(self):
        limits = AbuseLimits(timezone="UTC")
        now = datetime(2026, 3, 4, 15, 30, tzinfo=timezone.utc)
        assert limits.start_of_day(now) == datetime(2026, 3, 4, tzinfo=timezone.utc)

    def test_start_of_day_uses_business_timezone(self):
        # East Africa Time is UTC+3 with no DST
        limits = AbuseLimits(timezone="Africa/Dar_es_Salaam")
        now = datetime(2026, 3, 4, 22, 0, tzinfo=timezone.utc)  # 01:00 on the 5th locally
        assert limits.start_of_day(now) == datetime(2026, 3, 4, 21, 0, tzinfo=timezone.utc)

    def test_cancellation_window_is_rolling_24h(self):
        now = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)
        assert AbuseLimits.cancellation_window_start(now) == now - timedelta(hours=24)

    def test_from_settings(self):
        limits = AbuseLimits.from_settings(
            Settings(_env_file=None, max_daily_accepts=3, fraud_report_window_days=10)
        )
        assert limits.max_daily_accepts == 3
        assert limits.fraud_report_window == timedelta(days=10)


class TestFraudWarnings:
    def setup_method(self):
        self.limits = AbuseLimits()

    def test_clean_user(self):
        assert fraud_warnings(2, 1, self.limits) == []

    def test_high_cancellation_rate(self):
        assert fraud_warnings(3, 0, self.limits) == ["High cancellation rate detected"]

    def test_resolved_reports(self):
        assert fraud_warnings(0, 2, self.limits) == [
            "Multiple resolved reports against user"
        ]

    def test_both(self):
        assert len(fraud_warnings(5, 5, self.limits)) == 2
