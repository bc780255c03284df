"""Unit tests for runner availability and ledger updates."""

from decimal import Decimal

from errandhub.domain import ledger
from errandhub.domain.entities import Runner


class TestWeightedRating:
    def test_first_completion_takes_sample(self):
        assert ledger.weighted_rating(5.0, 0, 4.5) == 4.5

    def test_running_average(self):
        # (5.0 * 4 + 4.5) / 5 = 4.9
        assert ledger.weighted_rating(5.0, 4, 4.5) == 4.9

    def test_rounds_half_up(self):
        # (4.0 + 4.25) / 2 = 4.125; banker's rounding would give 4.12
        assert ledger.weighted_rating(4.0, 1, 4.25) == 4.13

    def test_returns_float(self):
        assert isinstance(ledger.weighted_rating(5.0, 4, 4.5), float)

    def test_clamped_to_bounds(self):
        assert ledger.weighted_rating(5.0, 1, 9.0) == 5.0
        assert ledger.weighted_rating(0.0, 1, -3.0) == 0.0


class TestRunnerLedger:
    def test_engage_and_release(self):
        runner = Runner(user_id=1, is_available=True)
        ledger.engage(runner)
        assert runner.is_available is False
        ledger.release(runner)
        assert runner.is_available is True

    def test_record_completion(self):
        runner = Runner(
            user_id=1,
            is_available=False,
            rating=5.0,
            completed_errands=4,
            earnings=Decimal("100.00"),
        )
        ledger.record_completion(runner, Decimal("22.14"), 4.5)

        assert runner.completed_errands == 5
        assert runner.rating == 4.9
        assert runner.earnings == Decimal("122.14")
        assert runner.is_available is True

    def test_record_completion_from_empty_ledger(self):
        runner = Runner(user_id=1, is_available=False, earnings=None, completed_errands=0)
        ledger.record_completion(runner, Decimal("10.00"), 4.5)
        assert runner.earnings == Decimal("10.00")
        assert runner.completed_errands == 1
