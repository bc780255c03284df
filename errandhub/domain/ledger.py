"""
Runner Availability Ledger
==========================

Invariant-preserving mutations on a runner record.  Not a stored entity of
its own: the lifecycle engine applies these to the (locked) runner row in
the same transaction as the errand transition that triggers them.

Works on anything shaped like a runner (``RunnerModel`` rows or the
``Runner`` entity).
"""

from __future__ import annotations

from decimal import Decimal

from .pricing import round_money

MAX_RATING = Decimal("5")
MIN_RATING = Decimal("0")


def weighted_rating(old_rating: float, old_count: int, sample: float) -> float:
    """Running average ``(old * n + sample) / (n + 1)`` clamped to [0, 5].

    Rounded half-up to 2 places, like every money figure.
    """
    old_count = old_count or 0
    total = Decimal(str(old_rating or 0)) * old_count + Decimal(str(sample))
    new_rating = total / (old_count + 1)
    return float(round_money(min(MAX_RATING, max(MIN_RATING, new_rating))))


def engage(runner) -> None:
    """Runner takes an errand."""
    runner.is_available = False


def release(runner) -> None:
    """Runner's errand resolved (completed or cancelled)."""
    runner.is_available = True


def record_completion(runner, earnings: Decimal, rating_sample: float) -> None:
    count = runner.completed_errands or 0
    runner.rating = weighted_rating(runner.rating, count, rating_sample)
    runner.completed_errands = count + 1
    runner.earnings = round_money(Decimal(str(runner.earnings or 0)) + earnings)
    release(runner)
