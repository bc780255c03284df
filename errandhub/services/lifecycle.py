"""
Errand Lifecycle Engine
=======================

Owns the errand state machine:

    pending -> accepted -> in_progress -> completed
    pending | accepted | in_progress  -> cancelled

Concurrency safety
------------------
* Every transition runs in **one** database transaction that locks the
  errand row with ``SELECT ... FOR UPDATE`` before reading its status.
  Rows are always locked errand first, then the runner/customer row.
* ``accept`` additionally claims the row with a compare-and-set
  ``UPDATE ... WHERE status = 'pending' AND runner_id IS NULL``, so at most
  one runner wins even on stores without row locks.
* Any precondition failure raises before commit; the whole transaction
  rolls back.  Store-level failures surface as ``PersistenceUnavailable``.
* Lifecycle events are emitted only after commit.  Emission failures are
  logged and never propagate.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from errandhub.domain import ledger
from errandhub.domain.abuse import (
    AbuseLimits,
    check_customer_cancellations,
    check_daily_accepts,
    check_pending_errands,
    check_runner_cancellations,
    fraud_warnings as evaluate_fraud_patterns,
)
from errandhub.domain.entities import (
    Errand,
    ErrandDetails,
    cancellation_denial,
    ensure_transition,
)
from errandhub.domain.enums import (
    ActorRole,
    Category,
    ErrandStatus,
    PaymentMethod,
    PaymentStatus,
    Urgency,
)
from errandhub.domain.errors import (
    AccountInactive,
    CancellationNotAllowed,
    CustomerNotFound,
    ErrandAlreadyAssigned,
    ErrandError,
    ErrandNotFound,
    ErrandUnavailable,
    NotAssignedRunner,
    NotAuthorized,
    PersistenceUnavailable,
    RunnerNotFound,
    RunnerUnavailable,
    SelfAcceptanceNotAllowed,
)
from errandhub.domain.pricing import FeeBreakdown, PricingEngine
from errandhub.infrastructure.events import EventEmitter, LifecycleEvent
from errandhub.infrastructure.mappers import to_errand
from errandhub.infrastructure.models import ErrandModel, TransactionModel
from errandhub.infrastructure.repositories import (
    ErrandRepository,
    ReportRepository,
    RunnerRepository,
    TransactionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrandLifecycleEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        emitter: EventEmitter,
        pricing: PricingEngine,
        limits: AbuseLimits,
        rating_sample: float = 4.5,
        lock_timeout_ms: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.emitter = emitter
        self.pricing = pricing
        self.limits = limits
        self.rating_sample = rating_sample
        self.lock_timeout_ms = lock_timeout_ms
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        emitter: EventEmitter,
        settings,
    ) -> "ErrandLifecycleEngine":
        return cls(
            session_factory,
            emitter,
            pricing=PricingEngine.from_settings(settings),
            limits=AbuseLimits.from_settings(settings),
            rating_sample=settings.completion_rating_sample,
            lock_timeout_ms=settings.lock_timeout_ms,
        )

    # ── Transitions ───────────────────────────────────────────────

    async def create(self, customer_id: int, details: ErrandDetails) -> Errand:
        breakdown = self.pricing.price(
            details.base_price, details.category, details.urgency, details.distance_km
        )

        async with self._transaction("create") as session:
            errands = ErrandRepository(session)

            # Lock the customer so concurrent creates see each other's rows
            customer = await UserRepository(session).get_for_update(customer_id)
            if customer is None:
                raise CustomerNotFound("Customer not found")
            if not customer.is_active:
                raise AccountInactive("Customer account is inactive")

            pending = await errands.count_pending_for_customer(customer_id)
            check_pending_errands(pending, self.limits)

            row = await errands.create(
                ErrandModel(
                    customer_id=customer_id,
                    title=details.title,
                    description=details.description,
                    category=Category(details.category),
                    urgency=Urgency(details.urgency),
                    location_from=details.location_from,
                    location_to=details.location_to,
                    distance_km=float(details.distance_km or 0),
                    estimated_duration_min=details.estimated_duration_min,
                    status=ErrandStatus.PENDING,
                    **_fee_columns(breakdown),
                )
            )
            errand = await self._hydrate(errands, row.id)

        logger.info(
            "Errand created errand_id=%s customer_id=%s category=%s final_price=%s",
            errand.id,
            customer_id,
            errand.category.value,
            errand.final_price,
        )
        await self._notify(errand, customer_id)
        return errand

    async def accept(self, errand_id: int, runner_id: int) -> Errand:
        async with self._transaction("accept") as session:
            errands = ErrandRepository(session)

            row = await errands.get_for_update(errand_id)
            if row is None:
                raise ErrandNotFound("Errand not found")

            runner = await RunnerRepository(session).get_by_user_id_for_update(runner_id)
            if runner is None or not runner.is_available or not runner.is_approved:
                raise RunnerUnavailable("Runner not available or account not approved")

            now = self.clock()
            accepted_today = await errands.count_accepted_since(
                runner_id, self.limits.start_of_day(now)
            )
            check_daily_accepts(accepted_today, self.limits)

            status = ErrandStatus(row.status)
            if status is not ErrandStatus.PENDING:
                raise ErrandUnavailable(
                    f"Errand is no longer available. Current status: {status.value}"
                )
            if row.runner_id is not None:
                raise ErrandAlreadyAssigned("Errand already assigned to another runner")
            if row.customer_id == runner_id:
                raise SelfAcceptanceNotAllowed("Cannot accept your own errand")

            if not await errands.claim(errand_id, runner_id, now):
                raise ErrandAlreadyAssigned("Errand already assigned to another runner")
            ledger.engage(runner)

            errand = await self._hydrate(errands, errand_id)

        logger.info(
            "Errand accepted errand_id=%s runner_id=%s customer_id=%s",
            errand_id,
            runner_id,
            errand.customer_id,
        )
        await self._notify(errand, runner_id)
        return errand

    async def start(self, errand_id: int, runner_id: int) -> Errand:
        async with self._transaction("start") as session:
            errands = ErrandRepository(session)
            row = await self._locked_for_runner(errands, errand_id, runner_id)

            ensure_transition(row.status, ErrandStatus.IN_PROGRESS)
            row.status = ErrandStatus.IN_PROGRESS
            row.started_at = self.clock()

            errand = await self._hydrate(errands, errand_id)

        logger.info("Errand started errand_id=%s runner_id=%s", errand_id, runner_id)
        await self._notify(errand, runner_id)
        return errand

    async def complete(self, errand_id: int, runner_id: int) -> Errand:
        async with self._transaction("complete") as session:
            errands = ErrandRepository(session)
            row = await self._locked_for_runner(errands, errand_id, runner_id)
            ensure_transition(row.status, ErrandStatus.COMPLETED)

            # Fees come from the creation inputs, never from stored fee columns
            breakdown = self.pricing.price(
                row.base_price, row.category, row.urgency, row.distance_km
            )
            if (
                breakdown.runner_earnings != row.runner_earnings
                or breakdown.platform_fee != row.platform_fee
            ):
                logger.warning(
                    "Fee breakdown for errand %s differs from creation "
                    "(earnings %s -> %s, fee %s -> %s)",
                    errand_id,
                    row.runner_earnings,
                    breakdown.runner_earnings,
                    row.platform_fee,
                    breakdown.platform_fee,
                )

            runner = await RunnerRepository(session).get_by_user_id_for_update(runner_id)
            if runner is None:
                raise RunnerNotFound("Runner not found")

            row.status = ErrandStatus.COMPLETED
            row.completed_at = self.clock()
            ledger.record_completion(runner, breakdown.runner_earnings, self.rating_sample)

            await TransactionRepository(session).create(
                TransactionModel(
                    errand_id=errand_id,
                    customer_id=row.customer_id,
                    runner_id=runner_id,
                    amount=row.final_price,
                    base_amount=row.base_price,
                    platform_fee=breakdown.platform_fee,
                    runner_earnings=breakdown.runner_earnings,
                    payment_status=PaymentStatus.PENDING,
                    payment_method=PaymentMethod.WALLET,
                )
            )
            errand = await self._hydrate(errands, errand_id)

        logger.info(
            "Errand completed errand_id=%s runner_id=%s runner_earnings=%s "
            "platform_fee=%s final_price=%s",
            errand_id,
            runner_id,
            breakdown.runner_earnings,
            breakdown.platform_fee,
            errand.final_price,
        )
        await self._notify(errand, runner_id)
        return errand

    async def cancel(
        self, errand_id: int, actor_id: int, reason: Optional[str] = None
    ) -> Errand:
        async with self._transaction("cancel") as session:
            errands = ErrandRepository(session)

            row = await errands.get_for_update(errand_id)
            if row is None:
                raise ErrandNotFound("Errand not found")

            previous_status = ErrandStatus(row.status)
            if actor_id == row.customer_id:
                role = ActorRole.CUSTOMER
            elif row.runner_id is not None and actor_id == row.runner_id:
                role = ActorRole.RUNNER
            else:
                role = None

            denial = cancellation_denial(previous_status, role)
            if denial is not None:
                raise CancellationNotAllowed(denial)

            now = self.clock()
            since = self.limits.cancellation_window_start(now)
            if role is ActorRole.CUSTOMER:
                recent = await errands.count_cancellations_as_customer(actor_id, since)
                check_customer_cancellations(recent, self.limits)
            else:
                recent = await errands.count_cancellations_as_runner(actor_id, since)
                check_runner_cancellations(recent, self.limits)

            ensure_transition(previous_status, ErrandStatus.CANCELLED)
            assigned_runner_id = row.runner_id
            row.status = ErrandStatus.CANCELLED
            row.runner_id = None
            row.cancellation_reason = reason
            row.cancelled_by = actor_id
            row.cancelled_at = now

            if assigned_runner_id is not None:
                runner = await RunnerRepository(session).get_by_user_id_for_update(
                    assigned_runner_id
                )
                if runner is not None:
                    ledger.release(runner)

            errand = await self._hydrate(errands, errand_id)

        logger.info(
            "Errand cancelled errand_id=%s actor_id=%s previous_status=%s reason=%s",
            errand_id,
            actor_id,
            previous_status.value,
            reason or "No reason provided",
        )
        await self._notify(errand, actor_id)
        if role is ActorRole.RUNNER:
            await self._flag_suspicious(actor_id)
        return errand

    # ── Reads ─────────────────────────────────────────────────────

    def preview_earnings(
        self, base_price, category, urgency, distance=0
    ) -> FeeBreakdown:
        """Validated fee breakdown without touching the store."""
        return self.pricing.price(base_price, category, urgency, distance)

    async def get_errand(self, errand_id: int, user_id: int) -> Errand:
        async with self._transaction("get") as session:
            row = await ErrandRepository(session).get_with_details(errand_id)
            if row is None:
                raise ErrandNotFound("Errand not found")
            errand = to_errand(row)

        if errand.role_of(user_id) is None:
            raise NotAuthorized("Not authorized to view this errand")
        return errand

    async def fraud_warnings(self, user_id: int) -> list[str]:
        now = self.clock()
        async with self._transaction("fraud_check") as session:
            cancellations = await ErrandRepository(
                session
            ).count_cancellations_as_runner(
                user_id, now - self.limits.fraud_cancellation_window
            )
            reports = await ReportRepository(session).count_resolved_against_since(
                user_id, now - self.limits.fraud_report_window
            )
        return evaluate_fraud_patterns(cancellations, reports, self.limits)

    # ── Internals ─────────────────────────────────────────────────

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """One session, one transaction; store failures become retryable."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._apply_lock_timeout(session)
                    yield session
        except ErrandError as exc:
            logger.info("%s rejected: %s (%s)", operation, exc.code, exc.message)
            raise
        except (DBAPIError, PoolTimeoutError) as exc:
            logger.exception("Persistence failure during %s; rolled back", operation)
            raise PersistenceUnavailable(
                "The service is temporarily unavailable. Please retry."
            ) from exc

    async def _apply_lock_timeout(self, session: AsyncSession) -> None:
        if not self.lock_timeout_ms:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        await session.execute(
            text(f"SET LOCAL lock_timeout = '{int(self.lock_timeout_ms)}ms'")
        )

    @staticmethod
    async def _locked_for_runner(
        errands: ErrandRepository, errand_id: int, runner_id: int
    ) -> ErrandModel:
        row = await errands.get_for_update(errand_id)
        if row is None:
            raise ErrandNotFound("Errand not found")
        if row.runner_id is None or row.runner_id != runner_id:
            raise NotAssignedRunner("Not assigned to this errand")
        return row

    @staticmethod
    async def _hydrate(errands: ErrandRepository, errand_id: int) -> Errand:
        row = await errands.get_with_details(errand_id)
        if row is None:
            raise ErrandNotFound("Errand not found")
        return to_errand(row)

    async def _notify(self, errand: Errand, actor_id: int) -> None:
        event = LifecycleEvent(
            errand_id=errand.id,
            status=errand.status.value,
            actor_id=actor_id,
            timestamp=self.clock(),
        )
        try:
            await self.emitter.emit(event)
        except Exception:
            logger.exception(
                "Failed to dispatch %s event for errand %s", event.status, errand.id
            )

    async def _flag_suspicious(self, user_id: int) -> None:
        try:
            warnings = await self.fraud_warnings(user_id)
        except Exception:
            logger.exception("Fraud pattern check failed for user %s", user_id)
            return
        for warning in warnings:
            logger.warning("Fraud pattern for user %s: %s", user_id, warning)


def _fee_columns(breakdown: FeeBreakdown) -> dict:
    return {
        "base_price": breakdown.base_price,
        "final_price": breakdown.final_price,
        "platform_fee": breakdown.platform_fee,
        "runner_earnings": breakdown.runner_earnings,
        "distance_fee": breakdown.distance_fee,
        "urgency_fee": breakdown.urgency_fee,
    }
