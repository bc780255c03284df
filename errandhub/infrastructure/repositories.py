"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ``*_for_update`` methods issue
``SELECT ... FOR UPDATE`` and must be called inside an open transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    ErrandModel,
    ReportModel,
    RunnerModel,
    TransactionModel,
    UserModel,
)
from errandhub.domain.enums import ErrandStatus, ReportStatus


class ErrandRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, errand: ErrandModel) -> ErrandModel:
        self.session.add(errand)
        await self.session.flush()
        return errand

    async def get_for_update(self, errand_id: int) -> Optional[ErrandModel]:
        """Lock the errand row for the rest of the transaction."""
        result = await self.session.execute(
            select(ErrandModel)
            .where(ErrandModel.id == errand_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_with_details(self, errand_id: int) -> Optional[ErrandModel]:
        result = await self.session.execute(
            select(ErrandModel)
            .where(ErrandModel.id == errand_id)
            .options(
                selectinload(ErrandModel.customer),
                selectinload(ErrandModel.runner),
                selectinload(ErrandModel.transaction),
                selectinload(ErrandModel.review),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def claim(self, errand_id: int, runner_id: int, accepted_at: datetime) -> bool:
        """Compare-and-set assignment.  False if someone else won the race."""
        result = await self.session.execute(
            update(ErrandModel)
            .where(
                ErrandModel.id == errand_id,
                ErrandModel.status == ErrandStatus.PENDING,
                ErrandModel.runner_id.is_(None),
            )
            .values(
                runner_id=runner_id,
                accepted_by=runner_id,
                status=ErrandStatus.ACCEPTED,
                accepted_at=accepted_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def count_pending_for_customer(self, customer_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ErrandModel)
            .where(
                ErrandModel.customer_id == customer_id,
                ErrandModel.status == ErrandStatus.PENDING,
            )
        )
        return result.scalar() or 0

    async def count_accepted_since(self, runner_id: int, since: datetime) -> int:
        # accepted_by, not runner_id: accepts later cancelled still count
        result = await self.session.execute(
            select(func.count())
            .select_from(ErrandModel)
            .where(
                ErrandModel.accepted_by == runner_id,
                ErrandModel.accepted_at >= since,
            )
        )
        return result.scalar() or 0

    async def count_cancellations_as_customer(
        self, user_id: int, since: datetime
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ErrandModel)
            .where(
                ErrandModel.status == ErrandStatus.CANCELLED,
                ErrandModel.cancelled_by == user_id,
                ErrandModel.customer_id == user_id,
                ErrandModel.cancelled_at >= since,
            )
        )
        return result.scalar() or 0

    async def count_cancellations_as_runner(
        self, user_id: int, since: datetime
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ErrandModel)
            .where(
                ErrandModel.status == ErrandStatus.CANCELLED,
                ErrandModel.cancelled_by == user_id,
                ErrandModel.accepted_by == user_id,
                ErrandModel.cancelled_at >= since,
            )
        )
        return result.scalar() or 0


class RunnerRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id_for_update(self, user_id: int) -> Optional[RunnerModel]:
        result = await self.session.execute(
            select(RunnerModel)
            .where(RunnerModel.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_update(self, user_id: int) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()


class TransactionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, txn: TransactionModel) -> TransactionModel:
        self.session.add(txn)
        await self.session.flush()
        return txn


class ReportRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def count_resolved_against_since(self, user_id: int, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ReportModel)
            .where(
                ReportModel.reported_user_id == user_id,
                ReportModel.status == ReportStatus.RESOLVED,
                ReportModel.created_at >= since,
            )
        )
        return result.scalar() or 0
