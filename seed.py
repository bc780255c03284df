"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 customers and 4 runner users (runner profiles approved)
  - 6 sample errands walked through the lifecycle engine
    (mix of PENDING, ACCEPTED, IN_PROGRESS, COMPLETED, CANCELLED)
"""

import asyncio
from decimal import Decimal

from sqlalchemy import text

from errandhub.config import settings
from errandhub.domain.entities import ErrandDetails
from errandhub.domain.enums import Category, Urgency, UserType
from errandhub.infrastructure.database import async_session_factory, engine
from errandhub.infrastructure.events import NullEventEmitter
from errandhub.infrastructure.models import RunnerModel, UserModel
from errandhub.services.lifecycle import ErrandLifecycleEngine


CUSTOMERS = [
    {"full_name": "Amina Mushi", "phone_number": "+255700000001"},
    {"full_name": "Baraka Said", "phone_number": "+255700000002"},
    {"full_name": "Neema Kimaro", "phone_number": "+255700000003"},
    {"full_name": "Juma Omari", "phone_number": "+255700000004"},
    {"full_name": "Rehema Ally", "phone_number": "+255700000005"},
    {"full_name": "Zawadi Mollel", "phone_number": "+255700000006"},
]

RUNNERS = [
    {"full_name": "Hassan Mrisho", "phone_number": "+255710000001", "rating": 4.8},
    {"full_name": "Grace Massawe", "phone_number": "+255710000002", "rating": 4.6},
    {"full_name": "Daudi Lyimo", "phone_number": "+255710000003", "rating": 4.9},
    {"full_name": "Fatma Hamisi", "phone_number": "+255710000004", "rating": 4.4},
]

ERRANDS = [
    ("Pick up lunch from the canteen", Category.FOOD_DELIVERY, Urgency.URGENT, "4500", 1.2),
    ("Print and bind assignment", Category.DOCUMENTS, Urgency.STANDARD, "3000", 0.8),
    ("Buy groceries at Shoppers", Category.SHOPPING, Urgency.STANDARD, "15000", 3.5),
    ("Deliver parcel to hostel B", Category.DELIVERY, Urgency.ASAP, "2500", 2.0),
    ("Collect laundry", Category.OTHER, Urgency.STANDARD, "2000", 1.0),
    ("Drop off library books", Category.DELIVERY, Urgency.STANDARD, "1500", 0.5),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        customers = [
            UserModel(user_type=UserType.CUSTOMER, **c) for c in CUSTOMERS
        ]
        runner_users = [
            UserModel(
                full_name=r["full_name"],
                phone_number=r["phone_number"],
                user_type=UserType.RUNNER,
            )
            for r in RUNNERS
        ]
        session.add_all(customers + runner_users)
        await session.flush()
        print(f"  Created {len(customers)} customers, {len(runner_users)} runner users")

        # ── Runner profiles ───────────────────────────────────────────
        for user, r in zip(runner_users, RUNNERS):
            session.add(
                RunnerModel(
                    user_id=user.id,
                    is_available=True,
                    is_approved=True,
                    rating=r["rating"],
                )
            )
        await session.commit()
        customer_ids = [c.id for c in customers]
        runner_ids = [r.id for r in runner_users]
        print(f"  Created {len(runner_ids)} runner profiles")

    # ── Errands (through the engine so fees and ledger stay consistent)
    lifecycle = ErrandLifecycleEngine.from_settings(
        async_session_factory, NullEventEmitter(), settings
    )
    created = []
    for customer_id, (title, category, urgency, budget, distance) in zip(
        customer_ids, ERRANDS
    ):
        errand = await lifecycle.create(
            customer_id,
            ErrandDetails(
                title=title,
                category=category,
                urgency=urgency,
                location_from="Main Campus Gate",
                location_to="Hall 5",
                base_price=Decimal(budget),
                distance_km=distance,
            ),
        )
        created.append(errand)
    print(f"  Created {len(created)} errands")

    # errand 0: completed, errand 1: in progress, errand 2: accepted,
    # errand 3: cancelled by customer, errands 4-5: pending
    await lifecycle.accept(created[0].id, runner_ids[0])
    await lifecycle.start(created[0].id, runner_ids[0])
    await lifecycle.complete(created[0].id, runner_ids[0])

    await lifecycle.accept(created[1].id, runner_ids[1])
    await lifecycle.start(created[1].id, runner_ids[1])

    await lifecycle.accept(created[2].id, runner_ids[2])

    await lifecycle.cancel(created[3].id, customer_ids[3], "Changed my mind")
    print("  Walked sample errands through the lifecycle")

    await engine.dispose()
    print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
