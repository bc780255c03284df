"""FastAPI dependency injection helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header

from errandhub.config import settings
from errandhub.domain.enums import UserType
from errandhub.domain.errors import NotAuthorized
from errandhub.infrastructure.database import async_session_factory
from errandhub.infrastructure.events import redis_event_emitter
from errandhub.services.lifecycle import ErrandLifecycleEngine


@dataclass(frozen=True)
class Actor:
    """Identity verified upstream by the auth gateway."""

    user_id: int
    user_type: UserType


@lru_cache
def get_engine() -> ErrandLifecycleEngine:
    return ErrandLifecycleEngine.from_settings(
        async_session_factory, redis_event_emitter(), settings
    )


async def get_actor(
    x_user_id: int = Header(..., description="Verified user id from the auth gateway"),
    x_user_type: UserType = Header(UserType.CUSTOMER),
) -> Actor:
    return Actor(user_id=x_user_id, user_type=x_user_type)


async def get_runner_actor(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.user_type not in (UserType.RUNNER, UserType.BOTH):
        raise NotAuthorized("Runner account required")
    return actor
