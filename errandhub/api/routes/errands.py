"""
Errand endpoints
================

POST /api/v1/errands                    -- create an errand (customer)
POST /api/v1/errands/preview-pricing    -- fee breakdown without saving
GET  /api/v1/errands/{errand_id}        -- errand with customer/runner/transaction/review
POST /api/v1/errands/{errand_id}/accept   -- claim a pending errand (runner)
POST /api/v1/errands/{errand_id}/start    -- accepted -> in_progress (assigned runner)
POST /api/v1/errands/{errand_id}/complete -- in_progress -> completed (assigned runner)
POST /api/v1/errands/{errand_id}/cancel   -- cancel (customer or assigned runner)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from errandhub.api.dependencies import Actor, get_actor, get_engine, get_runner_actor
from errandhub.api.middleware import limiter
from errandhub.api.schemas import (
    CancelRequest,
    ErrandCreateRequest,
    ErrandResponse,
    ErrorResponse,
    FeeBreakdownResponse,
    PricingPreviewRequest,
)
from errandhub.domain.entities import ErrandDetails
from errandhub.services.lifecycle import ErrandLifecycleEngine

router = APIRouter(prefix="/errands", tags=["errands"])

_errors = {
    status: {"model": ErrorResponse} for status in (400, 403, 404, 409, 429, 500)
}


@router.post(
    "",
    status_code=201,
    response_model=ErrandResponse,
    summary="Create an errand",
    responses=_errors,
)
@limiter.limit("30/minute")
async def create_errand(
    request: Request,
    body: ErrandCreateRequest,
    actor: Actor = Depends(get_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    details = ErrandDetails(
        title=body.title,
        description=body.description,
        category=body.category,
        urgency=body.urgency,
        location_from=body.location_from,
        location_to=body.location_to,
        base_price=body.budget,
        distance_km=body.distance,
        estimated_duration_min=body.estimated_duration_min,
    )
    return await engine.create(actor.user_id, details)


@router.post(
    "/preview-pricing",
    response_model=FeeBreakdownResponse,
    summary="Preview the fee breakdown for an errand",
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit("100/minute")
async def preview_pricing(
    request: Request,
    body: PricingPreviewRequest,
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    return engine.preview_earnings(
        body.budget, body.category, body.urgency, body.distance
    )


@router.get(
    "/{errand_id}",
    response_model=ErrandResponse,
    summary="Get an errand",
    responses=_errors,
)
@limiter.limit("100/minute")
async def get_errand(
    request: Request,
    errand_id: int,
    actor: Actor = Depends(get_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    return await engine.get_errand(errand_id, actor.user_id)


@router.post(
    "/{errand_id}/accept",
    response_model=ErrandResponse,
    summary="Accept a pending errand",
    description=(
        "Exactly one runner wins when several accept the same errand; "
        "the others receive 409."
    ),
    responses=_errors,
)
@limiter.limit("60/minute")
async def accept_errand(
    request: Request,
    errand_id: int,
    actor: Actor = Depends(get_runner_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    return await engine.accept(errand_id, actor.user_id)


@router.post(
    "/{errand_id}/start",
    response_model=ErrandResponse,
    summary="Start an accepted errand",
    responses=_errors,
)
@limiter.limit("60/minute")
async def start_errand(
    request: Request,
    errand_id: int,
    actor: Actor = Depends(get_runner_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    return await engine.start(errand_id, actor.user_id)


@router.post(
    "/{errand_id}/complete",
    response_model=ErrandResponse,
    summary="Complete an in-progress errand",
    responses=_errors,
)
@limiter.limit("60/minute")
async def complete_errand(
    request: Request,
    errand_id: int,
    actor: Actor = Depends(get_runner_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    return await engine.complete(errand_id, actor.user_id)


@router.post(
    "/{errand_id}/cancel",
    response_model=ErrandResponse,
    summary="Cancel an errand",
    description=(
        "Customers may cancel pending or accepted errands; the assigned "
        "runner may cancel accepted or in-progress errands."
    ),
    responses=_errors,
)
@limiter.limit("30/minute")
async def cancel_errand(
    request: Request,
    errand_id: int,
    body: Optional[CancelRequest] = None,
    actor: Actor = Depends(get_actor),
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    reason = body.reason if body else None
    return await engine.cancel(errand_id, actor.user_id, reason)
