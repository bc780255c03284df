"""
Admin / observability endpoints
===============================

GET /api/v1/admin/users/{user_id}/fraud-warnings -- fraud-pattern heuristics
GET /api/v1/admin/health                         -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from errandhub.api.dependencies import get_engine
from errandhub.api.middleware import limiter
from errandhub.api.schemas import FraudWarningsResponse, HealthResponse
from errandhub.services.lifecycle import ErrandLifecycleEngine

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/users/{user_id}/fraud-warnings",
    response_model=FraudWarningsResponse,
    summary="Suspicious activity warnings for a user",
)
@limiter.limit("100/minute")
async def get_fraud_warnings(
    request: Request,
    user_id: int,
    engine: ErrandLifecycleEngine = Depends(get_engine),
):
    warnings = await engine.fraud_warnings(user_id)
    return FraudWarningsResponse(user_id=user_id, warnings=warnings)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
