"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from errandhub.domain.enums import (
    Category,
    ErrandStatus,
    PaymentMethod,
    PaymentStatus,
    Urgency,
    UserType,
)


# ── Requests ──────────────────────────────────────────────────────────


class ErrandCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    category: Category
    urgency: Urgency = Urgency.STANDARD
    location_from: str = Field(..., min_length=1, max_length=255)
    location_to: str = Field(..., min_length=1, max_length=255)
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    distance: float = Field(0.0, ge=0, le=500)
    estimated_duration_min: Optional[int] = Field(None, ge=1, le=24 * 60)


class PricingPreviewRequest(BaseModel):
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: Category
    urgency: Urgency = Urgency.STANDARD
    distance: float = Field(0.0, ge=0, le=500)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# ── Responses ─────────────────────────────────────────────────────────


class UserSummaryResponse(BaseModel):
    id: int
    full_name: str
    phone_number: Optional[str] = None
    user_type: UserType

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: int
    amount: Decimal
    base_amount: Decimal
    platform_fee: Decimal
    runner_earnings: Decimal
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReviewResponse(BaseModel):
    id: int
    reviewer_id: int
    rating: int
    comment: Optional[str] = None

    model_config = {"from_attributes": True}


class ErrandResponse(BaseModel):
    id: int
    customer_id: int
    runner_id: Optional[int] = None
    accepted_by: Optional[int] = None
    title: str
    description: Optional[str] = None
    category: Category
    urgency: Urgency
    location_from: str
    location_to: str
    distance_km: float
    estimated_duration_min: Optional[int] = None
    base_price: Decimal
    final_price: Decimal
    platform_fee: Decimal
    runner_earnings: Decimal
    distance_fee: Decimal
    urgency_fee: Decimal
    status: ErrandStatus
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    created_at: Optional[datetime] = None
    customer: Optional[UserSummaryResponse] = None
    runner: Optional[UserSummaryResponse] = None
    transaction: Optional[TransactionResponse] = None
    review: Optional[ReviewResponse] = None

    model_config = {"from_attributes": True}


class FeeBreakdownResponse(BaseModel):
    base_price: Decimal
    urgency_fee: Decimal
    distance_fee: Decimal
    platform_fee: Decimal
    runner_earnings: Decimal
    final_price: Decimal

    model_config = {"from_attributes": True}


class FraudWarningsResponse(BaseModel):
    user_id: int
    warnings: list[str] = []


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    code: str
    message: str
