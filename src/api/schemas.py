"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.enums import AdminActionType, RideStatus, UserRole


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    pickup_location: str = Field(..., min_length=5, max_length=255)
    drop_location: str = Field(..., min_length=5, max_length=255)
    scheduled_time: dt.datetime = Field(
        ..., description="ISO-8601; naive values are read as UTC."
    )
    purpose: Optional[str] = Field(None, min_length=5, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)

    model_config = {"str_strip_whitespace": True}


class RideUpdateRequest(BaseModel):
    pickup_location: Optional[str] = Field(None, min_length=5, max_length=255)
    drop_location: Optional[str] = Field(None, min_length=5, max_length=255)
    scheduled_time: Optional[dt.datetime] = None
    purpose: Optional[str] = Field(None, min_length=5, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)

    model_config = {"str_strip_whitespace": True}


class RideActionRequest(BaseModel):
    action: str = Field(..., description="APPROVE, REJECT or CANCEL")
    reason: Optional[str] = Field(None, min_length=5, max_length=500)

    model_config = {"str_strip_whitespace": True}


class BulkCompleteRequest(BaseModel):
    ride_ids: list[str] = Field(..., min_length=1)


# ── Responses ─────────────────────────────────────────────────────────


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    company: Optional[str] = None
    role: Optional[UserRole] = None

    model_config = {"from_attributes": True}


class AdminSummary(BaseModel):
    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class RideResponse(BaseModel):
    id: str
    user_id: str
    pickup_location: str
    drop_location: str
    scheduled_time: dt.datetime
    purpose: Optional[str] = None
    notes: Optional[str] = None
    status: RideStatus
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class AdminActionResponse(BaseModel):
    id: str
    ride_id: str
    action: AdminActionType
    reason: Optional[str] = None
    created_at: dt.datetime
    admin: Optional[AdminSummary] = None

    model_config = {"from_attributes": True}


class AdminActionWithRide(AdminActionResponse):
    ride: Optional[RideResponse] = None


class RideDetailResponse(RideResponse):
    admin_actions: list[AdminActionResponse] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    model_config = {"from_attributes": True}


class RideListResponse(BaseModel):
    rides: list[RideDetailResponse]
    pagination: Pagination


class EligibleRidesResponse(BaseModel):
    eligible_rides: list[RideResponse]
    count: int


class BulkCompletionResponse(BaseModel):
    message: str
    completed_rides: list[RideDetailResponse]
    count: int
    skipped: list[str] = []


# ── Reporting ─────────────────────────────────────────────────────────


class StatusCountResponse(BaseModel):
    status: RideStatus
    count: int

    model_config = {"from_attributes": True}


class DailyCountResponse(BaseModel):
    date: dt.date
    count: int

    model_config = {"from_attributes": True}


class TopUserResponse(BaseModel):
    user: UserSummary
    ride_count: int

    model_config = {"from_attributes": True}


class AnalyticsResponse(BaseModel):
    total_rides: int
    rides_by_status: list[StatusCountResponse]
    rides_per_day: list[DailyCountResponse]
    top_users: list[TopUserResponse]
    recent_admin_actions: list[AdminActionWithRide]

    model_config = {"from_attributes": True}


class DashboardSummaryResponse(BaseModel):
    today_rides: int
    week_rides: int
    month_rides: int
    total_rides: int
    pending_rides: int
    approved_rides: int

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    summary: DashboardSummaryResponse
    recent_rides: list[RideResponse]
    recent_actions: list[AdminActionWithRide]

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
