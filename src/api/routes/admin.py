"""
Admin endpoints
===============

GET  /api/v1/admin/rides                -- search all rides with action history
POST /api/v1/admin/rides/{ride_id}/action -- approve / reject / cancel a PENDING ride
GET  /api/v1/admin/analytics            -- statistics over a local date range
GET  /api/v1/admin/dashboard            -- today / week / month summary
GET  /api/v1/admin/health               -- simple health check
"""

from datetime import date
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import (
    get_lifecycle,
    get_reporting,
    get_timezone,
    require_admin,
)
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    AnalyticsResponse,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    Pagination,
    RideActionRequest,
    RideDetailResponse,
    RideListResponse,
)
from src.config import settings
from src.domain.dates import normalize_range
from src.domain.enums import RideStatus
from src.infrastructure.models import UserModel
from src.infrastructure.repositories import RideFilter
from src.services.lifecycle import RideLifecycleService
from src.services.reporting import ReportingService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/rides",
    response_model=RideListResponse,
    summary="List all rides with filters and admin-action history",
)
@limiter.limit(RATE_LIMIT)
async def list_rides(
    request: Request,
    status: Optional[RideStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    tz: ZoneInfo = Depends(get_timezone),
    admin: UserModel = Depends(require_admin),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    filters = RideFilter(
        status=status,
        user_id=user_id,
        scheduled=normalize_range(start_date, end_date, tz),
        search=search,
    )
    result = await lifecycle.admin_list(filters, page=page, limit=limit)
    return RideListResponse(
        rides=[RideDetailResponse.model_validate(r) for r in result.items],
        pagination=Pagination.model_validate(result),
    )


@router.post(
    "/rides/{ride_id}/action",
    response_model=RideDetailResponse,
    summary="Approve, reject or cancel a pending ride",
    description=(
        "The status change and its audit record are written in one "
        "transaction.  Only PENDING rides can be acted upon."
    ),
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT)
async def act_on_ride(
    request: Request,
    ride_id: str,
    body: RideActionRequest,
    admin: UserModel = Depends(require_admin),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.admin_decide(admin, ride_id, body.action, body.reason)


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Ride statistics over an optional local date range",
)
@limiter.limit(RATE_LIMIT)
async def analytics(
    request: Request,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: ZoneInfo = Depends(get_timezone),
    admin: UserModel = Depends(require_admin),
    reporting: ReportingService = Depends(get_reporting),
):
    report = await reporting.analytics(
        tz,
        normalize_range(start_date, end_date, tz),
        limit=settings.top_requesters_limit,
    )
    return AnalyticsResponse.model_validate(report)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Dashboard summary with recent rides and actions",
)
@limiter.limit(RATE_LIMIT)
async def dashboard(
    request: Request,
    tz: ZoneInfo = Depends(get_timezone),
    admin: UserModel = Depends(require_admin),
    reporting: ReportingService = Depends(get_reporting),
):
    return DashboardResponse.model_validate(await reporting.dashboard_summary(tz))


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
