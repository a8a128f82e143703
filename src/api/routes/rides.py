"""
Ride endpoints (requester self-service)
=======================================

POST   /api/v1/rides           -- create a ride request (201)
GET    /api/v1/rides/my-rides  -- list the caller's rides
GET    /api/v1/rides/{ride_id} -- get one of the caller's rides
PUT    /api/v1/rides/{ride_id} -- edit a PENDING ride
DELETE /api/v1/rides/{ride_id} -- cancel a PENDING or APPROVED ride
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_current_user, get_lifecycle
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    ErrorResponse,
    Pagination,
    RideCreateRequest,
    RideDetailResponse,
    RideListResponse,
    RideUpdateRequest,
)
from src.domain.enums import RideStatus
from src.infrastructure.models import UserModel
from src.services.lifecycle import RideLifecycleService

router = APIRouter(prefix="/rides", tags=["rides"])


@router.post(
    "",
    status_code=201,
    response_model=RideDetailResponse,
    summary="Create a ride request",
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    user: UserModel = Depends(get_current_user),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.create(
        user,
        pickup_location=body.pickup_location,
        drop_location=body.drop_location,
        scheduled_time=body.scheduled_time,
        purpose=body.purpose,
        notes=body.notes,
    )


@router.get(
    "/my-rides",
    response_model=RideListResponse,
    summary="List the caller's rides, newest scheduled first",
)
@limiter.limit(RATE_LIMIT)
async def list_my_rides(
    request: Request,
    status: Optional[RideStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserModel = Depends(get_current_user),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    result = await lifecycle.list_own(user, status=status, page=page, limit=limit)
    return RideListResponse(
        rides=[RideDetailResponse.model_validate(r) for r in result.items],
        pagination=Pagination.model_validate(result),
    )


@router.get(
    "/{ride_id}",
    response_model=RideDetailResponse,
    summary="Get one of the caller's rides with its admin history",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_ride(
    request: Request,
    ride_id: str,
    user: UserModel = Depends(get_current_user),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.get_own(user, ride_id)


@router.put(
    "/{ride_id}",
    response_model=RideDetailResponse,
    summary="Edit a pending ride",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT)
async def update_ride(
    request: Request,
    ride_id: str,
    body: RideUpdateRequest,
    user: UserModel = Depends(get_current_user),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.requester_update(
        user, ride_id, body.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{ride_id}",
    response_model=RideDetailResponse,
    summary="Cancel a ride",
    description=(
        "Transitions a PENDING or APPROVED ride to CANCELLED. "
        "Self-service cancellation is not recorded in the admin audit log."
    ),
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def cancel_ride(
    request: Request,
    ride_id: str,
    user: UserModel = Depends(get_current_user),
    lifecycle: RideLifecycleService = Depends(get_lifecycle),
):
    return await lifecycle.requester_cancel(user, ride_id)
