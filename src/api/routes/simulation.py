"""
Simulation endpoints (admin only)
=================================

GET  /api/v1/simulation/rides/eligible-for-completion -- overdue APPROVED rides
POST /api/v1/simulation/rides/{ride_id}/complete      -- complete one ride
POST /api/v1/simulation/rides/bulk-complete           -- complete many rides
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_simulator, require_admin
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    BulkCompleteRequest,
    BulkCompletionResponse,
    EligibleRidesResponse,
    ErrorResponse,
    RideDetailResponse,
    RideResponse,
)
from src.infrastructure.models import UserModel
from src.services.simulation import CompletionSimulator

router = APIRouter(prefix="/simulation", tags=["simulation"])


@router.get(
    "/rides/eligible-for-completion",
    response_model=EligibleRidesResponse,
    summary="APPROVED rides whose scheduled time has passed",
)
@limiter.limit(RATE_LIMIT)
async def eligible_for_completion(
    request: Request,
    admin: UserModel = Depends(require_admin),
    simulator: CompletionSimulator = Depends(get_simulator),
):
    rides = await simulator.eligible_for_completion()
    return EligibleRidesResponse(
        eligible_rides=[RideResponse.model_validate(r) for r in rides],
        count=len(rides),
    )


@router.post(
    "/rides/bulk-complete",
    response_model=BulkCompletionResponse,
    summary="Complete every APPROVED ride among the given ids",
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def bulk_complete(
    request: Request,
    body: BulkCompleteRequest,
    admin: UserModel = Depends(require_admin),
    simulator: CompletionSimulator = Depends(get_simulator),
):
    result = await simulator.simulate_bulk_completion(admin, body.ride_ids)
    return BulkCompletionResponse(
        message=f"Successfully completed {result.count} rides (simulation)",
        completed_rides=[RideDetailResponse.model_validate(r) for r in result.completed],
        count=result.count,
        skipped=result.skipped,
    )


@router.post(
    "/rides/{ride_id}/complete",
    response_model=RideDetailResponse,
    summary="Complete one APPROVED ride",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def complete_ride(
    request: Request,
    ride_id: str,
    admin: UserModel = Depends(require_admin),
    simulator: CompletionSimulator = Depends(get_simulator),
):
    return await simulator.simulate_completion(admin, ride_id)
