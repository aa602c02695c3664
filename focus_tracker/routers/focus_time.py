from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from focus_tracker.config import Settings, get_settings
from focus_tracker.database import get_db
from focus_tracker.dependencies import get_current_user
from focus_tracker.schemas.auth import AuthenticatedUser
from focus_tracker.schemas.focus_time import (
    DateQuery,
    FocusTimeCreate,
    FocusTimeDayCount,
    FocusTimeResponse,
)
from focus_tracker.services import focus_time_service, time_windows
from focus_tracker.validation import Invalid, invalid_response, parse_input

router = APIRouter(prefix="/focus-time", tags=["focus-time"])


@router.post("", response_model=FocusTimeResponse, status_code=201)
async def create_focus_time(
    payload: dict[str, Any] = Body(...),
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    parsed = parse_input(FocusTimeCreate, payload)
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    return await focus_time_service.create_focus_time(
        db,
        user.id,
        parsed.value.time_from,
        parsed.value.time_to,
        settings.tz,
    )


@router.get("", response_model=list[FocusTimeResponse])
async def list_focus_times(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """Focus times that started on the requested day, oldest first."""
    parsed = parse_input(DateQuery, dict(request.query_params))
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    window = time_windows.compute_day_window(parsed.value.date, settings.tz)
    return await focus_time_service.list_in_range(db, user.id, window.to_utc())


@router.get("/metrics", response_model=list[FocusTimeDayCount])
async def focus_time_metrics(
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """Per-day focus time counts for the month containing ``date``."""
    parsed = parse_input(DateQuery, dict(request.query_params))
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    window = time_windows.compute_month_window(parsed.value.date, settings.tz)
    return await focus_time_service.aggregate_by_day(db, user.id, window.to_utc(), settings.tz)
