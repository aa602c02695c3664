import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from focus_tracker.config import Settings, get_settings
from focus_tracker.database import get_db
from focus_tracker.dependencies import get_current_user
from focus_tracker.schemas.auth import AuthenticatedUser
from focus_tracker.schemas.focus_time import DateQuery
from focus_tracker.schemas.habit import (
    HabitCreate,
    HabitMetricsResponse,
    HabitResponse,
    ToggleQuery,
)
from focus_tracker.services import habit_service, time_windows
from focus_tracker.validation import Invalid, invalid_response, parse_input

router = APIRouter(prefix="/habits", tags=["habits"])


@router.post("", response_model=HabitResponse, status_code=201)
async def create_habit(
    payload: dict[str, Any] = Body(...),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    parsed = parse_input(HabitCreate, payload)
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    return await habit_service.create_habit(db, user.id, parsed.value.name)


@router.get("", response_model=list[HabitResponse])
async def list_habits(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await habit_service.get_habits(db, user.id)


@router.get("/{habit_id}/metrics", response_model=HabitMetricsResponse)
async def habit_metrics(
    habit_id: uuid.UUID,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """Number of days the habit was completed in the month containing ``date``."""
    parsed = parse_input(DateQuery, dict(request.query_params))
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    habit = await habit_service.get_habit(db, user.id, habit_id)
    if habit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")

    window = time_windows.compute_month_window(parsed.value.date, settings.tz)
    count = await habit_service.count_completions(db, habit, window)
    return HabitMetricsResponse(id=habit.id, name=habit.name, completed_dates_per_month=count)


@router.delete("/{habit_id}", status_code=204)
async def delete_habit(
    habit_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await habit_service.delete_habit(db, user.id, habit_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")


@router.patch("/{habit_id}/toggle", response_model=HabitResponse)
async def toggle_habit(
    habit_id: uuid.UUID,
    request: Request,
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """Flip completion of the habit for ``date`` (today when omitted)."""
    parsed = parse_input(ToggleQuery, dict(request.query_params))
    if isinstance(parsed, Invalid):
        return invalid_response(parsed)

    moment = parsed.value.date or datetime.now(settings.tz)
    day = time_windows.localize(moment, settings.tz).date()

    habit = await habit_service.toggle_completion(db, user.id, habit_id, day)
    if habit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    return habit
