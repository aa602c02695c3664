import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from focus_tracker.models.habit import Habit, HabitCompletion
from focus_tracker.services.time_windows import TimeWindow

logger = logging.getLogger(__name__)


async def get_habit(
    db: AsyncSession, user_id: str, habit_id: uuid.UUID
) -> Habit | None:
    """Load a habit with its completions, or None when the caller does not own it."""
    result = await db.execute(
        select(Habit)
        .options(selectinload(Habit.completions))
        .where(Habit.id == habit_id, Habit.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_habits(db: AsyncSession, user_id: str) -> list[Habit]:
    result = await db.execute(
        select(Habit)
        .options(selectinload(Habit.completions))
        .where(Habit.user_id == user_id)
        .order_by(Habit.created_at.asc())
    )
    return list(result.scalars().all())


async def create_habit(db: AsyncSession, user_id: str, name: str) -> Habit:
    habit = Habit(user_id=user_id, name=name, completions=[])
    db.add(habit)
    await db.flush()
    await db.refresh(habit, attribute_names=["created_at", "updated_at"])
    return habit


async def delete_habit(db: AsyncSession, user_id: str, habit_id: uuid.UUID) -> bool:
    habit = await get_habit(db, user_id, habit_id)
    if habit is None:
        return False

    await db.delete(habit)
    await db.flush()
    logger.info("Deleted habit %s for user %s", habit_id, user_id)
    return True


async def toggle_completion(
    db: AsyncSession, user_id: str, habit_id: uuid.UUID, day: date
) -> Habit | None:
    """Mark ``day`` as completed, or clear it when it already is."""
    habit = await get_habit(db, user_id, habit_id)
    if habit is None:
        return None

    existing = next((c for c in habit.completions if c.completed_on == day), None)
    if existing is not None:
        habit.completions.remove(existing)
    else:
        habit.completions.append(HabitCompletion(completed_on=day))
    habit.updated_at = datetime.now(timezone.utc)

    await db.flush()
    return habit


async def count_completions(
    db: AsyncSession, habit: Habit, window: TimeWindow
) -> int:
    result = await db.execute(
        select(func.count(HabitCompletion.id)).where(
            HabitCompletion.habit_id == habit.id,
            HabitCompletion.completed_on >= window.first_day,
            HabitCompletion.completed_on <= window.last_day,
        )
    )
    return result.scalar_one()
