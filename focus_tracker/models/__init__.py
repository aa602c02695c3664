from focus_tracker.models.base import Base
from focus_tracker.models.focus_time import FocusTime
from focus_tracker.models.habit import Habit, HabitCompletion

__all__ = [
    "Base",
    "FocusTime",
    "Habit",
    "HabitCompletion",
]
