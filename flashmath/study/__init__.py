"""Spaced-repetition scheduling for FlashMath reviews."""

from .srs import (
    CardState,
    DeadlineStatus,
    ReviewEvent,
    ReviewOutcome,
    SchedulerResult,
    compute_schedule,
)

__all__ = [
    "CardState",
    "DeadlineStatus",
    "ReviewEvent",
    "ReviewOutcome",
    "SchedulerResult",
    "compute_schedule",
]
