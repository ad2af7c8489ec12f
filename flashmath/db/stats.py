"""Study statistics: due and overdue counts, today's accuracy and daily history."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import Flashcard, Review


@dataclass(slots=True)
class StudyStats:
    """Dashboard counters for all flashcards or a single folder."""

    total_cards: int
    due_today: int
    overdue: int
    reviewed_today: int
    accuracy_today: float


@dataclass(slots=True)
class DailyAccuracy:
    """Review volume and correctness for one UTC day."""

    day: date
    reviewed: int
    correct: int

    @property
    def accuracy(self) -> float:
        return self.correct / self.reviewed if self.reviewed else 0.0


def _utc(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)


def _reviews_in_folder(stmt: Select, folder_id: Optional[int]) -> Select:
    if folder_id is None:
        return stmt
    return stmt.join(Flashcard, Review.flashcard_id == Flashcard.id).where(
        Flashcard.folder_id == folder_id
    )


async def _count_cards(session: AsyncSession, folder_id: Optional[int], *conditions) -> int:
    stmt = select(func.count(Flashcard.id))
    if folder_id is not None:
        stmt = stmt.where(Flashcard.folder_id == folder_id)
    for condition in conditions:
        stmt = stmt.where(condition)
    return (await session.scalar(stmt)) or 0


async def get_study_stats(
    session: AsyncSession,
    folder_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> StudyStats:
    """Return due/overdue counts and today's review accuracy."""
    now = _utc(now)
    today_start = _start_of_day(now)

    total_cards = await _count_cards(session, folder_id)
    due_today = await _count_cards(
        session,
        folder_id,
        or_(Flashcard.due_date.is_(None), Flashcard.due_date <= now),
    )
    overdue = await _count_cards(session, folder_id, Flashcard.due_date < today_start)

    reviewed_stmt = _reviews_in_folder(
        select(func.count(Review.id)).where(Review.reviewed_at >= today_start),
        folder_id,
    )
    reviewed_today = (await session.scalar(reviewed_stmt)) or 0

    correct_stmt = _reviews_in_folder(
        select(func.count(Review.id)).where(
            Review.reviewed_at >= today_start,
            Review.correct.is_(True),
        ),
        folder_id,
    )
    correct_today = (await session.scalar(correct_stmt)) or 0

    return StudyStats(
        total_cards=total_cards,
        due_today=due_today,
        overdue=overdue,
        reviewed_today=reviewed_today,
        accuracy_today=correct_today / reviewed_today if reviewed_today else 0.0,
    )


async def get_accuracy_history(
    session: AsyncSession,
    days: int = 30,
    folder_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[DailyAccuracy]:
    """Return per-day review accuracy for the last ``days`` days, oldest first.

    Days without reviews are omitted.
    """
    if days < 1:
        raise ValueError("days must be a positive integer.")

    now = _utc(now)
    window_start = _start_of_day(now) - timedelta(days=days - 1)

    stmt = _reviews_in_folder(
        select(Review.reviewed_at, Review.correct)
        .where(Review.reviewed_at >= window_start)
        .order_by(Review.reviewed_at),
        folder_id,
    )
    result = await session.execute(stmt)

    buckets: "OrderedDict[date, DailyAccuracy]" = OrderedDict()
    for reviewed_at, correct in result.all():
        day = _utc(reviewed_at).date()
        bucket = buckets.get(day)
        if bucket is None:
            bucket = buckets[day] = DailyAccuracy(day=day, reviewed=0, correct=0)
        bucket.reviewed += 1
        if correct:
            bucket.correct += 1
    return list(buckets.values())
