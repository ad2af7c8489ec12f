from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from flashmath.db import Review
from flashmath.db.flashcards import FlashcardPayload, create_flashcard
from flashmath.db.folders import create_folder
from flashmath.db.stats import DailyAccuracy, get_accuracy_history, get_study_stats


NOW = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


def _review(flashcard_id: int, correct: bool, reviewed_at: datetime) -> Review:
    return Review(
        flashcard_id=flashcard_id,
        correct=correct,
        response_time_seconds=30.0,
        timer_limit_seconds=60.0,
        speed_ratio=0.5,
        quality=5 if correct else 0,
        ease_before=2.5,
        ease_after=2.65 if correct else 2.3,
        interval_before=0.0,
        interval_after=1.0,
        reviewed_at=reviewed_at,
    )


async def _seed(session_factory) -> tuple[int, int, int]:
    """Create two folders with cards in every due state and a spread of reviews."""
    async with session_factory() as session:
        async with session.begin():
            calculus = await create_folder(session, "Calculus")
            algebra = await create_folder(session, "Algebra")

            def payload(folder_id: int) -> FlashcardPayload:
                return FlashcardPayload(question_type="latex", question_content="x", folder_id=folder_id)

            fresh = await create_flashcard(session, payload(calculus.id), now=NOW)
            overdue = await create_flashcard(session, payload(calculus.id), now=NOW)
            due_this_morning = await create_flashcard(session, payload(calculus.id), now=NOW)
            upcoming = await create_flashcard(session, payload(algebra.id), now=NOW)

            overdue.due_date = NOW - timedelta(days=2)
            due_this_morning.due_date = NOW - timedelta(hours=6)
            upcoming.due_date = NOW + timedelta(days=3)

            session.add_all(
                [
                    _review(overdue.id, True, NOW - timedelta(hours=1)),
                    _review(overdue.id, False, NOW - timedelta(hours=2)),
                    _review(due_this_morning.id, True, NOW - timedelta(hours=3)),
                    _review(upcoming.id, True, NOW - timedelta(hours=4)),
                    _review(upcoming.id, False, NOW - timedelta(days=1)),
                    _review(upcoming.id, True, NOW - timedelta(days=3)),
                    _review(fresh.id, False, NOW - timedelta(days=3, hours=1)),
                    _review(fresh.id, True, NOW - timedelta(days=40)),
                ]
            )
    return calculus.id, algebra.id, fresh.id


@pytest.mark.asyncio
async def test_study_stats_counts_due_overdue_and_accuracy(session_factory) -> None:
    await _seed(session_factory)

    async with session_factory() as session:
        stats = await get_study_stats(session, now=NOW)

    assert stats.total_cards == 4
    assert stats.due_today == 3
    assert stats.overdue == 1
    assert stats.reviewed_today == 4
    assert stats.accuracy_today == pytest.approx(0.75)


@pytest.mark.asyncio
async def test_study_stats_scoped_to_folder(session_factory) -> None:
    calculus_id, algebra_id, _ = await _seed(session_factory)

    async with session_factory() as session:
        calculus = await get_study_stats(session, folder_id=calculus_id, now=NOW)
        algebra = await get_study_stats(session, folder_id=algebra_id, now=NOW)

    assert (calculus.total_cards, calculus.due_today, calculus.overdue) == (3, 3, 1)
    assert calculus.reviewed_today == 3
    assert calculus.accuracy_today == pytest.approx(2 / 3)

    assert (algebra.total_cards, algebra.due_today, algebra.overdue) == (1, 0, 0)
    assert algebra.reviewed_today == 1
    assert algebra.accuracy_today == 1.0


@pytest.mark.asyncio
async def test_study_stats_on_empty_database(session_factory) -> None:
    async with session_factory() as session:
        stats = await get_study_stats(session, now=NOW)

    assert stats.total_cards == 0
    assert stats.reviewed_today == 0
    assert stats.accuracy_today == 0.0


@pytest.mark.asyncio
async def test_accuracy_history_groups_by_day(session_factory) -> None:
    calculus_id, _, _ = await _seed(session_factory)

    async with session_factory() as session:
        history = await get_accuracy_history(session, days=7, now=NOW)
        calculus_history = await get_accuracy_history(session, days=7, folder_id=calculus_id, now=NOW)

    assert history == [
        DailyAccuracy(day=date(2025, 3, 7), reviewed=2, correct=1),
        DailyAccuracy(day=date(2025, 3, 9), reviewed=1, correct=0),
        DailyAccuracy(day=date(2025, 3, 10), reviewed=4, correct=3),
    ]
    assert history[-1].accuracy == pytest.approx(0.75)
    assert [(item.day, item.reviewed) for item in calculus_history] == [
        (date(2025, 3, 7), 1),
        (date(2025, 3, 10), 3),
    ]


@pytest.mark.asyncio
async def test_accuracy_history_rejects_empty_window(session_factory) -> None:
    async with session_factory() as session:
        with pytest.raises(ValueError):
            await get_accuracy_history(session, days=0, now=NOW)
