"""Workflow for grading a flashcard review and persisting the new schedule."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flashmath.db import Flashcard, Folder
from flashmath.db.flashcards import get_next_due_flashcard, record_flashcard_review
from flashmath.study.srs import (
    MATURE_REPETITIONS,
    CardState,
    DeadlineStatus,
    ReviewEvent,
    SchedulerResult,
    compute_schedule,
    format_timestamp,
)


LOGGER = logging.getLogger(__name__)


class FlashcardNotFoundError(LookupError):
    """Raised when a review is submitted for a flashcard that does not exist."""


def card_state_of(flashcard: Flashcard) -> CardState:
    """Snapshot the spaced-repetition columns of a stored flashcard."""
    return CardState(
        ease_factor=flashcard.ease_factor,
        interval_days=flashcard.interval_days,
        repetitions=flashcard.repetitions,
        due_date=format_timestamp(flashcard.due_date) if flashcard.due_date else None,
    )


class ReviewWorkflow:
    """Coordinates scheduling and database persistence for review submissions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        mature_repetitions: int = MATURE_REPETITIONS,
    ) -> None:
        self._session_factory = session_factory
        self._mature_repetitions = mature_repetitions

    async def submit(
        self,
        flashcard_id: int,
        correct: bool,
        response_time_seconds: float,
        now: Optional[datetime] = None,
    ) -> SchedulerResult:
        """Grade a review, update the card's schedule and append the audit row."""
        if response_time_seconds < 0:
            raise ValueError("response_time_seconds must not be negative.")
        if now is None:
            now = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            async with session.begin():
                flashcard = await session.get(Flashcard, flashcard_id, with_for_update=True)
                if flashcard is None:
                    raise FlashcardNotFoundError(f"Flashcard {flashcard_id} not found.")

                deadline = await self._folder_deadline(session, flashcard)
                review = ReviewEvent(
                    correct=correct,
                    response_time_seconds=response_time_seconds,
                    timer_limit_seconds=flashcard.timer_seconds,
                )
                result = compute_schedule(
                    card_state_of(flashcard),
                    review,
                    deadline=deadline,
                    now=now,
                    mature_repetitions=self._mature_repetitions,
                )
                await record_flashcard_review(session, flashcard, review, result, now=now)

        self._log_deadline_status(flashcard_id, deadline, result.deadline_status)
        LOGGER.info(
            "Reviewed flashcard %s: %s (quality %s), next review in %.2f days at %s.",
            flashcard_id,
            result.outcome.value,
            result.quality,
            result.interval_days,
            result.due_date,
        )
        return result

    async def next_card(
        self,
        folder_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Flashcard]:
        """Return the flashcard that should be studied next, if any is due."""
        async with self._session_factory() as session:
            return await get_next_due_flashcard(session, folder_id=folder_id, now=now)

    @staticmethod
    async def _folder_deadline(session: AsyncSession, flashcard: Flashcard) -> Optional[str]:
        if flashcard.folder_id is None:
            return None
        folder = await session.get(Folder, flashcard.folder_id)
        return folder.deadline if folder is not None else None

    @staticmethod
    def _log_deadline_status(
        flashcard_id: int,
        deadline: Optional[str],
        status: DeadlineStatus,
    ) -> None:
        if status is DeadlineStatus.INVALID:
            LOGGER.warning(
                "Ignoring unreadable deadline %r for flashcard %s.", deadline, flashcard_id
            )
        elif status is DeadlineStatus.PASSED:
            LOGGER.debug("Deadline %s for flashcard %s has passed.", deadline, flashcard_id)
