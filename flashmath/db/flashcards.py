"""Helpers for working with flashcard persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from flashmath.study.srs import DEFAULT_EASE, ReviewEvent, SchedulerResult

from . import Flashcard, Review


CONTENT_TYPES = frozenset({"image", "latex"})
TIMER_PRESETS = {
    "1min": 60,
    "5min": 300,
    "10min": 600,
}
LLM_TIMER_MODE = "llm"
DEFAULT_TIMER_MODE = "5min"
DEFAULT_TIMER_SECONDS = TIMER_PRESETS[DEFAULT_TIMER_MODE]


def resolve_timer(timer_mode: Optional[str], timer_seconds: Optional[int]) -> tuple[str, int]:
    """Return a validated ``(timer_mode, timer_seconds)`` pair.

    Preset modes fall back to their preset duration when no explicit value is
    given. The ``llm`` mode carries a duration suggested by an external
    difficulty assessment, so it must always come with one.
    """
    mode = timer_mode or DEFAULT_TIMER_MODE
    if mode != LLM_TIMER_MODE and mode not in TIMER_PRESETS:
        raise ValueError(f"Unknown timer mode {mode!r}.")

    if timer_seconds is None:
        if mode == LLM_TIMER_MODE:
            raise ValueError("The llm timer mode requires an explicit timer_seconds value.")
        timer_seconds = TIMER_PRESETS[mode]

    if timer_seconds < 0:
        raise ValueError("timer_seconds must not be negative.")
    return mode, timer_seconds


def _check_content_type(value: Optional[str], field_name: str, *, required: bool) -> Optional[str]:
    if value is None:
        if required:
            raise ValueError(f"{field_name} is required.")
        return None
    if value not in CONTENT_TYPES:
        raise ValueError(f"{field_name} must be one of {sorted(CONTENT_TYPES)}, got {value!r}.")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


@dataclass(slots=True)
class FlashcardPayload:
    """Definition of a flashcard to be created."""

    question_type: str
    question_content: str
    folder_id: Optional[int] = None
    title: Optional[str] = None
    answer_type: Optional[str] = None
    answer_content: Optional[str] = None
    timer_mode: Optional[str] = None
    timer_seconds: Optional[int] = None

    def normalized(self) -> "FlashcardPayload":
        """Return a validated payload with whitespace stripped and timer defaults filled in."""
        question_content = self.question_content.strip()
        if not question_content:
            raise ValueError("question_content must not be empty.")
        timer_mode, timer_seconds = resolve_timer(self.timer_mode, self.timer_seconds)
        return FlashcardPayload(
            question_type=_check_content_type(self.question_type, "question_type", required=True),
            question_content=question_content,
            folder_id=self.folder_id,
            title=_strip_optional(self.title),
            answer_type=_check_content_type(self.answer_type, "answer_type", required=False),
            answer_content=_strip_optional(self.answer_content),
            timer_mode=timer_mode,
            timer_seconds=timer_seconds,
        )


@dataclass(slots=True)
class FlashcardUpdate:
    """Partial update of a flashcard's content or timer.

    Only the attributes listed in ``fields`` are applied, so optional columns
    can be cleared explicitly by passing ``None``.
    """

    title: Optional[str] = None
    question_type: Optional[str] = None
    question_content: Optional[str] = None
    answer_type: Optional[str] = None
    answer_content: Optional[str] = None
    timer_mode: Optional[str] = None
    timer_seconds: Optional[int] = None
    fields: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, **changes: object) -> "FlashcardUpdate":
        """Build an update from keyword arguments, remembering which were given."""
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown flashcard fields: {', '.join(sorted(unknown))}.")
        return cls(**changes, fields=frozenset(changes))  # type: ignore[arg-type]


_UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "question_type",
        "question_content",
        "answer_type",
        "answer_content",
        "timer_mode",
        "timer_seconds",
    }
)


async def create_flashcard(
    session: AsyncSession,
    payload: FlashcardPayload,
    now: Optional[datetime] = None,
) -> Flashcard:
    """Persist a new flashcard with fresh spaced-repetition state."""
    if now is None:
        now = datetime.now(timezone.utc)

    normalized = payload.normalized()
    flashcard = Flashcard(
        folder_id=normalized.folder_id,
        title=normalized.title,
        question_type=normalized.question_type,
        question_content=normalized.question_content,
        answer_type=normalized.answer_type,
        answer_content=normalized.answer_content,
        timer_mode=normalized.timer_mode,
        timer_seconds=normalized.timer_seconds,
        ease_factor=DEFAULT_EASE,
        interval_days=0.0,
        repetitions=0,
        due_date=None,
        last_reviewed=None,
        created_at=now,
        updated_at=now,
    )
    session.add(flashcard)
    await session.flush()
    return flashcard


async def get_flashcard(session: AsyncSession, flashcard_id: int) -> Optional[Flashcard]:
    return await session.get(Flashcard, flashcard_id)


async def list_flashcards(
    session: AsyncSession,
    folder_id: Optional[int] = None,
) -> Sequence[Flashcard]:
    """Return flashcards, newest first, optionally restricted to a folder."""
    stmt = select(Flashcard).order_by(Flashcard.created_at.desc(), Flashcard.id.desc())
    if folder_id is not None:
        stmt = stmt.where(Flashcard.folder_id == folder_id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def update_flashcard(
    session: AsyncSession,
    flashcard: Flashcard,
    changes: FlashcardUpdate,
) -> None:
    """Apply a partial update, validating content types and timer settings."""
    if not changes.fields:
        return

    if "question_type" in changes.fields:
        flashcard.question_type = _check_content_type(
            changes.question_type, "question_type", required=True
        )
    if "question_content" in changes.fields:
        content = (changes.question_content or "").strip()
        if not content:
            raise ValueError("question_content must not be empty.")
        flashcard.question_content = content
    if "answer_type" in changes.fields:
        flashcard.answer_type = _check_content_type(changes.answer_type, "answer_type", required=False)
    if "answer_content" in changes.fields:
        flashcard.answer_content = _strip_optional(changes.answer_content)
    if "title" in changes.fields:
        flashcard.title = _strip_optional(changes.title)
    if "timer_mode" in changes.fields or "timer_seconds" in changes.fields:
        mode = changes.timer_mode if "timer_mode" in changes.fields else flashcard.timer_mode
        # Switching to a preset without a duration picks the preset's duration.
        if "timer_seconds" in changes.fields:
            seconds = changes.timer_seconds
        elif mode == LLM_TIMER_MODE:
            seconds = flashcard.timer_seconds
        else:
            seconds = None
        flashcard.timer_mode, flashcard.timer_seconds = resolve_timer(mode, seconds)

    flashcard.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def move_flashcard(
    session: AsyncSession,
    flashcard: Flashcard,
    folder_id: Optional[int],
) -> None:
    flashcard.folder_id = folder_id
    flashcard.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def delete_flashcard(session: AsyncSession, flashcard: Flashcard) -> None:
    """Delete a flashcard together with its review history."""
    await session.execute(delete(Review).where(Review.flashcard_id == flashcard.id))
    await session.delete(flashcard)
    await session.flush()


async def get_due_flashcards(
    session: AsyncSession,
    folder_id: Optional[int] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> Sequence[Flashcard]:
    """Return flashcards due for review, never-reviewed and most overdue first."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    stmt = (
        select(Flashcard)
        .where(or_(Flashcard.due_date.is_(None), Flashcard.due_date <= now))
        .order_by(Flashcard.due_date.asc().nulls_first(), Flashcard.id)
    )
    if folder_id is not None:
        stmt = stmt.where(Flashcard.folder_id == folder_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_next_due_flashcard(
    session: AsyncSession,
    folder_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[Flashcard]:
    """Return the flashcard that should be studied next, if any is due."""
    due = await get_due_flashcards(session, folder_id=folder_id, now=now, limit=1)
    return due[0] if due else None


async def record_flashcard_review(
    session: AsyncSession,
    flashcard: Flashcard,
    review: ReviewEvent,
    result: SchedulerResult,
    now: Optional[datetime] = None,
) -> Review:
    """Write a computed schedule back to the flashcard and append its audit row."""
    if now is None:
        now = datetime.now(timezone.utc)

    record = Review(
        flashcard_id=flashcard.id,
        correct=review.correct,
        response_time_seconds=review.response_time_seconds,
        timer_limit_seconds=review.timer_limit_seconds,
        speed_ratio=result.speed_ratio,
        quality=result.quality,
        ease_before=flashcard.ease_factor,
        ease_after=result.ease_factor,
        interval_before=flashcard.interval_days,
        interval_after=result.interval_days,
        reviewed_at=now,
    )

    flashcard.ease_factor = result.ease_factor
    flashcard.interval_days = result.interval_days
    flashcard.repetitions = result.repetitions
    flashcard.due_date = result.due_at.astimezone(timezone.utc)
    flashcard.last_reviewed = now
    flashcard.updated_at = now

    session.add(record)
    await session.flush()
    return record


async def get_review_history(session: AsyncSession, flashcard_id: int) -> Sequence[Review]:
    """Return the audit rows of a flashcard, most recent first."""
    stmt = (
        select(Review)
        .where(Review.flashcard_id == flashcard_id)
        .order_by(Review.reviewed_at.desc(), Review.id.desc())
    )
    result = await session.execute(stmt)
    return result.scalars().all()
