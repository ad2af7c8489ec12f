"""Spaced-repetition scheduling for timed flashcard reviews.

The scheduler is an SM-2 variant that grades a review from its correctness and
from how quickly the learner answered relative to the card's timer. Fast
correct answers grow the interval faster than slow ones. When the card's folder
has a deadline, intervals are compressed so the remaining reviews still fit
before that date.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Union


MIN_EASE = 1.3
DEFAULT_EASE = 2.5
MATURE_REPETITIONS = 6
FAST_SPEED_RATIO = 0.6
NORMAL_SPEED_RATIO = 1.0
DEADLINE_FORMAT = "%Y-%m-%d"
LATEST_DUE_AT = datetime.max.replace(tzinfo=timezone.utc)

Deadline = Union[str, date]


class ReviewOutcome(str, Enum):
    """Closed set of review results the scheduler distinguishes."""

    INCORRECT = "incorrect"
    CORRECT_FAST = "correct_fast"
    CORRECT_NORMAL = "correct_normal"
    CORRECT_SLOW = "correct_slow"


class DeadlineStatus(str, Enum):
    """How the deadline affected (or did not affect) a computed interval."""

    NONE = "none"
    APPLIED = "applied"
    INVALID = "invalid"
    PASSED = "passed"


@dataclass(frozen=True, slots=True)
class OutcomeRule:
    """Grade and ease adjustment attached to a review outcome.

    ``speed_multiplier`` scales interval growth for correct answers; ``None``
    marks a lapse, which resets the card's progress.
    """

    quality: int
    ease_delta: float
    speed_multiplier: Optional[float]


OUTCOME_RULES: dict[ReviewOutcome, OutcomeRule] = {
    ReviewOutcome.INCORRECT: OutcomeRule(quality=0, ease_delta=-0.20, speed_multiplier=None),
    ReviewOutcome.CORRECT_FAST: OutcomeRule(quality=5, ease_delta=0.15, speed_multiplier=1.3),
    ReviewOutcome.CORRECT_NORMAL: OutcomeRule(quality=4, ease_delta=0.05, speed_multiplier=1.0),
    ReviewOutcome.CORRECT_SLOW: OutcomeRule(quality=3, ease_delta=-0.10, speed_multiplier=0.8),
}


@dataclass(slots=True)
class CardState:
    """Spaced-repetition state stored alongside a flashcard."""

    ease_factor: float = DEFAULT_EASE
    interval_days: float = 0.0
    repetitions: int = 0
    due_date: Optional[str] = None


@dataclass(slots=True)
class ReviewEvent:
    """Outcome and timing of one completed review."""

    correct: bool
    response_time_seconds: float
    timer_limit_seconds: float = 0.0


@dataclass(slots=True)
class SchedulerResult:
    """Updated card state plus metadata describing how the review was graded."""

    ease_factor: float
    interval_days: float
    repetitions: int
    due_at: datetime
    quality: int
    speed_ratio: float
    outcome: ReviewOutcome
    deadline_status: DeadlineStatus = DeadlineStatus.NONE

    @property
    def due_date(self) -> str:
        return format_timestamp(self.due_at)

    def to_card_state(self) -> CardState:
        """Return the persistent part of the result."""
        return CardState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            repetitions=self.repetitions,
            due_date=self.due_date,
        )


def calculate_speed_ratio(review: ReviewEvent) -> float:
    """Return response time relative to the timer; untimed reviews count as 1.0."""
    if review.timer_limit_seconds > 0:
        return review.response_time_seconds / review.timer_limit_seconds
    return 1.0


def classify_review(correct: bool, speed_ratio: float) -> ReviewOutcome:
    """Map correctness and answer speed onto a review outcome."""
    if not correct:
        return ReviewOutcome.INCORRECT
    if speed_ratio <= FAST_SPEED_RATIO:
        return ReviewOutcome.CORRECT_FAST
    if speed_ratio <= NORMAL_SPEED_RATIO:
        return ReviewOutcome.CORRECT_NORMAL
    return ReviewOutcome.CORRECT_SLOW


def next_interval(
    repetitions: int,
    previous_interval: float,
    ease_factor: float,
    speed_multiplier: float,
) -> float:
    """Return the interval in days after a successful review."""
    if repetitions <= 1:
        return 1.0
    if repetitions == 2:
        return 3.0
    return max(previous_interval * ease_factor * speed_multiplier, 1.0)


def parse_deadline(deadline: Optional[Deadline]) -> Optional[datetime]:
    """Return midnight UTC of the deadline date, or ``None`` if it cannot be read."""
    if deadline is None:
        return None
    if isinstance(deadline, datetime):
        deadline = _as_utc(deadline).astimezone(timezone.utc).date()
    if isinstance(deadline, date):
        return datetime.combine(deadline, time.min, tzinfo=timezone.utc)
    try:
        parsed = datetime.strptime(deadline.strip(), DEADLINE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def compress_interval(
    interval_days: float,
    repetitions: int,
    deadline: Optional[Deadline],
    now: datetime,
    mature_repetitions: int = MATURE_REPETITIONS,
) -> tuple[float, DeadlineStatus]:
    """Shrink an interval so the reviews still needed fit before the deadline.

    The interval is never lengthened and never drops below one day. A missing,
    unreadable or past deadline leaves the interval untouched and is reported
    through the returned status.
    """
    if deadline is None or (isinstance(deadline, str) and not deadline.strip()):
        return interval_days, DeadlineStatus.NONE

    deadline_at = parse_deadline(deadline)
    if deadline_at is None:
        return interval_days, DeadlineStatus.INVALID

    # Whole days, truncated: 4.6 days remaining counts as 4.
    days_remaining = (deadline_at - _as_utc(now)).days
    if days_remaining <= 0:
        return interval_days, DeadlineStatus.PASSED

    reviews_still_needed = max(mature_repetitions - repetitions, 1)
    max_interval = days_remaining / reviews_still_needed
    return max(min(interval_days, max_interval), 1.0), DeadlineStatus.APPLIED


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC timestamp with millisecond precision."""
    moment = _as_utc(moment).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def compute_schedule(
    card: CardState,
    review: ReviewEvent,
    deadline: Optional[Deadline] = None,
    now: Optional[datetime] = None,
    *,
    mature_repetitions: int = MATURE_REPETITIONS,
) -> SchedulerResult:
    """Return the card's next schedule after the given review."""
    if now is None:
        now = datetime.now(timezone.utc)
    now = _as_utc(now)

    speed_ratio = calculate_speed_ratio(review)
    outcome = classify_review(review.correct, speed_ratio)
    rule = OUTCOME_RULES[outcome]

    ease_factor = max(card.ease_factor + rule.ease_delta, MIN_EASE)

    if rule.speed_multiplier is None:
        repetitions = 0
        interval_days = 1.0
    else:
        repetitions = card.repetitions + 1
        interval_days = next_interval(
            repetitions, card.interval_days, ease_factor, rule.speed_multiplier
        )

    interval_days, deadline_status = compress_interval(
        interval_days,
        repetitions,
        deadline,
        now,
        mature_repetitions=mature_repetitions,
    )

    due_at = _due_after(now, interval_days)

    return SchedulerResult(
        ease_factor=ease_factor,
        interval_days=interval_days,
        repetitions=repetitions,
        due_at=due_at,
        quality=rule.quality,
        speed_ratio=speed_ratio,
        outcome=outcome,
        deadline_status=deadline_status,
    )


def _due_after(now: datetime, interval_days: float) -> datetime:
    # Saturates at the latest representable moment instead of overflowing.
    if interval_days >= (LATEST_DUE_AT - now).days:
        return LATEST_DUE_AT
    # Half-up rounding; intervals are always positive.
    return now + timedelta(days=math.floor(interval_days + 0.5))


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
