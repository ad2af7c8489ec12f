"""Bootstrap logic for running FlashMath."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flashmath.app.settings import AppSettings
from flashmath.db import get_engine, get_session_factory, run_migrations_if_needed
from flashmath.db.stats import StudyStats, get_study_stats
from flashmath.study.review_workflow import ReviewWorkflow


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_review_workflow(
    settings: AppSettings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> ReviewWorkflow:
    """Create the review workflow using the configured scheduler settings."""
    if session_factory is None:
        session_factory = get_session_factory()
    return ReviewWorkflow(session_factory, mature_repetitions=settings.mature_repetitions)


async def report_study_status(
    session_factory: async_sessionmaker[AsyncSession],
    workflow: ReviewWorkflow,
) -> StudyStats:
    """Log today's study counters and the next card waiting for review."""
    async with session_factory() as session:
        stats = await get_study_stats(session)

    LOGGER.info(
        "%s of %s flashcards due (%s overdue); %s reviewed today with %.0f%% accuracy.",
        stats.due_today,
        stats.total_cards,
        stats.overdue,
        stats.reviewed_today,
        stats.accuracy_today * 100,
    )

    next_card = await workflow.next_card()
    if next_card is None:
        LOGGER.info("No flashcards are due right now.")
    else:
        LOGGER.info(
            "Next flashcard to study: #%s (%s).",
            next_card.id,
            next_card.title or next_card.question_type,
        )
    return stats


async def _run_report(settings: AppSettings) -> StudyStats:
    session_factory = get_session_factory()
    workflow = build_review_workflow(settings, session_factory)
    try:
        return await report_study_status(session_factory, workflow)
    finally:
        await get_engine().dispose()


def run_app(settings: AppSettings) -> None:
    """Prepare the database and report the current study status."""
    _configure_logging(settings.log_level)
    print(f"{settings.app_name} is running in {settings.app_env} mode.")

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    asyncio.run(_run_report(settings))
