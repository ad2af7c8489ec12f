from collections import deque
from datetime import datetime, timezone
from typing import List, Tuple

import pytest

from flashmath.app import runtime
from flashmath.app.settings import AppSettings
from flashmath.db import get_database_url, run_migrations_if_needed
from flashmath.db.flashcards import FlashcardPayload, create_flashcard


SETTINGS = AppSettings(app_name="FlashMath", app_env="test", log_level="INFO", mature_repetitions=4)


def test_run_migrations_if_needed_invokes_upgrade(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Tuple[object, str]] = []

    def fake_upgrade(config: object, target: str) -> None:
        calls.append((config, target))

    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("RUN_MIGRATIONS_ON_STARTUP", "true")
    monkeypatch.setattr("flashmath.db.command.upgrade", fake_upgrade)

    run_migrations_if_needed()

    assert calls and calls[0][1] == "head"
    assert calls[0][0].get_main_option("sqlalchemy.url") == "sqlite+aiosqlite:///:memory:"


def test_run_migrations_if_needed_skips_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUN_MIGRATIONS_ON_STARTUP", "false")

    calls: deque[str] = deque()

    def fake_upgrade(_: object, target: str) -> None:
        calls.append(target)

    monkeypatch.setattr("flashmath.db.command.upgrade", fake_upgrade)

    run_migrations_if_needed()

    assert not calls


def test_database_url_defaults_to_local_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert get_database_url() == "sqlite+aiosqlite:///flashmath.db"

    monkeypatch.setenv("FLASHMATH_HOME", "/data")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///$FLASHMATH_HOME/cards.db")
    assert get_database_url() == "sqlite+aiosqlite:////data/cards.db"


@pytest.mark.asyncio
async def test_report_study_status_logs_due_cards(session_factory, caplog) -> None:
    async with session_factory() as session:
        async with session.begin():
            flashcard = await create_flashcard(
                session,
                FlashcardPayload(question_type="latex", question_content="\\nabla f", title="Gradient"),
                now=datetime.now(timezone.utc),
            )

    workflow = runtime.build_review_workflow(SETTINGS, session_factory)

    with caplog.at_level("INFO", logger="flashmath.app.runtime"):
        stats = await runtime.report_study_status(session_factory, workflow)

    assert stats.total_cards == 1
    assert stats.due_today == 1
    assert f"#{flashcard.id} (Gradient)" in caplog.text


@pytest.mark.asyncio
async def test_report_study_status_without_due_cards(session_factory, caplog) -> None:
    workflow = runtime.build_review_workflow(SETTINGS, session_factory)

    with caplog.at_level("INFO", logger="flashmath.app.runtime"):
        stats = await runtime.report_study_status(session_factory, workflow)

    assert stats.total_cards == 0
    assert "No flashcards are due" in caplog.text


def test_build_review_workflow_uses_configured_maturity() -> None:
    workflow = runtime.build_review_workflow(SETTINGS, session_factory=object())  # type: ignore[arg-type]

    assert workflow._mature_repetitions == 4


def test_run_app_aborts_when_migrations_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_migrations() -> None:
        raise RuntimeError("boom")

    reports: List[AppSettings] = []

    async def fake_report(settings: AppSettings) -> None:
        reports.append(settings)

    monkeypatch.setattr(runtime, "run_migrations_if_needed", failing_migrations)
    monkeypatch.setattr(runtime, "_run_report", fake_report)

    with pytest.raises(RuntimeError):
        runtime.run_app(SETTINGS)

    assert reports == []


def test_run_app_reports_after_migrations(monkeypatch: pytest.MonkeyPatch) -> None:
    events: List[str] = []

    async def fake_report(settings: AppSettings) -> None:
        events.append(f"report:{settings.app_env}")

    monkeypatch.setattr(runtime, "run_migrations_if_needed", lambda: events.append("migrate"))
    monkeypatch.setattr(runtime, "_run_report", fake_report)

    runtime.run_app(SETTINGS)

    assert events == ["migrate", "report:test"]
