"""Helpers for working with flashcard folders."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flashmath.study.srs import DEADLINE_FORMAT

from . import Flashcard, Folder


def normalize_deadline(deadline: Optional[str]) -> Optional[str]:
    """Validate a ``YYYY-MM-DD`` deadline string, treating blanks as no deadline."""
    if deadline is None:
        return None
    stripped = deadline.strip()
    if not stripped:
        return None
    try:
        datetime.strptime(stripped, DEADLINE_FORMAT)
    except ValueError as exc:
        raise ValueError(f"Deadline must use the YYYY-MM-DD format, got {deadline!r}.") from exc
    return stripped


def _normalize_name(name: str) -> str:
    stripped = name.strip()
    if not stripped:
        raise ValueError("Folder name must not be empty.")
    return stripped


async def create_folder(
    session: AsyncSession,
    name: str,
    emoji: Optional[str] = None,
    position: int = 0,
    deadline: Optional[str] = None,
) -> Folder:
    """Create a new folder."""
    now = datetime.now(timezone.utc)
    folder = Folder(
        name=_normalize_name(name),
        emoji=emoji,
        position=position,
        deadline=normalize_deadline(deadline),
        created_at=now,
        updated_at=now,
    )
    session.add(folder)
    await session.flush()
    return folder


async def get_folder(session: AsyncSession, folder_id: int) -> Optional[Folder]:
    return await session.get(Folder, folder_id)


async def list_folders(session: AsyncSession) -> Sequence[Folder]:
    """Return all folders in display order."""
    stmt = select(Folder).order_by(Folder.position, Folder.created_at, Folder.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def rename_folder(session: AsyncSession, folder: Folder, name: str) -> None:
    folder.name = _normalize_name(name)
    folder.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def set_folder_emoji(session: AsyncSession, folder: Folder, emoji: Optional[str]) -> None:
    folder.emoji = emoji
    folder.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def set_folder_position(session: AsyncSession, folder: Folder, position: int) -> None:
    folder.position = position
    folder.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def set_folder_deadline(
    session: AsyncSession,
    folder: Folder,
    deadline: Optional[str],
) -> None:
    """Set or clear the date by which the folder's cards should be mastered."""
    folder.deadline = normalize_deadline(deadline)
    folder.updated_at = datetime.now(timezone.utc)
    await session.flush()


async def delete_folder(session: AsyncSession, folder: Folder) -> None:
    """Delete a folder, keeping its flashcards as unfiled cards."""
    stmt = (
        update(Flashcard)
        .where(Flashcard.folder_id == folder.id)
        .values(folder_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await session.execute(stmt)
    await session.delete(folder)
    await session.flush()
