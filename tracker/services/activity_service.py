"""Time entries and notes attached to a project.

Time entries are append-only. Logging one also bumps the progress record's
``time_spent_minutes`` counter in the same transaction, creating a
not_started record if the learner has none yet.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from tracker.core.errors import NoteNotFoundError, ValidationError
from tracker.models.activity import Note, NoteType, TimeEntry
from tracker.models.progress import Progress
from tracker.models.project import utcnow
from tracker.repos.store import Store, Transaction
from tracker.services.deadline import bounded
from tracker.services.ownership import owned_project

logger = logging.getLogger(__name__)


async def log_time(
    store: Store,
    learner_id: UUID,
    project_id: UUID,
    minutes: int,
    description: str = "",
    logged_at: datetime | None = None,
    *,
    timeout: float | None = None,
) -> TimeEntry:
    if isinstance(minutes, bool) or minutes <= 0:
        raise ValidationError("minutes must be positive", field="minutes")
    entry = TimeEntry.new(
        learner_id=learner_id,
        project_id=project_id,
        minutes=minutes,
        logged_at=logged_at,
        description=description,
    )

    async def _run() -> TimeEntry:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            await tx.lock_progress(learner_id, project_id)
            current = await tx.progress.get(learner_id, project_id)
            if current is None:
                current = replace(
                    Progress.default(learner_id=learner_id, project_id=project_id),
                    created_at=entry.created_at,
                )
            await tx.time_entries.add(entry)
            await tx.progress.upsert(
                replace(
                    current,
                    time_spent_minutes=current.time_spent_minutes + minutes,
                    updated_at=entry.created_at,
                )
            )
        logger.info(
            "Logged %d minutes on project=%s",
            minutes,
            project_id,
            extra={"learner_id": str(learner_id), "project_id": str(project_id)},
        )
        return entry

    return await bounded(_run(), timeout=timeout)


async def list_time_entries(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> list[TimeEntry]:
    async def _run() -> list[TimeEntry]:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            return await tx.time_entries.list_by_projects(learner_id, [project_id])

    return await bounded(_run(), timeout=timeout)


def parse_note_type(raw: str | NoteType) -> NoteType:
    try:
        return NoteType(raw)
    except ValueError:
        raise ValidationError(
            f"invalid note type: {raw!r}",
            field="note_type",
            allowed=[t.value for t in NoteType],
        ) from None


async def add_note(
    store: Store,
    learner_id: UUID,
    project_id: UUID,
    content: str,
    title: str = "",
    note_type: str | NoteType = NoteType.NOTE,
    *,
    timeout: float | None = None,
) -> Note:
    if not content.strip():
        raise ValidationError("content must be non-empty", field="content")
    note = Note.new(
        learner_id=learner_id,
        project_id=project_id,
        content=content,
        title=title.strip(),
        note_type=parse_note_type(note_type),
    )

    async def _run() -> Note:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            await tx.notes.add(note)
        logger.info("Added %s note to project=%s", note.note_type.value, project_id)
        return note

    return await bounded(_run(), timeout=timeout)


async def list_notes(
    store: Store, learner_id: UUID, project_id: UUID, *, timeout: float | None = None
) -> list[Note]:
    async def _run() -> list[Note]:
        async with store.transaction() as tx:
            await owned_project(tx, learner_id, project_id)
            return await tx.notes.list_by_projects(learner_id, [project_id])

    return await bounded(_run(), timeout=timeout)


async def _owned_note(tx: Transaction, learner_id: UUID, note_id: UUID) -> Note:
    note = await tx.notes.get(note_id)
    if note is None or note.learner_id != learner_id:
        raise NoteNotFoundError("note not found", note_id=str(note_id))
    return note


async def get_note(
    store: Store, learner_id: UUID, note_id: UUID, *, timeout: float | None = None
) -> Note:
    async def _run() -> Note:
        async with store.transaction() as tx:
            return await _owned_note(tx, learner_id, note_id)

    return await bounded(_run(), timeout=timeout)


async def update_note(
    store: Store,
    learner_id: UUID,
    note_id: UUID,
    *,
    content: str | None = None,
    title: str | None = None,
    note_type: str | NoteType | None = None,
    timeout: float | None = None,
) -> Note:
    """Partial update; omitted fields keep their current value."""
    if content is not None and not content.strip():
        raise ValidationError("content must be non-empty", field="content")
    new_type = None if note_type is None else parse_note_type(note_type)

    async def _run() -> Note:
        async with store.transaction() as tx:
            current = await _owned_note(tx, learner_id, note_id)
            updated = replace(
                current,
                content=current.content if content is None else content,
                title=current.title if title is None else title.strip(),
                note_type=current.note_type if new_type is None else new_type,
                updated_at=utcnow(),
            )
            await tx.notes.update(updated)
        logger.info("Updated note %s", note_id)
        return updated

    return await bounded(_run(), timeout=timeout)


async def delete_note(
    store: Store, learner_id: UUID, note_id: UUID, *, timeout: float | None = None
) -> None:
    async def _run() -> None:
        async with store.transaction() as tx:
            await _owned_note(tx, learner_id, note_id)
            await tx.notes.delete(note_id)
        logger.info("Deleted note %s", note_id)

    await bounded(_run(), timeout=timeout)
