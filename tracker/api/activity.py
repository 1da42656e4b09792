"""Time-entry and note endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from tracker.api.dependencies import Learner, StoreDep
from tracker.models.activity import Note, TimeEntry
from tracker.services import activity_service

router = APIRouter(prefix="/v1", tags=["activity"])


class TimeEntryIn(BaseModel):
    minutes: int
    description: str = ""
    logged_at: datetime | None = None


class TimeEntryOut(BaseModel):
    id: UUID
    project_id: UUID
    minutes: int
    description: str
    logged_at: datetime


class NoteIn(BaseModel):
    content: str
    title: str = ""
    note_type: str = "note"


class NotePatchIn(BaseModel):
    content: str | None = None
    title: str | None = None
    note_type: str | None = None


class NoteOut(BaseModel):
    id: UUID
    project_id: UUID
    title: str
    content: str
    note_type: str
    created_at: datetime
    updated_at: datetime


def time_entry_out(e: TimeEntry) -> TimeEntryOut:
    return TimeEntryOut(
        id=e.id,
        project_id=e.project_id,
        minutes=e.minutes,
        description=e.description,
        logged_at=e.logged_at,
    )


def _note_out(n: Note) -> NoteOut:
    return NoteOut(
        id=n.id,
        project_id=n.project_id,
        title=n.title,
        content=n.content,
        note_type=n.note_type.value,
        created_at=n.created_at,
        updated_at=n.updated_at,
    )


@router.post(
    "/projects/{project_id}/time-entries",
    response_model=TimeEntryOut,
    status_code=status.HTTP_201_CREATED,
)
async def log_time(
    project_id: UUID, payload: TimeEntryIn, learner_id: Learner, store: StoreDep
) -> TimeEntryOut:
    entry = await activity_service.log_time(
        store,
        learner_id,
        project_id,
        payload.minutes,
        payload.description,
        payload.logged_at,
    )
    return time_entry_out(entry)


@router.get("/projects/{project_id}/time-entries", response_model=list[TimeEntryOut])
async def list_time_entries(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> list[TimeEntryOut]:
    entries = await activity_service.list_time_entries(store, learner_id, project_id)
    return [time_entry_out(e) for e in entries]


@router.post(
    "/projects/{project_id}/notes",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    project_id: UUID, payload: NoteIn, learner_id: Learner, store: StoreDep
) -> NoteOut:
    note = await activity_service.add_note(
        store,
        learner_id,
        project_id,
        payload.content,
        payload.title,
        payload.note_type,
    )
    return _note_out(note)


@router.get("/projects/{project_id}/notes", response_model=list[NoteOut])
async def list_notes(
    project_id: UUID, learner_id: Learner, store: StoreDep
) -> list[NoteOut]:
    notes = await activity_service.list_notes(store, learner_id, project_id)
    return [_note_out(n) for n in notes]


@router.get("/notes/{note_id}", response_model=NoteOut)
async def get_note(note_id: UUID, learner_id: Learner, store: StoreDep) -> NoteOut:
    note = await activity_service.get_note(store, learner_id, note_id)
    return _note_out(note)


@router.patch("/notes/{note_id}", response_model=NoteOut)
async def update_note(
    note_id: UUID, payload: NotePatchIn, learner_id: Learner, store: StoreDep
) -> NoteOut:
    note = await activity_service.update_note(
        store,
        learner_id,
        note_id,
        content=payload.content,
        title=payload.title,
        note_type=payload.note_type,
    )
    return _note_out(note)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: UUID, learner_id: Learner, store: StoreDep) -> Response:
    await activity_service.delete_note(store, learner_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
