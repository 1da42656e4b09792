from __future__ import annotations

import asyncio
import datetime
import sys
import uuid
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from tracker.api.dependencies import JWT_ALGORITHM, memory_store
from tracker.core.config import SETTINGS
from tracker.main import app
from tracker.models.curriculum import Curriculum
from tracker.models.project import Project
from tracker.repos.store import InMemoryStore
from tracker.services import curriculum_service, project_service

# Ensure repo root is on sys.path so `import tracker` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Start every test from an empty in-memory store."""
    memory_store.clear()


@pytest.fixture
def store() -> InMemoryStore:
    """A private store for direct service-level tests."""
    return InMemoryStore()


@pytest.fixture
def learner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    learner: uuid.UUID | str | None = None,
    *,
    expires_in: int = 300,
    secret: str | None = None,
) -> str:
    """Create a valid HS256 JWT for testing."""
    now = datetime.datetime.now(datetime.UTC)
    claims = {
        "sub": str(learner or uuid.uuid4()),
        "iat": now,
        "exp": now + datetime.timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, secret or SETTINGS.jwt_secret, algorithm=JWT_ALGORITHM)


def auth_headers(learner: uuid.UUID | str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(learner)}"}


@pytest.fixture
def headers(learner_id: uuid.UUID) -> dict[str, str]:
    """Bearer headers for the ``learner_id`` fixture."""
    return auth_headers(learner_id)


# ---------------------------------------------------------------------------
# Service-level helpers
# ---------------------------------------------------------------------------


def make_curriculum(
    store: InMemoryStore, learner_id: uuid.UUID, name: str = "Backend path"
) -> Curriculum:
    return asyncio.run(curriculum_service.create_curriculum(store, learner_id, name))


def make_project(
    store: InMemoryStore,
    learner_id: uuid.UUID,
    curriculum_id: uuid.UUID,
    project_type: str = "root",
    position_order: int = 1,
    prerequisites: list[str] | None = None,
    name: str | None = None,
) -> Project:
    return asyncio.run(
        project_service.create_project(
            store,
            learner_id,
            curriculum_id,
            project_type=project_type,
            position_order=position_order,
            name=name or f"{project_type} #{position_order}",
            prerequisites=prerequisites or [],
        )
    )
