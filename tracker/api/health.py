"""Health and readiness endpoints.

  /health (liveness):
    "Is this process alive?" Always 200 while the process can answer; the
    body reports which backing store is in use.

  /ready (readiness):
    "Can this instance serve traffic right now?" With a database
    configured it runs ``SELECT 1`` and answers 503 if that fails, so the
    load balancer stops routing here without restarting the container.
    The in-memory store is always ready.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tracker.db.engine import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "checks": {"store": "postgres" if engine is not None else "memory"},
    }


@router.get("/ready")
async def ready() -> Response:
    if engine is None:
        return Response(status_code=200)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Readiness check failed: %s", exc.__class__.__name__)
        return Response(status_code=503)
    return Response(status_code=200)
