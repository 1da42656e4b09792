"""Timeout budgets for service calls against the store.

Point operations run under QUERY_TIMEOUT_SECONDS, aggregates under
ANALYTICS_TIMEOUT_SECONDS. Callers may pass an explicit budget instead.
An exceeded budget cancels the work (rolling back its transaction) and
surfaces as StorageTimeoutError.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import Literal, TypeVar

from tracker.core.config import SETTINGS
from tracker.core.errors import StorageTimeoutError
from tracker.core.metrics import STORE_OPERATION_DURATION, STORE_TIMEOUTS

logger = logging.getLogger(__name__)

T = TypeVar("T")
Kind = Literal["query", "analytics"]


def budget_for(kind: Kind, timeout: float | None = None) -> float:
    if timeout is not None:
        return timeout
    if kind == "analytics":
        return SETTINGS.analytics_timeout_seconds
    return SETTINGS.query_timeout_seconds


async def bounded(
    work: Awaitable[T], *, kind: Kind = "query", timeout: float | None = None
) -> T:
    budget = budget_for(kind, timeout)
    start = time.monotonic()
    try:
        return await asyncio.wait_for(work, budget)
    except TimeoutError:
        STORE_TIMEOUTS.labels(kind=kind).inc()
        logger.error("%s operation exceeded %.1fs budget", kind, budget)
        raise StorageTimeoutError(
            f"{kind} operation exceeded its {budget:g}s budget",
            timeout_seconds=budget,
        ) from None
    finally:
        STORE_OPERATION_DURATION.labels(kind=kind).observe(time.monotonic() - start)
