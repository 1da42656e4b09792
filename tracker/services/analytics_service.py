"""Read-only rollups over a learner's curricula.

Counting and summing happen in the store (``tx.analytics``); the pure
functions here turn those groups into the response shapes, zero-filling
anything the store left out. Empty inputs always produce zeroed results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from uuid import UUID

from tracker.models.activity import TimeEntry
from tracker.models.analytics import (
    RECENT_ACTIVITY_LIMIT,
    WEEKLY_WINDOW,
    CurriculumStats,
    OverallStats,
    ProjectRollup,
    TypeBreakdown,
    utc_day,
    week_start,
)
from tracker.models.project import ProjectType, utcnow
from tracker.repos.store import Store
from tracker.services.deadline import bounded
from tracker.services.ownership import owned_curriculum

logger = logging.getLogger(__name__)


def completion_rate(completed: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(completed / total * 100, 2)


def window_start(now: datetime, weeks: int = WEEKLY_WINDOW) -> datetime:
    """Monday 00:00 UTC of the oldest week in the bucket window."""
    return week_start(now) - timedelta(weeks=weeks - 1)


def weekly_buckets(
    by_week: Mapping[datetime, int], now: datetime, weeks: int = WEEKLY_WINDOW
) -> list[int]:
    """Minutes per calendar week, oldest first; the last bucket is this week.

    ``by_week`` is keyed by week start. Always ``weeks`` long; weeks outside
    the window are ignored.
    """
    buckets = [0] * weeks
    oldest = window_start(now, weeks)
    for start, minutes in by_week.items():
        offset = (week_start(start) - oldest).days // 7
        if 0 <= offset < weeks:
            buckets[offset] += minutes
    return buckets


def weekly_average(daily: Mapping[date, int], today: date) -> float:
    """Mean minutes over the last seven days (today included) that have entries."""
    recent = [daily[d] for d in (today - timedelta(days=i) for i in range(7)) if d in daily]
    if not recent:
        return 0.0
    return round(sum(recent) / len(recent), 2)


def type_breakdown(rollup: Iterable[ProjectRollup]) -> TypeBreakdown:
    totals = dict.fromkeys(ProjectType, 0)
    done = dict.fromkeys(ProjectType, 0)
    for group in rollup:
        totals[group.project_type] += group.total
        done[group.project_type] += group.completed
    return TypeBreakdown(
        projects_by_type=totals,
        completion_by_type={t: completion_rate(done[t], totals[t]) for t in ProjectType},
    )


def summarize_curriculum(
    curriculum_id: UUID,
    rollup: Iterable[ProjectRollup],
    total_minutes: int,
    *,
    daily: Mapping[date, int] | None = None,
    by_project: Mapping[str, int] | None = None,
    today: date | None = None,
) -> CurriculumStats:
    groups = [g for g in rollup if g.curriculum_id == curriculum_id]
    total = sum(g.total for g in groups)
    completed = sum(g.completed for g in groups)
    daily = dict(daily or {})
    return CurriculumStats(
        curriculum_id=curriculum_id,
        total_projects=total,
        completed_projects=completed,
        total_time_spent=total_minutes,
        completion_rate=completion_rate(completed, total),
        daily_breakdown=daily,
        project_breakdown=dict(by_project or {}),
        weekly_average=weekly_average(daily, today) if today else 0.0,
    )


def overall_stats(
    *,
    curricula_count: int,
    rollup: list[ProjectRollup],
    total_minutes: int,
    by_week: Mapping[datetime, int],
    recent: list[TimeEntry],
    notes_count: int,
    now: datetime,
) -> OverallStats:
    total = sum(g.total for g in rollup)
    completed = sum(g.completed for g in rollup)
    breakdown = type_breakdown(rollup)
    return OverallStats(
        total_curricula=curricula_count,
        total_projects=total,
        completed_projects=completed,
        in_progress_projects=sum(g.in_progress for g in rollup),
        total_time_minutes=total_minutes,
        total_time_hours=round(total_minutes / 60, 2),
        total_notes=notes_count,
        completion_rate=completion_rate(completed, total),
        projects_by_type=breakdown.projects_by_type,
        completion_by_type=breakdown.completion_by_type,
        weekly_time_spent=weekly_buckets(by_week, now),
        recent_activity=recent[:RECENT_ACTIVITY_LIMIT],
    )


# ---------------------------------------------------------------------------
# Service entry points
# ---------------------------------------------------------------------------


async def get_curriculum_analytics(
    store: Store,
    learner_id: UUID,
    curriculum_id: UUID,
    *,
    now: datetime | None = None,
    timeout: float | None = None,
) -> CurriculumStats:
    async def _run() -> CurriculumStats:
        async with store.transaction() as tx:
            await owned_curriculum(tx, learner_id, curriculum_id)
            rollup = await tx.analytics.project_rollup(learner_id, [curriculum_id])
            daily = await tx.analytics.minutes_by_day(learner_id, curriculum_id)
            by_project = await tx.analytics.minutes_by_project(learner_id, curriculum_id)
        return summarize_curriculum(
            curriculum_id,
            rollup,
            sum(daily.values()),
            daily=daily,
            by_project=by_project,
            today=utc_day(now or utcnow()),
        )

    return await bounded(_run(), kind="analytics", timeout=timeout)


async def get_learner_analytics(
    store: Store,
    learner_id: UUID,
    *,
    now: datetime | None = None,
    timeout: float | None = None,
) -> OverallStats:
    now = now or utcnow()

    async def _run() -> OverallStats:
        async with store.transaction() as tx:
            curricula = await tx.curricula.list_by_learner(learner_id)
            ids = [c.id for c in curricula]
            rollup = await tx.analytics.project_rollup(learner_id, ids)
            minutes = await tx.analytics.minutes_by_curriculum(learner_id, ids)
            by_week = await tx.analytics.minutes_by_week(
                learner_id, ids, since=window_start(now)
            )
            recent = await tx.analytics.recent_entries(
                learner_id, ids, RECENT_ACTIVITY_LIMIT
            )
            notes_count = await tx.analytics.count_notes(learner_id, ids)
        stats = overall_stats(
            curricula_count=len(curricula),
            rollup=rollup,
            total_minutes=sum(minutes.values()),
            by_week=by_week,
            recent=recent,
            notes_count=notes_count,
            now=now,
        )
        logger.debug(
            "Learner analytics: %d curricula, %d projects",
            stats.total_curricula,
            stats.total_projects,
            extra={"learner_id": str(learner_id)},
        )
        return stats

    return await bounded(_run(), kind="analytics", timeout=timeout)
