# =============================================================================
# Progress & reports: chronological views over a user's logs
# =============================================================================

from __future__ import annotations

import csv
import io
import json
from datetime import date as date_type
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from fastapi import Path as FPath
from sqlalchemy import asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import current_user_id
from .database import get_session
from .errors import ValidationError
from .exercises import get_exercise
from .models import WorkoutLog
from .schemas import (
    CsvExportOut,
    DayLogsOut,
    ProgressOut,
    ProgressPointOut,
    WeeklySummaryOut,
    WorkoutLogOut,
    check_date,
)
from .workout_logs import joined_logs, parse_series, row_to_out

CSV_COLUMNS = [
    "id", "date", "exercise", "exercise_type", "sets", "reps", "weight",
    "weight_per_set", "rest_time", "distance", "duration", "pace", "lap_times", "notes",
]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
async def exercise_progress(s: AsyncSession, user_id: int, exercise_id: int) -> List[ProgressPointOut]:
    """All logs of one exercise, oldest first."""
    await get_exercise(s, user_id, exercise_id)
    result = await s.execute(
        select(WorkoutLog)
        .where(WorkoutLog.exercise_id == exercise_id, WorkoutLog.user_id == user_id)
        .order_by(asc(WorkoutLog.date), asc(WorkoutLog.created_at), asc(WorkoutLog.id))
    )
    return [
        ProgressPointOut(
            id=w.id,
            date=w.date,
            sets=w.sets,
            reps=w.reps,
            rest_time=w.rest_time,
            notes=w.notes,
            weight=w.weight,
            weight_per_set=parse_series(w.weight_per_set, "weight_per_set"),
            distance=w.distance,
            duration=w.duration,
            pace=w.pace,
            lap_times=parse_series(w.lap_times, "lap_times"),
        )
        for w in result.scalars().all()
    ]


def week_bounds(day: date_type) -> Tuple[date_type, date_type]:
    """Sunday..Saturday week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


async def _chronological(
    s: AsyncSession,
    user_id: int,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[WorkoutLogOut]:
    stmt = joined_logs(user_id)
    if start:
        stmt = stmt.where(WorkoutLog.date >= start)
    if end:
        stmt = stmt.where(WorkoutLog.date <= end)
    stmt = stmt.order_by(asc(WorkoutLog.date), asc(WorkoutLog.created_at), asc(WorkoutLog.id))
    result = await s.execute(stmt)
    return [row_to_out(*row) for row in result.all()]


async def weekly_summary(s: AsyncSession, user_id: int, day: date_type) -> WeeklySummaryOut:
    start, end = week_bounds(day)
    logs = await _chronological(s, user_id, start.isoformat(), end.isoformat())
    by_date: Dict[str, List[WorkoutLogOut]] = {}
    for entry in logs:
        by_date.setdefault(entry.date, []).append(entry)
    return WeeklySummaryOut(
        week_start=start.isoformat(),
        week_end=end.isoformat(),
        total_logs=len(logs),
        days=[DayLogsOut(date=d, logs=entries) for d, entries in by_date.items()],
    )


def _json_or_blank(values: Optional[List[float]]) -> str:
    return json.dumps(values) if values else ""


async def export_csv(s: AsyncSession, user_id: int) -> CsvExportOut:
    logs = await _chronological(s, user_id)

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for w in logs:
        writer.writerow([
            w.id, w.date, w.exercise_name, w.exercise_type, w.sets, w.reps, w.weight,
            _json_or_blank(w.weight_per_set), w.rest_time, w.distance, w.duration,
            w.pace, _json_or_blank(w.lap_times), (w.notes or ""),
        ])

    return CsvExportOut(filename="workout_logs.csv", rows=len(logs), csv=buf.getvalue())


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
router = APIRouter(tags=["progress"])


@router.get("/exercises/{exercise_id:int}/progress", response_model=ProgressOut)
async def exercise_progress_route(
    exercise_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> ProgressOut:
    return ProgressOut(progress=await exercise_progress(s, user_id, exercise_id))


@router.get("/workout-logs/weekly", response_model=WeeklySummaryOut)
async def weekly_summary_route(
    week_of: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> WeeklySummaryOut:
    if week_of:
        try:
            day = datetime.strptime(check_date(week_of), "%Y-%m-%d").date()
        except ValueError as e:
            raise ValidationError(f"week_of: {e}")
    else:
        day = date_type.today()
    return await weekly_summary(s, user_id, day)


@router.get("/workout-logs/export/csv", response_model=CsvExportOut)
async def export_csv_route(
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> CsvExportOut:
    return await export_csv(s, user_id)
