# =============================================================================
# Workout log engine
#
# Every write goes through three gates, in order, inside one transaction:
#   1) resolve the exercise (owned by the same user)
#   2) check the supplied fields against the exercise type
#   3) serialize list-valued fields to JSON text
# then persists and re-reads the row joined with its exercise.
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends, Query
from fastapi import Path as FPath
from sqlalchemy import Select, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import current_user_id
from .database import get_session
from .errors import NotFoundError, ValidationError
from .exercises import find_exercise, get_exercise
from .models import CARDIO, STRENGTH, Exercise, WorkoutLog
from .schemas import (
    LastLogOut,
    LastValuesOut,
    MessageOut,
    WorkoutLogEnvelope,
    WorkoutLogIn,
    WorkoutLogListOut,
    WorkoutLogOut,
    check_date,
)

log = logging.getLogger("gymlog.workout_logs")

CARDIO_ONLY_FIELDS = ("distance", "duration", "pace", "lap_times")
STRENGTH_ONLY_FIELDS = ("weight", "weight_per_set")
STRUCTURED_FIELDS = ("weight_per_set", "lap_times")

CARDIO_ONLY_MESSAGE = "Distance, duration, pace, and lap times can only be used for cardio exercises"
STRENGTH_ONLY_MESSAGE = "Weight and weight per set can only be used for strength exercises"


# -----------------------------------------------------------------------------
# Structured sub-fields
# -----------------------------------------------------------------------------
def serialize_series(values: Optional[Sequence[float]]) -> Optional[str]:
    if not values:
        return None
    return json.dumps(list(values))


def parse_series(raw: Optional[str], field: str = "series") -> Optional[List[float]]:
    """Stored JSON text back to a list of numbers. Anything unreadable becomes None."""
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        log.warning(f"Unreadable {field} value in storage: {raw[:40]!r}")
        return None
    if not isinstance(data, list) or not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in data
    ):
        log.warning(f"Unexpected {field} shape in storage: {raw[:40]!r}")
        return None
    return data


# -----------------------------------------------------------------------------
# Gates
# -----------------------------------------------------------------------------
async def resolve_exercise(s: AsyncSession, user_id: int, exercise_id: Optional[int]) -> Exercise:
    exercise = await find_exercise(s, user_id, exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise not found")
    return exercise


def check_field_compatibility(exercise_type: str, fields: Dict[str, Any]) -> None:
    """Reject cardio fields on non-cardio exercises and weight fields on non-strength ones.

    Only keys present in ``fields`` with a non-null value count.
    """
    if exercise_type != CARDIO and any(fields.get(f) is not None for f in CARDIO_ONLY_FIELDS):
        raise ValidationError(CARDIO_ONLY_MESSAGE)
    if exercise_type != STRENGTH and any(fields.get(f) is not None for f in STRENGTH_ONLY_FIELDS):
        raise ValidationError(STRENGTH_ONLY_MESSAGE)


def to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Request values to column values; falsy measurements are stored as NULL."""
    columns: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in STRUCTURED_FIELDS:
            columns[name] = serialize_series(value)
        elif name in ("exercise_id", "date"):
            columns[name] = value
        else:
            columns[name] = value or None
    return columns


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------
def joined_logs(user_id: int) -> Select:
    return (
        select(WorkoutLog, Exercise.name, Exercise.exercise_type)
        .join(Exercise, WorkoutLog.exercise_id == Exercise.id)
        .where(WorkoutLog.user_id == user_id)
    )


def row_to_out(w: WorkoutLog, exercise_name: str, exercise_type: str) -> WorkoutLogOut:
    return WorkoutLogOut(
        id=w.id,
        user_id=w.user_id,
        exercise_id=w.exercise_id,
        exercise_name=exercise_name,
        exercise_type=exercise_type,
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
        created_at=w.created_at,
    )


async def fetch_log(s: AsyncSession, user_id: int, log_id: int) -> WorkoutLogOut:
    result = await s.execute(joined_logs(user_id).where(WorkoutLog.id == log_id))
    row = result.first()
    if row is None:
        raise NotFoundError("Workout log not found")
    return row_to_out(*row)


async def list_logs(
    s: AsyncSession,
    user_id: int,
    exercise_id: Optional[int] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[WorkoutLogOut]:
    """Newest first: date, then creation time."""
    stmt = joined_logs(user_id)
    if exercise_id is not None:
        stmt = stmt.where(WorkoutLog.exercise_id == exercise_id)
    if start_date:
        stmt = stmt.where(WorkoutLog.date >= start_date)
    if end_date:
        stmt = stmt.where(WorkoutLog.date <= end_date)
    stmt = stmt.order_by(desc(WorkoutLog.date), desc(WorkoutLog.created_at), desc(WorkoutLog.id))
    if limit:
        stmt = stmt.limit(limit)
    result = await s.execute(stmt)
    return [row_to_out(*row) for row in result.all()]


async def last_values(s: AsyncSession, user_id: int, exercise_id: int) -> Optional[LastValuesOut]:
    await get_exercise(s, user_id, exercise_id)
    w = await s.scalar(
        select(WorkoutLog)
        .where(WorkoutLog.exercise_id == exercise_id, WorkoutLog.user_id == user_id)
        .order_by(desc(WorkoutLog.date), desc(WorkoutLog.created_at), desc(WorkoutLog.id))
        .limit(1)
    )
    if w is None:
        return None
    return LastValuesOut(
        date=w.date,
        sets=w.sets,
        reps=w.reps,
        rest_time=w.rest_time,
        weight=w.weight,
        weight_per_set=parse_series(w.weight_per_set, "weight_per_set"),
        distance=w.distance,
        duration=w.duration,
        pace=w.pace,
        lap_times=parse_series(w.lap_times, "lap_times"),
    )


# -----------------------------------------------------------------------------
# Writes
# -----------------------------------------------------------------------------
async def create_log(s: AsyncSession, user_id: int, body: WorkoutLogIn) -> WorkoutLogOut:
    if not body.exercise_id or not body.date:
        raise ValidationError("Exercise ID and date are required")

    exercise = await resolve_exercise(s, user_id, body.exercise_id)
    fields = body.model_dump()
    check_field_compatibility(exercise.exercise_type, fields)

    w = WorkoutLog(user_id=user_id, **to_columns(fields))
    s.add(w)
    await s.flush()
    out = await fetch_log(s, user_id, w.id)
    await s.commit()
    return out


async def update_log(
    s: AsyncSession, user_id: int, log_id: int, body: WorkoutLogIn
) -> WorkoutLogOut:
    w = await s.scalar(
        select(WorkoutLog).where(WorkoutLog.id == log_id, WorkoutLog.user_id == user_id)
    )
    if w is None:
        raise NotFoundError("Workout log not found")

    changes = body.changes()
    if "date" in changes and not changes["date"]:
        raise ValidationError("Date cannot be empty")

    # Only the fields in this request are checked, even when the exercise changes
    target = changes["exercise_id"] if "exercise_id" in changes else w.exercise_id
    exercise = await resolve_exercise(s, user_id, target)
    check_field_compatibility(exercise.exercise_type, changes)

    for name, value in to_columns(changes).items():
        setattr(w, name, value)
    await s.flush()
    out = await fetch_log(s, user_id, w.id)
    await s.commit()
    return out


async def delete_log(s: AsyncSession, user_id: int, log_id: int) -> None:
    w = await s.scalar(
        select(WorkoutLog).where(WorkoutLog.id == log_id, WorkoutLog.user_id == user_id)
    )
    if w is None:
        raise NotFoundError("Workout log not found")
    await s.delete(w)
    await s.commit()


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
router = APIRouter(prefix="/workout-logs", tags=["workout-logs"])


def _date_param(value: Optional[str], name: str) -> Optional[str]:
    if not value:
        return None
    try:
        return check_date(value)
    except ValueError as e:
        raise ValidationError(f"{name}: {e}")


@router.get("", response_model=WorkoutLogListOut)
async def list_logs_route(
    exercise_id: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> WorkoutLogListOut:
    logs = await list_logs(
        s,
        user_id,
        exercise_id=exercise_id,
        start_date=_date_param(start_date, "start_date"),
        end_date=_date_param(end_date, "end_date"),
        limit=limit,
    )
    return WorkoutLogListOut(logs=logs)


@router.get("/exercise/{exercise_id:int}/last", response_model=LastLogOut)
async def last_values_route(
    exercise_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> LastLogOut:
    return LastLogOut(lastLog=await last_values(s, user_id, exercise_id))


@router.get("/{log_id:int}", response_model=WorkoutLogEnvelope)
async def get_log_route(
    log_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> WorkoutLogEnvelope:
    return WorkoutLogEnvelope(log=await fetch_log(s, user_id, log_id))


@router.post("", response_model=WorkoutLogEnvelope, status_code=201)
async def create_log_route(
    body: WorkoutLogIn,
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> WorkoutLogEnvelope:
    return WorkoutLogEnvelope(log=await create_log(s, user_id, body))


@router.put("/{log_id:int}", response_model=WorkoutLogEnvelope)
async def update_log_route(
    body: WorkoutLogIn,
    log_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> WorkoutLogEnvelope:
    return WorkoutLogEnvelope(log=await update_log(s, user_id, log_id, body))


@router.delete("/{log_id:int}", response_model=MessageOut)
async def delete_log_route(
    log_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> MessageOut:
    await delete_log(s, user_id, log_id)
    return MessageOut(message="Workout log deleted successfully")
