# =============================================================================
# Exercise registry: per-user exercise definitions
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi import Path as FPath
from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import current_user_id
from .database import get_session
from .errors import NotFoundError, ValidationError
from .models import Exercise, WorkoutLog
from .schemas import ExerciseEnvelope, ExerciseIn, ExerciseListOut, ExerciseOut, MessageOut

log = logging.getLogger("gymlog.exercises")

# Free-text columns: falsy input is stored as NULL
_OPTIONAL_TEXT_FIELDS = (
    "muscle_group",
    "equipment",
    "description",
    "instructions",
    "video_link",
    "image_link",
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
async def find_exercise(
    s: AsyncSession, user_id: int, exercise_id: Optional[int]
) -> Optional[Exercise]:
    if exercise_id is None:
        return None
    return await s.scalar(
        select(Exercise).where(Exercise.id == exercise_id, Exercise.user_id == user_id)
    )


async def get_exercise(s: AsyncSession, user_id: int, exercise_id: Optional[int]) -> Exercise:
    """The user's exercise, or NotFoundError (also for exercises owned by others)."""
    exercise = await find_exercise(s, user_id, exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise not found")
    return exercise


async def list_exercises(s: AsyncSession, user_id: int) -> List[Exercise]:
    result = await s.execute(
        select(Exercise)
        .where(Exercise.user_id == user_id)
        .order_by(desc(Exercise.created_at), desc(Exercise.id))
    )
    return list(result.scalars().all())


async def create_exercise(s: AsyncSession, user_id: int, body: ExerciseIn) -> Exercise:
    if not body.name:
        raise ValidationError("Exercise name is required")
    exercise = Exercise(
        user_id=user_id,
        name=body.name,
        exercise_type=body.exercise_type,
        **{field: getattr(body, field) or None for field in _OPTIONAL_TEXT_FIELDS},
    )
    s.add(exercise)
    await s.commit()
    await s.refresh(exercise)
    log.info(f"User {user_id} created {exercise.exercise_type} exercise {exercise.id}")
    return exercise


async def update_exercise(
    s: AsyncSession, user_id: int, exercise_id: int, body: ExerciseIn
) -> Exercise:
    exercise = await get_exercise(s, user_id, exercise_id)
    changes = body.changes()
    if "name" in changes and not changes["name"]:
        raise ValidationError("Exercise name is required")

    for field, value in changes.items():
        if field in _OPTIONAL_TEXT_FIELDS:
            value = value or None
        setattr(exercise, field, value)
    await s.commit()
    await s.refresh(exercise)
    return exercise


async def delete_exercise(s: AsyncSession, user_id: int, exercise_id: int) -> None:
    exercise = await get_exercise(s, user_id, exercise_id)
    # Dependents first, same transaction
    await s.execute(
        delete(WorkoutLog).where(
            WorkoutLog.exercise_id == exercise.id, WorkoutLog.user_id == user_id
        )
    )
    await s.delete(exercise)
    await s.commit()
    log.info(f"User {user_id} deleted exercise {exercise_id}")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
router = APIRouter(prefix="/exercises", tags=["exercises"])


@router.get("", response_model=ExerciseListOut)
async def list_exercises_route(
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> ExerciseListOut:
    rows = await list_exercises(s, user_id)
    return ExerciseListOut(exercises=[ExerciseOut.model_validate(e) for e in rows])


@router.get("/{exercise_id:int}", response_model=ExerciseEnvelope)
async def get_exercise_route(
    exercise_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> ExerciseEnvelope:
    exercise = await get_exercise(s, user_id, exercise_id)
    return ExerciseEnvelope(exercise=ExerciseOut.model_validate(exercise))


@router.post("", response_model=ExerciseEnvelope, status_code=201)
async def create_exercise_route(
    body: ExerciseIn,
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> ExerciseEnvelope:
    exercise = await create_exercise(s, user_id, body)
    return ExerciseEnvelope(exercise=ExerciseOut.model_validate(exercise))


@router.put("/{exercise_id:int}", response_model=ExerciseEnvelope)
async def update_exercise_route(
    body: ExerciseIn,
    exercise_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> ExerciseEnvelope:
    exercise = await update_exercise(s, user_id, exercise_id, body)
    return ExerciseEnvelope(exercise=ExerciseOut.model_validate(exercise))


@router.delete("/{exercise_id:int}", response_model=MessageOut)
async def delete_exercise_route(
    exercise_id: int = FPath(...),
    user_id: int = Depends(current_user_id),
    s: AsyncSession = Depends(get_session),
) -> MessageOut:
    await delete_exercise(s, user_id, exercise_id)
    return MessageOut(message="Exercise deleted successfully")
