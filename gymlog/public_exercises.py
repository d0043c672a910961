# =============================================================================
# Public exercise catalog: shared, read-only, no session needed
# =============================================================================

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from fastapi import Path as FPath
from sqlalchemy import asc, select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session
from .errors import NotFoundError
from .models import PublicExercise
from .schemas import PublicExerciseEnvelope, PublicExerciseListOut, PublicExerciseOut


async def list_public_exercises(s: AsyncSession) -> List[PublicExercise]:
    result = await s.execute(
        select(PublicExercise).order_by(asc(PublicExercise.name), asc(PublicExercise.id))
    )
    return list(result.scalars().all())


async def get_public_exercise(s: AsyncSession, exercise_id: int) -> PublicExercise:
    exercise = await s.get(PublicExercise, exercise_id)
    if exercise is None:
        raise NotFoundError("Public exercise not found")
    return exercise


router = APIRouter(prefix="/public-exercises", tags=["public-exercises"])


@router.get("", response_model=PublicExerciseListOut)
async def list_public_exercises_route(
    s: AsyncSession = Depends(get_session),
) -> PublicExerciseListOut:
    rows = await list_public_exercises(s)
    return PublicExerciseListOut(exercises=[PublicExerciseOut.model_validate(e) for e in rows])


@router.get("/{exercise_id:int}", response_model=PublicExerciseEnvelope)
async def get_public_exercise_route(
    exercise_id: int = FPath(...),
    s: AsyncSession = Depends(get_session),
) -> PublicExerciseEnvelope:
    exercise = await get_public_exercise(s, exercise_id)
    return PublicExerciseEnvelope(exercise=PublicExerciseOut.model_validate(exercise))
