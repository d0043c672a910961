# =============================================================================
# Pydantic schemas: request bodies, response envelopes
# =============================================================================

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import DEFAULT_EXERCISE_TYPE, EXERCISE_TYPES

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_date(v: str) -> str:
    if not _DATE_RE.match(v):
        raise ValueError("date must be YYYY-MM-DD format")
    try:
        datetime.strptime(v, "%Y-%m-%d")
    except ValueError:
        raise ValueError("date is not a valid calendar date")
    return v


def coerce_exercise_type(v: Any) -> str:
    """Unknown or missing types become ``strength`` instead of being rejected."""
    return v if v in EXERCISE_TYPES else DEFAULT_EXERCISE_TYPE


class PatchModel(BaseModel):
    """Body where "not sent" and "sent as null" mean different things."""

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class MessageOut(BaseModel):
    message: str


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------
class CredentialsIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ResetPasswordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recovery_uuid: Optional[str] = Field(None, alias="recoveryUuid")
    recovery_secret: Optional[str] = Field(None, alias="recoverySecret")
    new_password: Optional[str] = Field(None, alias="newPassword")


class UserOut(BaseModel):
    id: int
    username: str


class CurrentUserOut(UserOut):
    created_at: Optional[datetime] = None


class RecoveryOut(BaseModel):
    uuid: str
    secret: str


class RegisterOut(BaseModel):
    message: str
    user: UserOut
    recovery: RecoveryOut


class LoginOut(BaseModel):
    message: str
    user: UserOut


class MeOut(BaseModel):
    user: CurrentUserOut


# -----------------------------------------------------------------------------
# Exercises
# -----------------------------------------------------------------------------
class ExerciseIn(PatchModel):
    name: Optional[str] = None
    exercise_type: str = DEFAULT_EXERCISE_TYPE
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    video_link: Optional[str] = None
    image_link: Optional[str] = None

    @field_validator("exercise_type", mode="before")
    @classmethod
    def normalize_exercise_type(cls, v: Any) -> str:
        return coerce_exercise_type(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None


class ExerciseOut(BaseModel):
    id: int
    user_id: int
    name: str
    exercise_type: str
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    video_link: Optional[str] = None
    image_link: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ExerciseListOut(BaseModel):
    exercises: List[ExerciseOut] = Field(default_factory=list)


class ExerciseEnvelope(BaseModel):
    exercise: ExerciseOut


class PublicExerciseOut(BaseModel):
    id: int
    name: str
    exercise_type: str
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    video_link: Optional[str] = None
    image_link: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PublicExerciseListOut(BaseModel):
    exercises: List[PublicExerciseOut] = Field(default_factory=list)


class PublicExerciseEnvelope(BaseModel):
    exercise: PublicExerciseOut


# -----------------------------------------------------------------------------
# Workout logs
# -----------------------------------------------------------------------------
class WorkoutLogIn(PatchModel):
    """One dated performance record. Which fields are allowed depends on the exercise."""
    # NaN/Infinity have no JSON form to store
    model_config = ConfigDict(allow_inf_nan=False)

    exercise_id: Optional[int] = None
    date: Optional[str] = None
    sets: Optional[int] = None
    reps: Optional[int] = None
    rest_time: Optional[int] = None
    notes: Optional[str] = None
    weight: Optional[float] = None
    weight_per_set: Optional[List[float]] = None
    distance: Optional[float] = None
    duration: Optional[int] = None
    pace: Optional[float] = None
    lap_times: Optional[List[float]] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return check_date(v) if v is not None else None


class WorkoutLogOut(BaseModel):
    id: int
    user_id: int
    exercise_id: int
    exercise_name: str
    exercise_type: str
    date: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    rest_time: Optional[int] = None
    notes: Optional[str] = None
    weight: Optional[float] = None
    weight_per_set: Optional[List[float]] = None
    distance: Optional[float] = None
    duration: Optional[int] = None
    pace: Optional[float] = None
    lap_times: Optional[List[float]] = None
    created_at: datetime


class WorkoutLogListOut(BaseModel):
    logs: List[WorkoutLogOut] = Field(default_factory=list)


class WorkoutLogEnvelope(BaseModel):
    log: WorkoutLogOut


class LastValuesOut(BaseModel):
    """Defaults for the next entry of the same exercise."""
    date: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    rest_time: Optional[int] = None
    weight: Optional[float] = None
    weight_per_set: Optional[List[float]] = None
    distance: Optional[float] = None
    duration: Optional[int] = None
    pace: Optional[float] = None
    lap_times: Optional[List[float]] = None


class LastLogOut(BaseModel):
    lastLog: Optional[LastValuesOut] = None


# -----------------------------------------------------------------------------
# Progress & reports
# -----------------------------------------------------------------------------
class ProgressPointOut(BaseModel):
    id: int
    date: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    rest_time: Optional[int] = None
    notes: Optional[str] = None
    weight: Optional[float] = None
    weight_per_set: Optional[List[float]] = None
    distance: Optional[float] = None
    duration: Optional[int] = None
    pace: Optional[float] = None
    lap_times: Optional[List[float]] = None


class ProgressOut(BaseModel):
    progress: List[ProgressPointOut] = Field(default_factory=list)


class DayLogsOut(BaseModel):
    date: str
    logs: List[WorkoutLogOut] = Field(default_factory=list)


class WeeklySummaryOut(BaseModel):
    week_start: str
    week_end: str
    total_logs: int
    days: List[DayLogsOut] = Field(default_factory=list)


class CsvExportOut(BaseModel):
    filename: str
    rows: int
    csv: str


class HealthOut(BaseModel):
    ok: bool = True
    db_connected: bool = True
    db_type: str
    timestamp: str
