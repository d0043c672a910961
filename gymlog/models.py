# =============================================================================
# SQLAlchemy models: users own exercises, exercises own workout logs,
# plus the shared public exercise catalog
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

STRENGTH = "strength"
CARDIO = "cardio"
EXERCISE_TYPES = (STRENGTH, CARDIO)
DEFAULT_EXERCISE_TYPE = STRENGTH


def utcnow() -> datetime:
    # Naive UTC; SQLite has no timezone-aware column type
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    recovery_uuid: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)
    recovery_secret_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Exercise(Base):
    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    exercise_type: Mapped[str] = mapped_column(
        String, nullable=False, default=DEFAULT_EXERCISE_TYPE, server_default=DEFAULT_EXERCISE_TYPE
    )
    muscle_group: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    equipment: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class WorkoutLog(Base):
    __tablename__ = "workout_logs"
    __table_args__ = (
        Index("idx_workout_logs_user_exercise_date", "user_id", "exercise_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    sets: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reps: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rest_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # strength only
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    weight_per_set: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON list

    # cardio only
    distance: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pace: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lap_times: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON list

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class PublicExercise(Base):
    """Shared, read-only catalog entry; seeded at startup, owned by no one."""

    __tablename__ = "public_exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    exercise_type: Mapped[str] = mapped_column(
        String, nullable=False, default=DEFAULT_EXERCISE_TYPE, server_default=DEFAULT_EXERCISE_TYPE
    )
    muscle_group: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    equipment: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
