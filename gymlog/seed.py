# =============================================================================
# Public exercise catalog seed: inserted once, only into an empty table
# =============================================================================

from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CARDIO, STRENGTH, PublicExercise

log = logging.getLogger("gymlog.seed")

PUBLIC_EXERCISES: List[Dict[str, str]] = [
    {
        "name": "Bench Press",
        "exercise_type": STRENGTH,
        "muscle_group": "Chest, Triceps, Shoulders",
        "equipment": "Barbell, Bench",
        "description": "A compound exercise that targets the chest, shoulders, and triceps.",
        "instructions": "Lie on bench, grip bar slightly wider than shoulders. Lower bar to chest, then press up.",
    },
    {
        "name": "Squat",
        "exercise_type": STRENGTH,
        "muscle_group": "Quadriceps, Glutes, Hamstrings",
        "equipment": "Barbell",
        "description": "A fundamental lower body exercise targeting the quadriceps, glutes, and hamstrings.",
        "instructions": "Stand with feet shoulder-width apart, bar on upper back. Lower by bending knees and hips, then stand up.",
    },
    {
        "name": "Deadlift",
        "exercise_type": STRENGTH,
        "muscle_group": "Back, Glutes, Hamstrings",
        "equipment": "Barbell",
        "description": "A compound exercise that works the entire posterior chain.",
        "instructions": "Stand with feet hip-width apart, bar over mid-foot. Hinge at hips, grip bar, then lift by extending hips and knees.",
    },
    {
        "name": "Overhead Press",
        "exercise_type": STRENGTH,
        "muscle_group": "Shoulders, Triceps",
        "equipment": "Barbell",
        "description": "A shoulder-focused exercise that also works the triceps and core.",
        "instructions": "Stand with feet shoulder-width apart, bar at shoulder height. Press bar overhead until arms are fully extended.",
    },
    {
        "name": "Barbell Row",
        "exercise_type": STRENGTH,
        "muscle_group": "Back, Biceps",
        "equipment": "Barbell",
        "description": "A pulling exercise that targets the back muscles and biceps.",
        "instructions": "Bend at hips, grip bar with overhand grip. Pull bar to lower chest/upper abdomen, then lower with control.",
    },
    {
        "name": "Pull-ups",
        "exercise_type": STRENGTH,
        "muscle_group": "Back, Biceps",
        "equipment": "Pull-up Bar",
        "description": "A bodyweight exercise that targets the back and biceps.",
        "instructions": "Hang from bar with palms facing away. Pull body up until chin is over bar, then lower with control.",
    },
    {
        "name": "Dips",
        "exercise_type": STRENGTH,
        "muscle_group": "Triceps, Chest, Shoulders",
        "equipment": "Parallel Bars",
        "description": "A bodyweight exercise targeting the triceps, chest, and shoulders.",
        "instructions": "Support body on parallel bars. Lower by bending arms, then press up to starting position.",
    },
    {
        "name": "Bicep Curls",
        "exercise_type": STRENGTH,
        "muscle_group": "Biceps",
        "equipment": "Dumbbells, Barbell",
        "description": "An isolation exercise targeting the biceps.",
        "instructions": "Stand holding weights at sides. Curl weights up by flexing biceps, then lower with control.",
    },
    {
        "name": "Running",
        "exercise_type": CARDIO,
        "muscle_group": "Full Body",
        "equipment": "None",
        "description": "A cardiovascular exercise that improves endurance and burns calories.",
        "instructions": "Start with a warm-up walk, then gradually increase to running pace. Maintain steady breathing.",
    },
    {
        "name": "Cycling",
        "exercise_type": CARDIO,
        "muscle_group": "Legs, Cardiovascular",
        "equipment": "Bicycle",
        "description": "A low-impact cardiovascular exercise that strengthens the legs.",
        "instructions": "Adjust seat height so leg is almost fully extended at bottom of pedal stroke. Maintain steady cadence.",
    },
    {
        "name": "Rowing",
        "exercise_type": CARDIO,
        "muscle_group": "Full Body",
        "equipment": "Rowing Machine",
        "description": "A full-body cardiovascular exercise that works legs, core, and upper body.",
        "instructions": "Start with legs extended, lean back slightly, pull handle to chest. Return to starting position in reverse order.",
    },
    {
        "name": "Swimming",
        "exercise_type": CARDIO,
        "muscle_group": "Full Body",
        "equipment": "Pool",
        "description": "A full-body, low-impact cardiovascular exercise.",
        "instructions": "Use proper stroke technique. Focus on breathing rhythm and efficient movement through the water.",
    },
]


async def seed_public_exercises(s: AsyncSession) -> int:
    """Insert the catalog if the table is empty. Returns how many rows were added."""
    count = await s.scalar(select(func.count()).select_from(PublicExercise))
    if count:
        return 0
    s.add_all([PublicExercise(**entry) for entry in PUBLIC_EXERCISES])
    await s.commit()
    log.info(f"Seeded {len(PUBLIC_EXERCISES)} public exercises")
    return len(PUBLIC_EXERCISES)
