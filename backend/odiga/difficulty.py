from __future__ import annotations

from .settings import settings

EASY = "★☆☆"
MEDIUM = "★★☆"
HARD = "★★★"

DIFFICULTY_LABELS = {
    EASY: "쉬움",
    MEDIUM: "보통",
    HARD: "도전",
}


def get_difficulty(
    distance_meters: float,
    *,
    easy_max: float = settings.DIFFICULTY_EASY_MAX_METERS,
    medium_max: float = settings.DIFFICULTY_MEDIUM_MAX_METERS,
) -> str:
    """Tier a course by total walking distance: under 800 m, up to 1800 m, beyond."""
    if distance_meters < easy_max:
        return EASY
    if distance_meters <= medium_max:
        return MEDIUM
    return HARD


def difficulty_label(difficulty: str) -> str:
    return DIFFICULTY_LABELS.get(difficulty, difficulty)
