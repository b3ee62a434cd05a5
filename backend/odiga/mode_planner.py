from __future__ import annotations

from .domain import ModeConfig

# (max party size, mode) in ascending order; anything larger is a party
MODE_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (1, "solo"),
    (2, "date"),
    (5, "group"),
)
LARGEST_MODE = "party"
DEFAULT_STEPS = 3

MODE_STEP_MAP: dict[str, int] = {
    "solo": 2,
    "date": 3,
    "group": 3,
    "party": 4,
}

MODE_LABELS: dict[str, tuple[str, ...]] = {
    "solo": ("탐색", "마무리"),
    "date": ("시작", "메인", "마무리"),
    "group": ("집합", "메인", "마무리"),
    "party": ("저녁", "2차", "3차", "마무리"),
}


def mode_from_people_count(count: int) -> str:
    for limit, mode in MODE_THRESHOLDS:
        if count <= limit:
            return mode
    return LARGEST_MODE


def generic_labels(steps: int) -> tuple[str, ...]:
    return tuple(f"Step {i + 1}" for i in range(steps))


def plan_mode(people_count: int, mode_override: str | None = None) -> ModeConfig:
    mode = mode_override or mode_from_people_count(people_count)
    steps = MODE_STEP_MAP.get(mode, DEFAULT_STEPS)
    labels = MODE_LABELS.get(mode) or generic_labels(steps)
    return ModeConfig(mode=mode, steps=steps, labels=labels)
