"""
Multi-stop course assembly.

Courses are built greedily from score-ordered candidates. Every pair of stops
in a course is at least ``min_spacing`` meters apart (walking estimate), and
no two courses from one call share the same set of places. The set of
combinations already handed out is threaded through explicitly so each pick
is a pure function of its inputs.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from .categories import (
    ATTRACTION_BUCKET,
    CAFE_BUCKET,
    FOOD_BUCKET,
    ActivityBucket,
    activity_bucket,
)
from .difficulty import get_difficulty
from .distance import WALKING_DETOUR_FACTOR, walking_distance_meters
from .domain import Course, CourseStep, ModeConfig, ScoredPlace
from .settings import settings

logger = logging.getLogger(__name__)

MIN_STOP_SPACING_METERS = settings.MIN_STOP_SPACING_METERS
MAX_ATTEMPTS = settings.COURSE_MAX_ATTEMPTS
ANCHOR_STRIDE = 2

Combination = frozenset[str]


def combination_key(places: Sequence[ScoredPlace]) -> Combination:
    return frozenset(place.id for place in places)


def desired_buckets(step_count: int, primary_activity_type: str | None) -> tuple[ActivityBucket, ...]:
    """Activity mix a course should cover given the requested activity."""
    if primary_activity_type == CAFE_BUCKET:
        primary: ActivityBucket = CAFE_BUCKET
    elif primary_activity_type == ATTRACTION_BUCKET:
        primary = ATTRACTION_BUCKET
    else:
        primary = FOOD_BUCKET

    if step_count <= 1:
        return (primary,)
    if step_count == 2:
        if primary == ATTRACTION_BUCKET:
            return (ATTRACTION_BUCKET, CAFE_BUCKET)
        return (primary, ATTRACTION_BUCKET)
    if primary == CAFE_BUCKET:
        return (CAFE_BUCKET, ATTRACTION_BUCKET)
    if primary == ATTRACTION_BUCKET:
        return (ATTRACTION_BUCKET, CAFE_BUCKET)
    return (FOOD_BUCKET, ATTRACTION_BUCKET)


def satisfies_buckets(
    picked: Sequence[ScoredPlace],
    buckets: Sequence[ActivityBucket],
    *,
    require_attraction: bool = True,
) -> bool:
    have = Counter(activity_bucket(place.place) for place in picked)
    need = Counter(buckets)
    for bucket, count in need.items():
        if bucket == ATTRACTION_BUCKET and not require_attraction:
            continue
        if have[bucket] < count:
            return False
    return True


def _far_enough(
    candidate: ScoredPlace,
    picked: Sequence[ScoredPlace],
    min_spacing: float,
    detour_factor: float,
) -> bool:
    return all(
        walking_distance_meters(existing, candidate, detour_factor) >= min_spacing
        for existing in picked
    )


def pick_diverse_steps(
    places: Sequence[ScoredPlace],
    needed: int,
    used: frozenset[Combination],
    *,
    min_spacing: float = MIN_STOP_SPACING_METERS,
    max_attempts: int = MAX_ATTEMPTS,
    detour_factor: float = WALKING_DETOUR_FACTOR,
    buckets: Sequence[ActivityBucket] | None = None,
) -> tuple[ScoredPlace, ...] | None:
    """Return ``needed`` well-spaced places not already used, or None.

    Attempt ``n`` anchors on ``places[n * 2]`` and scans forward, keeping each
    candidate that is far enough from everything picked so far.
    """
    require_attraction = any(
        activity_bucket(place.place) == ATTRACTION_BUCKET for place in places
    )
    for attempt in range(max_attempts):
        offset = attempt * ANCHOR_STRIDE
        if offset >= len(places):
            break
        picked = [places[offset]]
        for candidate in places[offset + 1 :]:
            if len(picked) >= needed:
                break
            if _far_enough(candidate, picked, min_spacing, detour_factor):
                picked.append(candidate)

        if len(picked) != needed:
            continue
        if buckets and not satisfies_buckets(
            picked, buckets, require_attraction=require_attraction
        ):
            continue
        if combination_key(picked) in used:
            continue
        return tuple(picked)
    return None


def build_course_steps(
    places: Sequence[ScoredPlace],
    labels: Sequence[str],
    detour_factor: float = WALKING_DETOUR_FACTOR,
) -> tuple[CourseStep, ...]:
    steps: list[CourseStep] = []
    for index, place in enumerate(places):
        distance_from_prev: int | None = None
        if index > 0:
            distance_from_prev = round(
                walking_distance_meters(places[index - 1], place, detour_factor)
            )
        label = labels[index] if index < len(labels) else f"Step {index + 1}"
        steps.append(CourseStep(label=label, place=place, distance_from_prev=distance_from_prev))
    return tuple(steps)


def assemble_course(
    course_id: int,
    places: Sequence[ScoredPlace],
    mode_config: ModeConfig,
    vibes: Sequence[str],
    detour_factor: float = WALKING_DETOUR_FACTOR,
) -> Course:
    steps = build_course_steps(places, mode_config.labels, detour_factor)
    total_distance = sum(step.distance_from_prev or 0 for step in steps)
    total_score = sum(step.place.score for step in steps) / len(steps)
    return Course(
        id=course_id,
        steps=steps,
        total_distance=total_distance,
        difficulty=get_difficulty(total_distance),
        mode=mode_config.mode,
        vibes=tuple(vibes),
        total_score=total_score,
    )


def build_courses(
    scored_places: Sequence[ScoredPlace],
    mode_config: ModeConfig,
    vibes: Sequence[str],
    count: int = 3,
    *,
    primary_activity_type: str | None = None,
    min_spacing: float = MIN_STOP_SPACING_METERS,
    max_attempts: int = MAX_ATTEMPTS,
    detour_factor: float = WALKING_DETOUR_FACTOR,
) -> list[Course]:
    """Build up to ``count`` distinct, spatially diverse courses.

    With fewer candidates than steps, returns a single best-effort course over
    whatever is available (no spacing check), or nothing for an empty input.
    If no spaced pick exists at all, the top candidates form the one course.
    When ``primary_activity_type`` is given, picks that also mix in the
    complementary activity buckets are preferred; the mix is dropped for a
    course if no spaced pick can satisfy it.
    """
    if len(scored_places) < mode_config.steps:
        if not scored_places:
            return []
        logger.debug(
            "Under-supplied course: %s candidates for %s steps",
            len(scored_places),
            mode_config.steps,
        )
        return [
            assemble_course(
                1, scored_places[: mode_config.steps], mode_config, vibes, detour_factor
            )
        ]

    buckets = (
        desired_buckets(mode_config.steps, primary_activity_type)
        if primary_activity_type
        else None
    )
    courses: list[Course] = []
    used: frozenset[Combination] = frozenset()
    options = dict(
        min_spacing=min_spacing, max_attempts=max_attempts, detour_factor=detour_factor
    )
    for index in range(count):
        picked = pick_diverse_steps(
            scored_places, mode_config.steps, used, buckets=buckets, **options
        )
        if picked is None and buckets:
            picked = pick_diverse_steps(scored_places, mode_config.steps, used, **options)
        if picked is None and not courses:
            logger.debug("No spaced pick among %s candidates", len(scored_places))
            picked = tuple(scored_places[: mode_config.steps])
        if picked is None:
            break
        courses.append(assemble_course(index + 1, picked, mode_config, vibes, detour_factor))
        used = used | {combination_key(picked)}

    if len(courses) < count:
        logger.debug("Built %s of %s requested courses", len(courses), count)
    return courses


__all__ = ["build_courses", "pick_diverse_steps", "combination_key", "desired_buckets"]
