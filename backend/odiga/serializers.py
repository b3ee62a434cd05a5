from __future__ import annotations

from dataclasses import asdict

from .difficulty import difficulty_label
from .domain import Course, Intent, Place, ScoredPlace, SearchSlots
from .schemas import (
    CourseOut,
    CourseStepOut,
    IntentOut,
    PlaceOut,
    ScoreBreakdownOut,
    SearchSlotsOut,
)


def place_to_out(place: Place, scored: ScoredPlace | None = None) -> PlaceOut:
    return PlaceOut(
        id=place.id,
        name=place.name,
        region=place.region,
        sub_region=place.sub_region,
        province=place.province,
        category_main=place.category_main,
        category_sub=place.category_sub,
        lat=place.lat,
        lon=place.lon,
        address=place.address,
        memo=place.memo,
        short_desc=place.short_desc,
        tags=list(place.tags),
        rating=place.rating,
        price_level=place.price_level,
        image_url=place.image_url,
        score=round(scored.score, 4) if scored else None,
        score_breakdown=ScoreBreakdownOut(**asdict(scored.breakdown)) if scored else None,
    )


def scored_to_out(scored: ScoredPlace) -> PlaceOut:
    return place_to_out(scored.place, scored)


def course_to_out(course: Course) -> CourseOut:
    return CourseOut(
        id=course.id,
        steps=[
            CourseStepOut(
                label=step.label,
                place=scored_to_out(step.place),
                distance_from_prev=step.distance_from_prev,
            )
            for step in course.steps
        ],
        total_distance=course.total_distance,
        difficulty=course.difficulty,
        difficulty_label=difficulty_label(course.difficulty),
        mode=course.mode,
        vibes=list(course.vibes),
        total_score=round(course.total_score, 4),
    )


def intent_to_out(intent: Intent) -> IntentOut:
    payload = asdict(intent)
    payload["vibe"] = list(intent.vibe)
    return IntentOut(**payload)


def slots_to_out(slots: SearchSlots) -> SearchSlotsOut:
    payload = asdict(slots)
    for key in ("location_keywords", "exclude_category_main", "constraints", "keywords"):
        payload[key] = list(payload[key])
    return SearchSlotsOut(**payload)
