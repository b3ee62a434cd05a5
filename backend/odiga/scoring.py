from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import replace

from .domain import Intent, Place, ScoreBreakdown, ScoredPlace
from .season import season_boost
from .settings import DEFAULT_WEIGHTS, ScoringWeights

# Real proximity to a reference point is not modelled yet; every place gets
# the same neutral distance term until one is plugged in.
DISTANCE_PLACEHOLDER = 0.5
NEUTRAL_SCORE = 0.5

JJEOP_BASE = 0.5
JJEOP_BONUSES: dict[str, float] = {
    "date_ok": 0.15,
    "quiet": 0.10,
    "solo_ok": 0.10,
    "reservation": 0.05,
}

FEEDBACK_HIT_PENALTY = 0.12
FEEDBACK_MAX_PENALTY = 0.45
FEEDBACK_STOPWORDS = frozenset(
    {
        "추천", "다시", "별로", "마음", "안", "그냥", "좀", "너무", "같아요", "같아", "입니다",
        "장소", "코스", "원해요", "원함", "좋아요", "싫어요", "싶어요", "찾고", "찾기",
    }
)
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")


def score_vibe(place: Place, vibes: Sequence[str]) -> float:
    if not vibes:
        return NEUTRAL_SCORE
    search_text = " ".join(
        [*(tag.lower() for tag in place.tags), place.memo.lower(), place.short_desc.lower()]
    )
    matches = sum(1 for vibe in vibes if vibe.lower() in search_text)
    return matches / len(vibes)


def score_activity(place: Place, activity_type: str | None) -> float:
    if not activity_type:
        return NEUTRAL_SCORE
    needle = activity_type.lower()
    category = place.category.lower()
    if needle in category:
        return 1.0
    if needle in " ".join(place.tags).lower():
        return 0.7
    return 0.1


def score_popularity(place: Place) -> float:
    return min(1.0, (place.rating or 0.0) / 5.0)


def score_jjeop(place: Place) -> float:
    score = JJEOP_BASE
    for flag, bonus in JJEOP_BONUSES.items():
        if place.has_feature(flag):
            score += bonus
    return min(1.0, score)


def score_season(intent: Intent) -> float:
    return NEUTRAL_SCORE + season_boost(intent.season, intent.vibe, intent.activity_type)


def score_place(
    place: Place,
    intent: Intent,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    distance_term: float = DISTANCE_PLACEHOLDER,
) -> ScoredPlace:
    breakdown = ScoreBreakdown(
        vibe_match=score_vibe(place, intent.vibe),
        distance=distance_term,
        jjeop_level=score_jjeop(place),
        popularity=score_popularity(place),
        season=score_season(intent),
        activity_match=score_activity(place, intent.activity_type),
    )
    total = (
        breakdown.vibe_match * weights.vibe
        + breakdown.distance * weights.distance
        + breakdown.jjeop_level * weights.jjeop
        + breakdown.popularity * weights.popularity
        + breakdown.season * weights.season
        + breakdown.activity_match * weights.activity
    )
    return ScoredPlace(place=place, score=total, breakdown=breakdown)


def score_places(
    places: Iterable[Place],
    intent: Intent,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    distance_term: float = DISTANCE_PLACEHOLDER,
) -> list[ScoredPlace]:
    """Score every place and order best-first; equal scores keep input order."""
    scored = [score_place(p, intent, weights, distance_term=distance_term) for p in places]
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored


def feedback_keywords(feedback: str | None) -> list[str]:
    """Meaningful tokens of a "not this" comment (two chars or longer, no stopwords)."""
    if not feedback:
        return []
    cleaned = _PUNCTUATION_RE.sub(" ", feedback.lower())
    return [
        token
        for token in (part.strip() for part in cleaned.split())
        if len(token) >= 2 and token not in FEEDBACK_STOPWORDS
    ]


def feedback_penalty(place: Place, keywords: Sequence[str]) -> float:
    if not keywords:
        return 0.0
    search_text = " ".join(
        [place.name, place.memo, place.short_desc, " ".join(place.tags)]
    ).lower()
    hits = sum(1 for keyword in keywords if keyword in search_text)
    return min(FEEDBACK_MAX_PENALTY, hits * FEEDBACK_HIT_PENALTY)


def apply_feedback(scored: Sequence[ScoredPlace], keywords: Sequence[str]) -> list[ScoredPlace]:
    """Demote places matching feedback keywords and re-sort (stable)."""
    if not keywords:
        return list(scored)
    adjusted = [
        replace(item, score=item.score - feedback_penalty(item.place, keywords))
        for item in scored
    ]
    adjusted.sort(key=lambda item: item.score, reverse=True)
    return adjusted


def text_hash(text: str) -> int:
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def rotate_for_feedback(scored: Sequence[ScoredPlace], feedback: str | None) -> list[ScoredPlace]:
    """Shift the head of the list by up to two places so a retry with feedback
    does not resurface the same leader. Deterministic for a given comment."""
    items = list(scored)
    if not feedback or len(items) <= 1:
        return items
    rotate_by = text_hash(feedback) % min(3, len(items))
    if rotate_by == 0:
        return items
    return items[rotate_by:] + items[:rotate_by]


__all__ = [
    "DISTANCE_PLACEHOLDER",
    "score_place",
    "score_places",
    "feedback_keywords",
    "apply_feedback",
    "rotate_for_feedback",
]
