from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class SeasonalAdjustment:
    season: str
    vibe_boost: tuple[str, ...]
    activity_boost: tuple[str, ...]
    penalty_vibes: tuple[str, ...]


SEASONAL_ADJUSTMENTS: dict[str, SeasonalAdjustment] = {
    adj.season: adj
    for adj in (
        SeasonalAdjustment(
            season="봄",
            vibe_boost=("벚꽃", "산책", "피크닉", "야외"),
            activity_boost=("산책", "공원", "카페"),
            penalty_vibes=("실내", "따뜻한"),
        ),
        SeasonalAdjustment(
            season="여름",
            vibe_boost=("시원한", "빙수", "냉면", "물놀이"),
            activity_boost=("실내", "카페", "아이스크림"),
            penalty_vibes=("뜨거운", "국물"),
        ),
        SeasonalAdjustment(
            season="가을",
            vibe_boost=("단풍", "감성", "산책", "분위기"),
            activity_boost=("산책", "카페", "전시"),
            penalty_vibes=(),
        ),
        SeasonalAdjustment(
            season="겨울",
            vibe_boost=("따뜻한", "국물", "핫초코", "실내"),
            activity_boost=("실내", "카페", "국밥"),
            penalty_vibes=("야외", "산책"),
        ),
    )
}

VIBE_BOOST = 0.15
VIBE_PENALTY = 0.1
ACTIVITY_BOOST = 0.1
MAX_ADJUSTMENT = 0.3


def season_boost(
    season: str | None, vibes: Iterable[str], activity_type: str | None
) -> float:
    """Bounded score adjustment for a season label, in [-0.3, 0.3].

    Each vibe containing a boost keyword adds 0.15 and each vibe containing a
    penalty keyword subtracts 0.1; an activity containing one of the season's
    activity keywords adds 0.1. Unknown or missing seasons yield 0.
    """
    if not season:
        return 0.0
    adjustment = SEASONAL_ADJUSTMENTS.get(season)
    if adjustment is None:
        return 0.0

    boost = 0.0
    for vibe in vibes:
        if any(keyword in vibe for keyword in adjustment.vibe_boost):
            boost += VIBE_BOOST
        if any(keyword in vibe for keyword in adjustment.penalty_vibes):
            boost -= VIBE_PENALTY

    if activity_type and any(keyword in activity_type for keyword in adjustment.activity_boost):
        boost += ACTIVITY_BOOST

    return max(-MAX_ADJUSTMENT, min(MAX_ADJUSTMENT, boost))


def detect_current_season(today: date | None = None) -> str:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "봄"
    if 6 <= month <= 8:
        return "여름"
    if 9 <= month <= 11:
        return "가을"
    return "겨울"


__all__ = ["SEASONAL_ADJUSTMENTS", "season_boost", "detect_current_season"]
