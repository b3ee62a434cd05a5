"""
Progressive query relaxation for free-text search.

``run_fallback_search`` executes a structured query and, while it comes back
empty, loosens it one step at a time:

    0   the query as parsed (plus region hint / detail text folded in)
    1   drop non-critical constraints
    2   drop the no-wait constraint, then every remaining constraint
    3   widen a sub-category to its parent category
    4   drop trailing location keywords one by one, then all of them
    5   top-rated places regardless of the query

Each step works on a fresh copy of the slots; constraints and filters only
ever shrink. A failing executor aborts the ladder with
``SearchExecutionError``; only a genuinely empty result moves it forward.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import replace

from .categories import CATEGORY_SUB_TO_MAIN
from .domain import FallbackResult, Place, SearchQuery, SearchSlots
from .errors import SearchExecutionError
from .settings import settings

logger = logging.getLogger(__name__)

ExecuteQuery = Callable[[SearchQuery], Awaitable[Sequence[Place]]]
FetchTopRated = Callable[[], Awaitable[Sequence[Place]]]

NON_CRITICAL_CONSTRAINTS = ("체인점_제외", "관광지_제외", "가성비", "비싼_곳_제외", "빠른_회전")
NO_WAIT_CONSTRAINT = "웨이팅_없음"
DETAILS_INTENT = "ASK_DETAILS"

NOTE_NON_CRITICAL = "일부 조건을 완화했어요"
NOTE_NO_WAIT = "웨이팅 조건을 제외했어요"
NOTE_ALL_CONSTRAINTS = "조건을 모두 완화했어요"
NOTE_LOCATION_DROPPED = "지역 조건을 제외하고 검색했어요"
NOTE_TOP_RATED = "조건에 맞는 장소가 없어 인기 장소를 보여드려요"


def note_category_widened(category_sub: str, category_main: str) -> str:
    return f"{category_sub} → {category_main} 전체로 검색했어요"


def note_location_widened(removed: str) -> str:
    return f'"{removed}" 범위를 넓혔어요'


def prepare_slots(
    query: SearchQuery,
    original_text: str,
    region_hint: str | None,
    *,
    whole_region: str = settings.WHOLE_REGION_SENTINEL,
) -> SearchSlots:
    """Level 0 slots: fold the raw text into detail lookups, default the location."""
    slots = query.slots
    text = original_text.strip()
    if query.intent == DETAILS_INTENT and text and text not in slots.keywords:
        slots = replace(slots, keywords=(*slots.keywords, text))
    if not slots.location_keywords and region_hint and region_hint != whole_region:
        slots = replace(slots, location_keywords=(region_hint,))
    return slots


class _Ladder:
    def __init__(
        self,
        query: SearchQuery,
        execute_query: ExecuteQuery,
        fetch_top_rated: FetchTopRated,
    ) -> None:
        self.query = query
        self.execute_query = execute_query
        self.fetch_top_rated = fetch_top_rated
        self.notes: list[str] = []

    async def run(self, slots: SearchSlots, level: int) -> list[Place]:
        try:
            places = await self.execute_query(replace(self.query, slots=slots))
        except SearchExecutionError:
            raise
        except Exception as exc:
            logger.warning("Search execution failed at level %s: %s", level, exc)
            raise SearchExecutionError(f"search failed at level {level}", level=level) from exc
        return list(places)

    async def top_rated(self) -> list[Place]:
        try:
            places = await self.fetch_top_rated()
        except Exception as exc:
            logger.warning("Top-rated fetch failed: %s", exc)
            raise SearchExecutionError("top-rated fetch failed", level=5) from exc
        return list(places)

    def result(self, places: list[Place], level: int) -> FallbackResult:
        return FallbackResult(
            places=places,
            fallback_applied=level > 0,
            fallback_notes=list(self.notes),
            fallback_level=level,
        )


async def run_fallback_search(
    query: SearchQuery,
    original_text: str,
    region_hint: str | None,
    execute_query: ExecuteQuery,
    fetch_top_rated: FetchTopRated,
    *,
    category_sub_to_main: Mapping[str, str] = CATEGORY_SUB_TO_MAIN,
    whole_region: str = settings.WHOLE_REGION_SENTINEL,
) -> FallbackResult:
    ladder = _Ladder(query, execute_query, fetch_top_rated)
    slots = prepare_slots(query, original_text, region_hint, whole_region=whole_region)

    places = await ladder.run(slots, 0)
    if places:
        return ladder.result(places, 0)

    # Level 1: non-critical constraints
    if slots.constraints:
        kept = tuple(c for c in slots.constraints if c not in NON_CRITICAL_CONSTRAINTS)
        if len(kept) < len(slots.constraints):
            slots = replace(slots, constraints=kept)
            ladder.notes.append(NOTE_NON_CRITICAL)
            places = await ladder.run(slots, 1)
            if places:
                return ladder.result(places, 1)

    # Level 2: no-wait first, then everything left
    if NO_WAIT_CONSTRAINT in slots.constraints:
        slots = replace(
            slots, constraints=tuple(c for c in slots.constraints if c != NO_WAIT_CONSTRAINT)
        )
        ladder.notes.append(NOTE_NO_WAIT)
        places = await ladder.run(slots, 2)
        if places:
            return ladder.result(places, 2)
    if slots.constraints:
        slots = replace(slots, constraints=())
        ladder.notes.append(NOTE_ALL_CONSTRAINTS)
        places = await ladder.run(slots, 2)
        if places:
            return ladder.result(places, 2)

    # Level 3: sub-category -> parent category
    if slots.category_sub:
        category_main = category_sub_to_main.get(slots.category_sub)
        if category_main:
            ladder.notes.append(note_category_widened(slots.category_sub, category_main))
            slots = replace(slots, category_sub=None, category_main=category_main)
            places = await ladder.run(slots, 3)
            if places:
                return ladder.result(places, 3)

    # Level 4: widen the location
    while len(slots.location_keywords) > 1:
        removed = slots.location_keywords[-1]
        slots = replace(slots, location_keywords=slots.location_keywords[:-1])
        ladder.notes.append(note_location_widened(removed))
        places = await ladder.run(slots, 4)
        if places:
            return ladder.result(places, 4)
    if slots.location_keywords:
        slots = replace(slots, location_keywords=())
        ladder.notes.append(NOTE_LOCATION_DROPPED)
        places = await ladder.run(slots, 4)
        if places:
            return ladder.result(places, 4)

    # Level 5: give up on the query
    ladder.notes.append(NOTE_TOP_RATED)
    places = await ladder.top_rated()
    if not places:
        logger.info("Search exhausted every relaxation level without results")
    return ladder.result(places, 5)


__all__ = [
    "NON_CRITICAL_CONSTRAINTS",
    "run_fallback_search",
    "prepare_slots",
]
