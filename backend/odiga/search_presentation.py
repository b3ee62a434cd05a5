from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .domain import FallbackResult, SearchQuery

MessageType = Literal["success", "no_results_soft", "need_clarification"]

NO_RESULTS_SUGGESTIONS = (
    "다른 지역으로 검색해보세요",
    "조건을 줄여서 검색해보세요",
    "비슷한 카테고리로 검색해보세요",
)
CLARIFY_SUGGESTIONS = (
    "지역을 포함해서 검색해보세요 (예: 강남 라멘)",
    "음식 종류를 명시해보세요 (예: 혼밥 맛집)",
)

# intent -> (mode, result_limit)
ACTION_OVERRIDES: dict[str, tuple[str, int]] = {
    "ASK_DETAILS": ("explore", 10),
    "ASK_SIMILAR_TO": ("explore", 10),
    "RANDOM_PICK": ("browse", 5),
    "COMPARE_OPTIONS": ("browse", 10),
    "FIND_NEAR_ME": ("browse", 20),
}
DEFAULT_ACTION = ("browse", 50)


@dataclass(slots=True)
class UIHints:
    message_type: MessageType
    message: str
    suggestions: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SearchActions:
    mode: Literal["browse", "explore"]
    should_show_map: bool
    result_limit: int
    fallback_applied: bool
    fallback_notes: list[str]
    fallback_level: int


def generate_ui_hints(
    query: SearchQuery,
    result_count: int,
    fallback_applied: bool,
    fallback_notes: list[str],
) -> UIHints:
    if result_count == 0:
        return UIHints(
            message_type="no_results_soft",
            message="조건에 맞는 장소를 찾지 못했어요.",
            suggestions=list(NO_RESULTS_SUGGESTIONS),
        )
    if query.intent == "CLARIFY_QUERY":
        return UIHints(
            message_type="need_clarification",
            message="검색어가 명확하지 않아요.",
            suggestions=list(CLARIFY_SUGGESTIONS),
        )
    if fallback_applied and fallback_notes:
        return UIHints(message_type="success", message=" / ".join(fallback_notes))
    return UIHints(message_type="success", message=f"{result_count}개의 장소를 찾았어요!")


def generate_search_actions(query: SearchQuery, fallback: FallbackResult) -> SearchActions:
    mode, limit = ACTION_OVERRIDES.get(query.intent, DEFAULT_ACTION)
    return SearchActions(
        mode=mode,  # type: ignore[arg-type]
        should_show_map=True,
        result_limit=limit,
        fallback_applied=fallback.fallback_applied,
        fallback_notes=list(fallback.fallback_notes),
        fallback_level=fallback.fallback_level,
    )
