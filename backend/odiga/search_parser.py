from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from . import llm
from .domain import SearchQuery, SearchSlots, StoreQuery
from .errors import LLMUnavailable
from .settings import settings
from .tags import infer_constraint_flags, sanitize_tags

logger = logging.getLogger(__name__)

CLARIFY_INTENT = "CLARIFY_QUERY"
INTENT_MAP: dict[str, str] = {
    "DISCOVER_RECOMMEND": "DISCOVER_RECOMMEND",
    "REGION_SEARCH": "SEARCH_BY_REGION",
    "CATEGORY_SEARCH": "SEARCH_BY_CATEGORY",
    "DIRECT_PLACE": "ASK_DETAILS",
    "RANDOM_SUGGEST": "RANDOM_PICK",
}
TIME_CONTEXT_MAP: dict[str, str] = {
    "breakfast": "아침",
    "lunch": "점심",
    "dinner": "저녁",
    "late_night": "야식",
}
MAX_LOCATION_KEYWORDS = 4
MAX_MODEL_TAGS = 10
MAX_MERGED_TAGS = 12
EXPLICIT_TEXT_TAGS = ("코스", "데이트", "벚꽃")
SOLO_CONTEXTS = ("혼밥", "혼술")
BUDGET_CONSTRAINTS = ("가성비", "비싼_곳_제외")
BUDGET_PRICE_LEVEL = 2

SYSTEM_PROMPT = (
    "You are a query interpreter for a personal restaurant map service. "
    "Convert the user's search text into structured search conditions. Do not recommend "
    "or invent places; only extract intent and filters. Use null for missing information. "
    "intent is one of DISCOVER_RECOMMEND (점심 뭐 먹지?), REGION_SEARCH (용산 맛집), "
    "CATEGORY_SEARCH (국밥 먹고 싶어), DIRECT_PLACE (히코 어때?), RANDOM_SUGGEST (아무거나). "
    "location_keywords are area terms exactly as written, without mapping "
    '("부산 해운대 횟집" -> ["부산", "해운대"]). '
    "time_context is breakfast, lunch, dinner, late_night or null. "
    "category_main is one of 밥, 면, 국물, 고기요리, 해산물, 간편식, 양식·퓨전, 디저트, 카페, 술안주. "
    "category_sub is a narrower food such as 라멘, 국밥, 카공카페. "
    "tags are search tags only (themes like 벚꽃, 데이트코스, 야경), never locations. "
    'Output JSON: {"intent": ..., "location_keywords": [...], "time_context": ..., '
    '"category_main": ..., "category_sub": ..., "tags": [...], "confidence": 0.0-1.0}.'
)


@dataclass(slots=True)
class ParseResult:
    query: SearchQuery
    raw: dict[str, Any] = field(default_factory=dict)
    confidence: float | None = None


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if 0 <= value <= 1 else None


def build_search_query(text: str, parsed: dict[str, Any]) -> SearchQuery:
    """Map the model's simple output onto search intent and slots."""
    intent = INTENT_MAP.get(str(parsed.get("intent") or ""), CLARIFY_INTENT)
    location_keywords = _string_list(parsed.get("location_keywords"))[:MAX_LOCATION_KEYWORDS]
    time_of_day = TIME_CONTEXT_MAP.get(str(parsed.get("time_context") or ""))

    tags = sanitize_tags(_string_list(parsed.get("tags")), max_tags=MAX_MODEL_TAGS)
    lowered = text.lower()
    explicit = [tag for tag in EXPLICIT_TEXT_TAGS if tag in lowered]
    keywords = sanitize_tags([*tags, *explicit], max_tags=MAX_MERGED_TAGS)

    place_name = keywords[0] if intent == "ASK_DETAILS" and keywords else None
    flags = infer_constraint_flags(keywords)
    honbab = "solo_ok" in flags
    constraints: list[str] = []
    if "quiet" in flags:
        constraints.append("조용한")
    if "no_wait" in flags:
        constraints.append("웨이팅_없음")

    return SearchQuery(
        intent=intent,
        slots=SearchSlots(
            location_keywords=tuple(location_keywords),
            place_name=place_name,
            category_main=_optional_text(parsed.get("category_main")),
            category_sub=_optional_text(parsed.get("category_sub")),
            exclude_category_main=("카페",) if honbab else (),
            time_of_day=time_of_day,
            visit_context="혼밥" if honbab else None,
            constraints=tuple(constraints),
            keywords=tuple(keywords),
        ),
    )


async def parse_search_query(text: str) -> ParseResult:
    """Structured search query for free text. Falls back to CLARIFY_QUERY on any failure."""
    user_prompt = json.dumps({"query": text}, ensure_ascii=False)
    try:
        parsed = await llm.chat_json(
            SYSTEM_PROMPT, user_prompt, max_tokens=settings.SEARCH_PARSE_MAX_TOKENS
        )
    except (LLMUnavailable, ValueError) as exc:
        logger.warning("Search query parsing failed: %s", exc)
        return ParseResult(query=SearchQuery())
    return ParseResult(
        query=build_search_query(text, parsed),
        raw=parsed,
        confidence=_confidence(parsed.get("confidence")),
    )


def to_store_query(
    query: SearchQuery,
    region_hint: str | None = None,
    *,
    whole_region: str = settings.WHOLE_REGION_SENTINEL,
) -> StoreQuery:
    """Flatten slots into catalog filters; constraint names become boolean flags."""
    slots = query.slots
    location_keywords = slots.location_keywords
    if not location_keywords and region_hint and region_hint != whole_region:
        location_keywords = (region_hint,)

    keywords = slots.keywords
    if slots.place_name:
        keywords = (*keywords, slots.place_name)

    budget = any(c in slots.constraints for c in BUDGET_CONSTRAINTS)
    return StoreQuery(
        location_keywords=location_keywords,
        region=slots.region,
        sub_region=slots.sub_region,
        category_main=slots.category_main,
        category_sub=slots.category_sub,
        exclude_category_main=slots.exclude_category_main,
        keywords=keywords,
        solo_ok=slots.visit_context in SOLO_CONTEXTS,
        quiet="조용한" in slots.constraints,
        no_wait="웨이팅_없음" in slots.constraints,
        max_price_level=BUDGET_PRICE_LEVEL if budget else None,
    )
