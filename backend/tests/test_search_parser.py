import asyncio
import json

from backend.odiga import llm
from backend.odiga.domain import SearchQuery, SearchSlots
from backend.odiga.errors import LLMUnavailable
from backend.odiga.search_parser import (
    build_search_query,
    parse_search_query,
    to_store_query,
)
from backend.odiga.settings import settings


def _completion(payload):
    return {"choices": [{"message": {"content": json.dumps(payload, ensure_ascii=False)}}]}


def test_region_search_maps_intent_and_slots():
    query = build_search_query(
        "성수 라멘 맛집",
        {
            "intent": "REGION_SEARCH",
            "location_keywords": ["성수", "뚝섬", "서울숲", "왕십리", "건대"],
            "time_context": "dinner",
            "category_main": "면",
            "category_sub": "라멘",
            "tags": ["맛집", "#라멘 "],
        },
    )
    assert query.intent == "SEARCH_BY_REGION"
    assert query.slots.location_keywords == ("성수", "뚝섬", "서울숲", "왕십리")
    assert query.slots.time_of_day == "저녁"
    assert query.slots.category_sub == "라멘"
    assert query.slots.keywords == ("라멘",)


def test_unknown_intent_needs_clarification():
    assert build_search_query("음", {"intent": "SMALL_TALK"}).intent == "CLARIFY_QUERY"
    assert build_search_query("음", {}).intent == "CLARIFY_QUERY"


def test_honbab_tag_sets_solo_context_and_excludes_cafes():
    query = build_search_query("혼자 먹을 곳", {"intent": "CATEGORY_SEARCH", "tags": ["혼자"]})
    assert query.slots.keywords == ("혼밥",)
    assert query.slots.visit_context == "혼밥"
    assert query.slots.exclude_category_main == ("카페",)


def test_quiet_and_no_wait_become_constraints():
    query = build_search_query("조용하고 바로입장", {"tags": ["한적한", "바로입장"]})
    assert query.slots.constraints == ("조용한", "웨이팅_없음")


def test_explicit_text_tags_are_merged():
    query = build_search_query("벚꽃 데이트 코스", {"intent": "DISCOVER_RECOMMEND", "tags": []})
    assert set(query.slots.keywords) == {"벚꽃", "데이트", "코스"}


def test_direct_place_sets_place_name():
    query = build_search_query("히코 어때", {"intent": "DIRECT_PLACE", "tags": ["히코"]})
    assert query.intent == "ASK_DETAILS"
    assert query.slots.place_name == "히코"


def test_parse_search_query_uses_llm(monkeypatch):
    settings.OPENAI_API_KEY = "test-key"

    async def fake_post_json(path, payload, timeout=None):  # noqa: ARG001
        assert path == "/chat/completions"
        return _completion(
            {"intent": "CATEGORY_SEARCH", "category_sub": "국밥", "tags": [], "confidence": 0.8}
        )

    monkeypatch.setattr(llm, "post_json", fake_post_json)
    result = asyncio.run(parse_search_query("국밥 먹고 싶어"))
    assert result.query.intent == "SEARCH_BY_CATEGORY"
    assert result.query.slots.category_sub == "국밥"
    assert result.confidence == 0.8


def test_parse_search_query_falls_back_on_failure(monkeypatch):
    async def failing_chat_json(*args, **kwargs):
        raise LLMUnavailable("down")

    monkeypatch.setattr(llm, "chat_json", failing_chat_json)
    result = asyncio.run(parse_search_query("아무거나"))
    assert result.query == SearchQuery()
    assert result.confidence is None


def test_parse_search_query_ignores_bad_confidence(monkeypatch):
    async def fake_chat_json(*args, **kwargs):
        return {"intent": "RANDOM_SUGGEST", "confidence": 7}

    monkeypatch.setattr(llm, "chat_json", fake_chat_json)
    result = asyncio.run(parse_search_query("아무거나"))
    assert result.query.intent == "RANDOM_PICK"
    assert result.confidence is None


def test_to_store_query_maps_constraints_to_flags():
    query = SearchQuery(
        intent="SEARCH_BY_FOOD",
        slots=SearchSlots(
            constraints=("조용한", "웨이팅_없음", "가성비"),
            visit_context="혼술",
            place_name="히코",
            keywords=("라멘",),
        ),
    )
    store_query = to_store_query(query)
    assert store_query.quiet and store_query.no_wait and store_query.solo_ok
    assert store_query.max_price_level == 2
    assert store_query.keywords == ("라멘", "히코")


def test_region_hint_only_without_location_keywords():
    assert to_store_query(SearchQuery(), "성수").location_keywords == ("성수",)
    assert to_store_query(SearchQuery(), "서울 전체").location_keywords == ()
    query = SearchQuery(slots=SearchSlots(location_keywords=("강남",)))
    assert to_store_query(query, "성수").location_keywords == ("강남",)
