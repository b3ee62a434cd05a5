import asyncio

import pytest
from backend.odiga.domain import SearchQuery, SearchSlots
from backend.odiga.errors import SearchExecutionError
from backend.odiga.search import SearchService
from backend.odiga.search_parser import ParseResult
from backend.odiga.settings import BUNDLED_DATA_DIR
from backend.odiga.store import PlaceStore


@pytest.fixture
def store():
    return PlaceStore(path=BUNDLED_DATA_DIR / "places.json")


def fixed_parser(query: SearchQuery, confidence=0.9):
    async def parse(text: str) -> ParseResult:
        return ParseResult(query=query, confidence=confidence)

    return parse


def test_region_search_without_fallback(store):
    query = SearchQuery(
        intent="SEARCH_BY_REGION", slots=SearchSlots(location_keywords=("연남",))
    )
    result = asyncio.run(SearchService(store, fixed_parser(query)).search("연남", trace_id="t-1"))

    assert result.trace_id == "t-1"
    assert result.intent == "SEARCH_BY_REGION"
    assert result.places
    assert all(place.sub_region == "연남" for place in result.places)
    assert result.actions.fallback_level == 0
    assert result.ui_hints.message_type == "success"
    assert result.confidence == 0.9


def test_strict_constraints_fall_back(store):
    query = SearchQuery(
        intent="SEARCH_BY_REGION",
        slots=SearchSlots(location_keywords=("성수",), constraints=("조용한", "웨이팅_없음")),
    )
    result = asyncio.run(SearchService(store, fixed_parser(query)).search("성수 조용하고 웨이팅 없는"))

    assert result.actions.fallback_applied is True
    assert result.actions.fallback_level == 2
    assert result.ui_hints.message == "웨이팅 조건을 제외했어요"
    assert [place.id for place in result.places] == ["sd-001"]


def test_ui_region_is_used_as_location_hint(store):
    query = SearchQuery(intent="SEARCH_BY_FOOD", slots=SearchSlots(keywords=("파스타",)))
    result = asyncio.run(SearchService(store, fixed_parser(query)).search("파스타", "강남"))
    assert [place.id for place in result.places] == ["gn-001"]


def test_unparseable_query_still_returns_places(store):
    result = asyncio.run(SearchService(store, fixed_parser(SearchQuery(), None)).search("음..."))
    assert result.intent == "CLARIFY_QUERY"
    assert result.ui_hints.message_type == "need_clarification"
    assert result.places
    assert result.trace_id


def test_result_limit_caps_places(store):
    query = SearchQuery(intent="RANDOM_PICK")
    result = asyncio.run(SearchService(store, fixed_parser(query)).search("아무거나"))
    assert len(result.places) == 5


def test_store_failure_surfaces(tmp_path):
    broken = tmp_path / "places.json"
    broken.write_text("[", encoding="utf-8")
    service = SearchService(PlaceStore(path=broken), fixed_parser(SearchQuery()))
    with pytest.raises(SearchExecutionError):
        asyncio.run(service.search("아무거나"))
