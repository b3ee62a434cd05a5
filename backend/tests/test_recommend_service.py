import asyncio

import pytest
from backend.odiga.course_builder import assemble_course
from backend.odiga.domain import Intent
from backend.odiga.errors import RetrievalError
from backend.odiga.intent import IntentResult
from backend.odiga.mode_planner import plan_mode
from backend.odiga.recommend import RecommendationService, prefer_attraction_courses
from backend.odiga.settings import BUNDLED_DATA_DIR
from backend.odiga.store import PlaceStore


@pytest.fixture
def store():
    return PlaceStore(path=BUNDLED_DATA_DIR / "places.json")


def fixed_extractor(intent: Intent, errors=()):
    async def extract(query: str) -> IntentResult:
        return IntentResult(intent=intent, parse_errors=list(errors))

    return extract


def test_single_recommendation_returns_top_places(store):
    service = RecommendationService(
        store, fixed_extractor(Intent(region="성수", vibe=("조용한",), activity_type="카페"))
    )
    result = asyncio.run(service.recommend("성수 조용한 카페"))

    assert result.type == "single"
    assert result.courses == []
    assert result.places[0].id == "sd-001"
    assert all(place.score is not None for place in result.places)
    assert result.intent.people_count == 1
    assert result.intent.mode == "solo"
    assert result.timing.total_ms >= result.timing.llm_ms


def test_single_results_are_capped(store):
    service = RecommendationService(store, fixed_extractor(Intent(region="서울")), single_count=3)
    result = asyncio.run(service.recommend("서울 아무데나"))
    assert len(result.places) == 3


def test_excluded_places_are_dropped(store):
    service = RecommendationService(
        store, fixed_extractor(Intent(region="성수", vibe=("조용한",), activity_type="카페"))
    )
    result = asyncio.run(service.recommend("성수 조용한 카페", exclude_place_ids=["sd-001"]))
    assert "sd-001" not in [place.id for place in result.places]


def test_course_recommendation(store):
    service = RecommendationService(
        store, fixed_extractor(Intent(response_type="course", region="성수"), ["people_count"])
    )
    result = asyncio.run(service.recommend("성수 데이트 코스"))

    assert result.type == "course"
    assert result.parse_errors == ["people_count"]
    assert result.intent.mode == "date"
    assert result.courses
    assert [course.id for course in result.courses] == list(range(1, len(result.courses) + 1))
    for course in result.courses:
        assert len(course.steps) == 3
        assert course.steps[0].label == "시작"
        assert course.difficulty_label in {"쉬움", "보통", "도전"}


def test_response_type_override(store):
    service = RecommendationService(store, fixed_extractor(Intent(region="연남")))
    result = asyncio.run(service.recommend("연남", response_type="course", people_count=1))
    assert result.type == "course"
    assert result.intent.mode == "solo"
    assert all(len(course.steps) == 2 for course in result.courses)


def test_no_candidates_gives_empty_response(store):
    service = RecommendationService(store, fixed_extractor(Intent(region="제주")))
    result = asyncio.run(service.recommend("제주 맛집", response_type="course"))
    assert result.places == []
    assert result.courses == []
    assert result.intent.region == "제주"


def test_retrieval_failure_propagates(tmp_path):
    broken = tmp_path / "places.json"
    broken.write_text("oops", encoding="utf-8")
    service = RecommendationService(PlaceStore(path=broken), fixed_extractor(Intent()))
    with pytest.raises(RetrievalError):
        asyncio.run(service.recommend("아무거나"))


def test_rank_applies_feedback_then_rotation(store, place_factory):
    pub = place_factory("a", tags=("호프",), rating=5.0)
    b = place_factory("b", rating=4.5)
    c = place_factory("c", rating=4.0)
    service = RecommendationService(store, fixed_extractor(Intent()))

    assert [p.id for p in service.rank([pub, b, c], Intent())] == ["a", "b", "c"]
    # the pub drops to last, then the list turns by hash("호프") % 3 == 1
    ranked = service.rank([pub, b, c], Intent(), feedback="호프")
    assert [p.id for p in ranked] == ["c", "a", "b"]


def test_attraction_courses_are_preferred(place_factory, scored_factory):
    config = plan_mode(1)
    cafe_a = scored_factory(place_factory("a", lat=37.54, lon=127.05), 0.9)
    cafe_b = scored_factory(place_factory("b", lat=37.55, lon=127.05), 0.8)
    park = scored_factory(
        place_factory("park", lat=37.56, lon=127.05, category_main="공원", category_sub="산책"),
        0.5,
    )
    without = assemble_course(1, [cafe_a, cafe_b], config, [])
    with_park = assemble_course(2, [cafe_b, park], config, [])

    kept = prefer_attraction_courses([without, with_park], [cafe_a, cafe_b, park])
    assert kept == [with_park]
    assert prefer_attraction_courses([without], [cafe_a, cafe_b]) == [without]
    assert prefer_attraction_courses([without], [cafe_a, cafe_b, park]) == [without]


def test_clustered_pool_still_yields_one_course():
    rows = [
        {"id": f"mall-{i}", "name": f"성수 몰 {i}층", "lat": 37.5445, "lon": 127.0560,
         "region": "서울", "sub_region": "성수", "category_main": "카페",
         "category_sub": "커피", "rating": 4.5 - i * 0.1}
        for i in range(5)
    ]
    service = RecommendationService(
        PlaceStore(rows=rows), fixed_extractor(Intent(response_type="course", region="성수"))
    )
    result = asyncio.run(service.recommend("성수 데이트 코스"))

    assert len(result.courses) == 1
    course = result.courses[0]
    assert course.id == 1
    assert [step.place.id for step in course.steps] == ["mall-0", "mall-1", "mall-2"]
    assert course.total_distance == 0
