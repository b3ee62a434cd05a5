from backend.odiga.domain import FallbackResult, SearchQuery
from backend.odiga.search_presentation import (
    CLARIFY_SUGGESTIONS,
    NO_RESULTS_SUGGESTIONS,
    generate_search_actions,
    generate_ui_hints,
)


def test_no_results_is_soft():
    hints = generate_ui_hints(SearchQuery(intent="SEARCH_BY_REGION"), 0, True, ["x"])
    assert hints.message_type == "no_results_soft"
    assert hints.suggestions == list(NO_RESULTS_SUGGESTIONS)


def test_clarify_intent_asks_for_more():
    hints = generate_ui_hints(SearchQuery(), 3, False, [])
    assert hints.message_type == "need_clarification"
    assert hints.suggestions == list(CLARIFY_SUGGESTIONS)


def test_fallback_notes_become_the_message():
    hints = generate_ui_hints(
        SearchQuery(intent="SEARCH_BY_FOOD"), 2, True, ["일부 조건을 완화했어요", "웨이팅 조건을 제외했어요"]
    )
    assert hints.message_type == "success"
    assert hints.message == "일부 조건을 완화했어요 / 웨이팅 조건을 제외했어요"


def test_plain_success_counts_results():
    hints = generate_ui_hints(SearchQuery(intent="SEARCH_BY_FOOD"), 7, False, [])
    assert hints.message == "7개의 장소를 찾았어요!"
    assert hints.suggestions == []


def test_actions_per_intent():
    fallback = FallbackResult(places=[], fallback_applied=True, fallback_notes=["n"], fallback_level=3)
    details = generate_search_actions(SearchQuery(intent="ASK_DETAILS"), fallback)
    assert (details.mode, details.result_limit) == ("explore", 10)
    assert details.fallback_level == 3
    assert details.fallback_notes == ["n"]
    assert details.should_show_map is True

    assert generate_search_actions(SearchQuery(intent="RANDOM_PICK"), fallback).result_limit == 5
    assert generate_search_actions(SearchQuery(intent="FIND_NEAR_ME"), fallback).result_limit == 20
    default = generate_search_actions(SearchQuery(intent="SEARCH_BY_REGION"), fallback)
    assert (default.mode, default.result_limit) == ("browse", 50)
