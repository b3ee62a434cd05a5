import pytest
from backend.odiga.domain import Intent
from backend.odiga.scoring import (
    DISTANCE_PLACEHOLDER,
    apply_feedback,
    feedback_keywords,
    rotate_for_feedback,
    score_place,
    score_places,
    text_hash,
)
from backend.odiga.settings import DEFAULT_WEIGHTS, ScoringWeights


def test_quiet_cafe_outranks_pub_for_quiet_cafe_request(place_factory):
    cafe = place_factory(
        "cafe", category_main="카페", category_sub="커피", tags=("조용한", "카공"), rating=4.5
    )
    pub = place_factory(
        "pub", category_main="술안주", category_sub="포차", tags=("호프", "시끌벅적"), rating=4.5
    )
    intent = Intent(vibe=("조용한",), activity_type="카페", season="가을")

    ranked = score_places([pub, cafe], intent)

    assert [item.id for item in ranked] == ["cafe", "pub"]
    assert ranked[0].breakdown.vibe_match == 1.0
    assert ranked[0].breakdown.activity_match == 1.0
    assert ranked[1].breakdown.vibe_match == 0.0


def test_score_stays_within_unit_interval(place_factory):
    place = place_factory(
        tags=("벚꽃", "산책"),
        rating=5.0,
        features={"date_ok": True, "quiet": True, "solo_ok": True, "reservation": True},
    )
    intent = Intent(vibe=("벚꽃", "산책"), activity_type="카페", season="봄")
    scored = score_place(place, intent)
    assert 0.0 <= scored.score <= 1.0
    assert scored.breakdown.jjeop_level == pytest.approx(0.9)
    assert scored.breakdown.distance == DISTANCE_PLACEHOLDER


def test_missing_vibe_and_activity_are_neutral(place_factory):
    scored = score_place(place_factory(rating=0.0), Intent())
    assert scored.breakdown.vibe_match == 0.5
    assert scored.breakdown.activity_match == 0.5
    assert scored.breakdown.popularity == 0.0
    assert scored.breakdown.season == 0.5


def test_activity_match_through_tags(place_factory):
    place = place_factory(category_main="공원", category_sub="산책", tags=("카페거리",))
    assert score_place(place, Intent(activity_type="카페")).breakdown.activity_match == 0.7


def test_custom_weights_change_the_total(place_factory):
    place = place_factory(rating=5.0)
    popularity_only = ScoringWeights(
        vibe=0.0, distance=0.0, jjeop=0.0, popularity=1.0, season=0.0, activity=0.0
    )
    assert score_place(place, Intent(), popularity_only).score == pytest.approx(1.0)
    assert score_place(place, Intent(), DEFAULT_WEIGHTS).score < 1.0


def test_equal_scores_keep_input_order(place_factory):
    places = [place_factory(str(i)) for i in range(4)]
    assert [p.id for p in score_places(places, Intent())] == ["0", "1", "2", "3"]


def test_feedback_keywords_drop_stopwords_and_short_tokens():
    assert feedback_keywords("너무 시끄러워요, 호프 싫어요!") == ["시끄러워요", "호프"]
    assert feedback_keywords("a b") == []
    assert feedback_keywords(None) == []


def test_apply_feedback_demotes_matching_places(place_factory):
    pub = place_factory("pub", tags=("호프",), rating=5.0)
    cafe = place_factory("cafe", tags=("조용한",), rating=4.0)
    ranked = score_places([pub, cafe], Intent())
    assert ranked[0].id == "pub"

    adjusted = apply_feedback(ranked, ["호프"])
    assert [item.id for item in adjusted] == ["cafe", "pub"]
    assert adjusted[1].score == pytest.approx(ranked[0].score - 0.12)


def test_feedback_penalty_is_capped(place_factory):
    place = place_factory(name="호프 술집 포차 맥주", tags=("호프",))
    scored = score_places([place], Intent())
    adjusted = apply_feedback(scored, ["호프", "술집", "포차", "맥주", "place"])
    assert scored[0].score - adjusted[0].score == pytest.approx(0.45)


def test_text_hash_matches_java_string_hash():
    assert text_hash("a") == 97
    assert text_hash("ab") == 3105
    assert text_hash("") == 0


def test_rotate_for_feedback_is_deterministic(place_factory):
    scored = score_places([place_factory(str(i)) for i in range(5)], Intent())
    # hash("a") % 3 == 1
    assert [item.id for item in rotate_for_feedback(scored, "a")] == ["1", "2", "3", "4", "0"]
    # hash("ab") % 3 == 0
    assert [item.id for item in rotate_for_feedback(scored, "ab")] == ["0", "1", "2", "3", "4"]
    assert rotate_for_feedback(scored, None) == scored
