from datetime import date

import pytest
from backend.odiga.season import detect_current_season, season_boost


def test_unknown_or_missing_season_is_neutral():
    assert season_boost(None, ["벚꽃"], "산책") == 0.0
    assert season_boost("장마", ["벚꽃"], "산책") == 0.0


def test_spring_boosts_blossoms_and_walks():
    assert season_boost("봄", ["벚꽃 구경"], None) == pytest.approx(0.15)
    assert season_boost("봄", [], "공원 산책") == pytest.approx(0.1)


def test_penalty_vibes_subtract():
    assert season_boost("겨울", ["야외"], None) == pytest.approx(-0.1)
    # 여름: 국물 is penalised
    assert season_boost("여름", ["국물"], None) == pytest.approx(-0.1)


def test_boost_is_clamped():
    vibes = ["벚꽃", "산책", "피크닉", "야외"]
    assert season_boost("봄", vibes, "카페") == pytest.approx(0.3)
    assert season_boost("겨울", ["야외", "산책", "야외 산책", "산책로", "야외석"], None) == (
        pytest.approx(-0.3)
    )


@pytest.mark.parametrize(
    "month, expected",
    [(1, "겨울"), (3, "봄"), (5, "봄"), (6, "여름"), (8, "여름"), (9, "가을"), (11, "가을"), (12, "겨울")],
)
def test_detect_current_season(month, expected):
    assert detect_current_season(date(2024, month, 15)) == expected
