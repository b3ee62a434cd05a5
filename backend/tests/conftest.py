import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ.pop("OPENAI_API_KEY", None)
test_data_dir = ROOT / "artifacts" / "test-data"
test_data_dir.mkdir(parents=True, exist_ok=True)
os.environ["DATA_DIR"] = str(test_data_dir)

seed = ROOT / "backend" / "odiga" / "data" / "places.json"
(test_data_dir / "places.json").write_text(seed.read_text(encoding="utf-8"), encoding="utf-8")

from backend.odiga.domain import Place, ScoredPlace, ScoreBreakdown  # noqa: E402
from backend.odiga.main import app  # noqa: E402
from backend.odiga.settings import settings  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture(autouse=True)
def offline_llm():
    settings.OPENAI_API_KEY = None
    settings.SENTRY_DSN = None
    yield


def make_place(place_id: str = "p1", **overrides) -> Place:
    defaults = {
        "id": place_id,
        "name": f"place {place_id}",
        "lat": 37.5446,
        "lon": 127.0557,
        "region": "서울",
        "sub_region": "성수",
        "category_main": "카페",
        "category_sub": "커피",
        "tags": (),
        "rating": 4.0,
    }
    defaults.update(overrides)
    return Place(**defaults)


def make_scored(place: Place, score: float) -> ScoredPlace:
    breakdown = ScoreBreakdown(
        vibe_match=0.5, distance=0.5, jjeop_level=0.5, popularity=0.5, season=0.5, activity_match=0.5
    )
    return ScoredPlace(place=place, score=score, breakdown=breakdown)


@pytest.fixture
def place_factory():
    return make_place


@pytest.fixture
def scored_factory():
    return make_scored
