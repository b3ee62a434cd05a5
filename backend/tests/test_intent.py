import asyncio
import json
from datetime import date

import pytest
from backend.odiga import llm
from backend.odiga.domain import Intent
from backend.odiga.errors import LLMUnavailable
from backend.odiga.intent import (
    apply_server_defaults,
    extract_intent,
    normalize_activity_type,
)
from backend.odiga.settings import settings


@pytest.fixture
def llm_reply(monkeypatch):
    settings.OPENAI_API_KEY = "test-key"

    def _install(content: str):
        async def fake_post_json(path, payload, timeout=None):  # noqa: ARG001
            return {"choices": [{"message": {"content": content}}]}

        monkeypatch.setattr(llm, "post_json", fake_post_json)

    return _install


def test_extract_intent_parses_model_json(llm_reply):
    llm_reply(
        "```json\n"
        + json.dumps(
            {
                "response_type": "course",
                "region": "성수",
                "vibe": ["감성", "조용한"],
                "activity_type": "카페",
                "people_count": 2,
                "season": "가을",
                "mode": None,
                "special_context": None,
            },
            ensure_ascii=False,
        )
        + "\n```"
    )
    result = asyncio.run(extract_intent("성수 감성 카페 데이트 코스"))
    assert result.parse_errors == []
    assert result.intent.response_type == "course"
    assert result.intent.region == "성수"
    assert result.intent.vibe == ("감성", "조용한")
    assert result.intent.activity_type == "카페"
    assert result.intent.people_count == 2


def test_missing_region_is_reported(llm_reply):
    llm_reply('{"response_type": "course", "vibe": []}')
    result = asyncio.run(extract_intent("데이트 코스 추천"))
    assert result.parse_errors == ["region", "people_count"]
    assert result.intent.activity_type == "볼거리"


def test_malformed_output_yields_default_intent(llm_reply):
    llm_reply("sorry, I cannot help with that")
    result = asyncio.run(extract_intent("아무거나"))
    assert result.parse_errors == ["llm_json_parse_failed"]
    assert result.intent == Intent()


def test_transport_failure_defaults_region(monkeypatch):
    async def failing_chat_json(*args, **kwargs):
        raise LLMUnavailable("timeout")

    monkeypatch.setattr(llm, "chat_json", failing_chat_json)
    result = asyncio.run(extract_intent("아무거나"))
    assert result.parse_errors == ["llm_call_failed"]
    assert result.intent.region == "서울"


def test_missing_api_key_counts_as_call_failure():
    result = asyncio.run(extract_intent("점심 뭐 먹지"))
    assert result.parse_errors == ["llm_call_failed"]


@pytest.mark.parametrize(
    "query, raw, expected",
    [
        ("성수 라떼 맛집", None, "카페"),
        ("점심 뭐 먹지", None, "맛집"),
        ("주말에 갈만한곳", None, "볼거리"),
        ("어디 가지", "카페", "카페"),
    ],
)
def test_normalize_activity_type(query, raw, expected):
    assert normalize_activity_type(query, raw) == expected


def test_server_defaults_for_course():
    intent = apply_server_defaults(Intent(response_type="course"), today=date(2024, 4, 1))
    assert intent.region == "서울"
    assert intent.people_count == 2
    assert intent.mode == "date"
    assert intent.season == "봄"


def test_server_defaults_for_single():
    intent = apply_server_defaults(Intent(), today=date(2024, 12, 1))
    assert intent.people_count == 1
    assert intent.mode == "solo"
    assert intent.season == "겨울"


def test_overrides_replace_extracted_values():
    extracted = Intent(response_type="single", region="강남", people_count=1, season="여름")
    intent = apply_server_defaults(
        extracted, region="성수", people_count=6, response_type="course"
    )
    assert intent.region == "성수"
    assert intent.people_count == 6
    assert intent.response_type == "course"
    assert intent.mode == "party"
    assert intent.season == "여름"


def test_mode_override_only_fills_a_missing_mode():
    assert apply_server_defaults(Intent(response_type="course"), mode="group").mode == "group"
    extracted = Intent(response_type="course", mode="date")
    assert apply_server_defaults(extracted, mode="group").mode == "date"
