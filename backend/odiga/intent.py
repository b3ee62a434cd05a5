from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from hashlib import sha256
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from . import llm
from .domain import Intent, ResponseType
from .errors import IntentUnavailable, LLMUnavailable
from .mode_planner import mode_from_people_count
from .season import detect_current_season
from .settings import settings

logger = logging.getLogger(__name__)

PARSE_ERROR_JSON = "llm_json_parse_failed"
PARSE_ERROR_CALL = "llm_call_failed"

DEFAULT_COURSE_PEOPLE = 2
DEFAULT_SINGLE_PEOPLE = 1
DEFAULT_SINGLE_MODE = "solo"

CAFE_KEYWORDS = ("카페", "커피", "라떼", "아메리카노", "에스프레소", "카공", "브런치카페", "디카페인")
FOOD_KEYWORDS = (
    "맛집", "밥", "식사", "먹", "점심", "저녁", "아침", "야식", "국밥", "라멘", "파스타",
    "고기", "회", "해장", "술안주", "브런치",
)
ATTRACTION_KEYWORDS = (
    "볼거리", "구경", "전시", "미술관", "박물관", "산책", "공원", "야경", "명소", "갈만한곳",
    "가볼만한곳", "놀거리", "데이트코스",
)

SYSTEM_PROMPT = (
    "You are a Korean place recommendation intent parser. "
    "Given a Korean query, extract the user's intent as JSON with exactly these keys: "
    '{"response_type": "single" | "course", "region": string | null, "vibe": string[], '
    '"activity_type": string | null, "people_count": number | null, "season": string | null, '
    '"mode": string | null, "special_context": string | null}. '
    'Use "course" for multi-stop requests (코스, 투어, 데이트코스), otherwise "single". '
    "region must be a canonical area such as 강남, 서초, 종로/중구, 홍대/합정/마포/연남, "
    "용산/이태원/한남, 건대/성수/왕십리, 잠실/송파/강동, 신촌/연희, 구로/관악/동작, or a "
    "province such as 서울, 경기, 부산; map station and landmark names to their area "
    '(압구정 -> 강남, 을지로 -> 종로/중구, 서울대입구 -> 구로/관악/동작) and use null if unsure. '
    "activity_type is one of 맛집, 카페, 볼거리. Infer season from context (벚꽃 -> 봄, 눈 -> 겨울). "
    "vibe holds mood/atmosphere keywords. Return null for unknown fields. Output JSON only."
)


@dataclass(slots=True)
class IntentResult:
    intent: Intent
    parse_errors: list[str] = field(default_factory=list)


class ExtractedIntent(BaseModel):
    """Lenient view of the model's JSON; wrong-typed fields fall back to None/empty."""

    model_config = ConfigDict(extra="ignore")

    response_type: Literal["single", "course"] = "single"
    region: str | None = None
    vibe: list[str] = []
    activity_type: str | None = None
    people_count: int | None = None
    season: str | None = None
    mode: str | None = None
    special_context: str | None = None

    @field_validator("response_type", mode="before")
    @classmethod
    def _response_type(cls, value: Any) -> str:
        return "course" if value == "course" else "single"

    @field_validator("region", "activity_type", "season", "mode", "special_context", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @field_validator("vibe", mode="before")
    @classmethod
    def _vibe(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str) and item.strip()]

    @field_validator("people_count", mode="before")
    @classmethod
    def _people_count(cls, value: Any) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if value <= 0 or int(value) != value:
            return None
        return int(value)


def normalize_activity_type(query: str, activity_type: Any) -> str:
    """Bucket a query plus the model's activity guess into 카페, 맛집 or 볼거리."""
    raw = activity_type if isinstance(activity_type, str) else ""
    merged = f"{query} {raw}".lower()
    if any(keyword in merged for keyword in CAFE_KEYWORDS):
        return "카페"
    if any(keyword in merged for keyword in FOOD_KEYWORDS):
        return "맛집"
    return "볼거리"


def default_intent() -> Intent:
    return Intent()


def parse_errors_for(intent: Intent) -> list[str]:
    errors: list[str] = []
    if not intent.region:
        errors.append("region")
    if not intent.people_count and intent.response_type == "course":
        errors.append("people_count")
    return errors


def _fingerprint(text: str) -> str:
    return sha256(text.encode("utf-8")).hexdigest()[:10]


async def _request_intent(query: str) -> ExtractedIntent:
    user_prompt = json.dumps({"query": query}, ensure_ascii=False)
    try:
        payload = await llm.chat_json(
            SYSTEM_PROMPT, user_prompt, max_tokens=settings.INTENT_MAX_TOKENS
        )
    except ValueError as exc:
        raise IntentUnavailable("No JSON object in intent response") from exc
    return ExtractedIntent.model_validate(payload)


async def extract_intent(query: str) -> IntentResult:
    """Structured intent for a query. Never raises: failures become parse errors."""
    digest = _fingerprint(query)
    try:
        extracted = await _request_intent(query)
    except IntentUnavailable as exc:
        logger.warning("Intent JSON parse failed (%s): %s", digest, exc)
        return IntentResult(intent=default_intent(), parse_errors=[PARSE_ERROR_JSON])
    except LLMUnavailable as exc:
        logger.warning("Intent call failed (%s): %s", digest, exc)
        return IntentResult(
            intent=replace(default_intent(), region=settings.DEFAULT_REGION),
            parse_errors=[PARSE_ERROR_CALL],
        )

    intent = Intent(
        response_type=extracted.response_type,
        region=extracted.region,
        vibe=tuple(extracted.vibe),
        activity_type=normalize_activity_type(query, extracted.activity_type),
        people_count=extracted.people_count,
        season=extracted.season,
        mode=extracted.mode,
        special_context=extracted.special_context,
    )
    logger.debug("Intent parsed %s -> %s", digest, intent)
    return IntentResult(intent=intent, parse_errors=parse_errors_for(intent))


def apply_server_defaults(
    intent: Intent,
    *,
    region: str | None = None,
    people_count: int | None = None,
    mode: str | None = None,
    response_type: ResponseType | None = None,
    today: date | None = None,
    default_region: str = settings.DEFAULT_REGION,
) -> Intent:
    """Fill the fields scoring and course assembly rely on.

    Client overrides for region, party size and response type replace the
    extracted values. A mode override only fills in when the extractor left
    mode empty.
    """
    result = intent
    if region:
        result = replace(result, region=region)
    elif not result.region:
        result = replace(result, region=default_region)

    if response_type:
        result = replace(result, response_type=response_type)
    if people_count:
        result = replace(result, people_count=people_count)

    if result.response_type == "course":
        if not result.people_count:
            result = replace(result, people_count=DEFAULT_COURSE_PEOPLE)
        if not result.mode:
            result = replace(result, mode=mode or mode_from_people_count(result.people_count))
    else:
        if not result.people_count:
            result = replace(result, people_count=DEFAULT_SINGLE_PEOPLE)
        if not result.mode:
            result = replace(result, mode=mode or DEFAULT_SINGLE_MODE)

    if not result.season:
        result = replace(result, season=detect_current_season(today))
    return result
