from __future__ import annotations

from typing import Literal

from .domain import Place

ActivityBucket = Literal["맛집", "카페", "볼거리"]

FOOD_BUCKET: ActivityBucket = "맛집"
CAFE_BUCKET: ActivityBucket = "카페"
ATTRACTION_BUCKET: ActivityBucket = "볼거리"
ACTIVITY_BUCKETS = (FOOD_BUCKET, CAFE_BUCKET, ATTRACTION_BUCKET)

CATEGORY_SUB_TO_MAIN: dict[str, str] = {
    # 밥
    "덮밥": "밥", "정식": "밥", "도시락": "밥", "백반": "밥", "돈까스": "밥", "한식": "밥",
    "카레": "밥",
    # 면
    "라멘": "면", "국수": "면", "파스타": "면", "쌀국수": "면", "우동": "면", "냉면": "면",
    "소바": "면",
    # 국물
    "국밥": "국물", "찌개": "국물", "탕": "국물", "전골": "국물",
    # 고기요리
    "구이": "고기요리", "스테이크": "고기요리", "바비큐": "고기요리", "수육": "고기요리",
    # 해산물
    "해산물요리": "해산물", "회": "해산물", "해물찜": "해산물", "해물탕": "해산물",
    "조개/굴": "해산물",
    # 간편식
    "김밥": "간편식", "샌드위치": "간편식", "토스트": "간편식", "햄버거": "간편식",
    "타코": "간편식", "분식": "간편식",
    # 양식·퓨전
    "베트남": "양식·퓨전", "아시안": "양식·퓨전", "인도": "양식·퓨전", "양식": "양식·퓨전",
    "중식": "양식·퓨전", "프랑스": "양식·퓨전", "피자": "양식·퓨전", "리조또": "양식·퓨전",
    "브런치": "양식·퓨전",
    # 디저트
    "케이크": "디저트", "베이커리": "디저트", "도넛": "디저트", "아이스크림": "디저트",
    # 카페
    "커피": "카페", "차": "카페", "논커피": "카페", "와인바/바": "카페", "카공카페": "카페",
    # 술안주
    "이자카야": "술안주", "포차": "술안주", "안주 전문": "술안주",
}

VALID_CATEGORIES = (
    "밥", "면", "국물", "고기요리", "해산물", "간편식", "양식·퓨전", "디저트", "카페", "술안주",
)
FOOD_CATEGORY_MAINS = frozenset(cat for cat in VALID_CATEGORIES if cat != "카페")
GENERIC_ACTIVITY_TYPES = frozenset({"맛집", "추천", "밥", "식사", "먹을곳", "음식점", "산책", "놀곳"})

FOOD_HINTS = ("맛집", "식당", "밥", "요리", "국밥", "라멘", "파스타", "고기", "해산물")
CAFE_HINTS = ("카페", "커피", "라떼", "카공", "브런치카페")


def is_specific_category(activity_type: str | None) -> bool:
    """True when an activity names a concrete food/drink category rather than a generic ask."""
    if not activity_type or activity_type in GENERIC_ACTIVITY_TYPES:
        return False
    return any(cat in activity_type or activity_type in cat for cat in VALID_CATEGORIES)


def activity_bucket(place: Place) -> ActivityBucket:
    category_main = (place.category_main or "").strip()
    search_text = " ".join(
        [
            (place.category_sub or "").lower(),
            " ".join(place.tags).lower(),
            place.memo.lower(),
            place.short_desc.lower(),
        ]
    )
    if category_main == CAFE_BUCKET or any(hint in search_text for hint in CAFE_HINTS):
        return CAFE_BUCKET
    if category_main in FOOD_CATEGORY_MAINS or any(hint in search_text for hint in FOOD_HINTS):
        return FOOD_BUCKET
    return ATTRACTION_BUCKET


def matches_activity_bucket(place: Place, activity_type: str | None) -> bool:
    if activity_type not in ACTIVITY_BUCKETS:
        return True
    return activity_bucket(place) == activity_type
