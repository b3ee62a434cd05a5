from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

TagType = Literal["theme", "season", "occasion", "vibe", "food", "place", "constraint", "general"]

MAX_TAG_LENGTH = 30

GENERIC_TAGS = frozenset(
    {"맛집", "추천", "식당", "음식점", "가게", "장소", "여기", "저기", "알려줘", "보여줘"}
)


@dataclass(frozen=True, slots=True)
class TagRule:
    canonical: str
    type: TagType
    aliases: tuple[str, ...]
    flags: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class CanonicalTag:
    name: str
    type: TagType
    flags: frozenset[str]


CANONICAL_TAG_RULES: tuple[TagRule, ...] = (
    TagRule("혼밥", "occasion", ("혼자", "1인", "혼밥가능", "혼자밥", "혼자식사"), frozenset({"solo_ok"})),
    TagRule("혼술", "occasion", ("혼자술", "1인술"), frozenset({"solo_ok"})),
    TagRule("조용한 분위기", "vibe", ("조용한", "한적한", "시끄럽지않은", "차분한"), frozenset({"quiet"})),
    TagRule(
        "웨이팅 적음",
        "constraint",
        ("웨이팅없음", "웨이팅 없는", "바로입장", "대기없음", "대기 짧음"),
        frozenset({"no_wait"}),
    ),
    TagRule("예약 가능", "constraint", ("예약가능", "예약필수", "예약됨")),
    TagRule("주차 가능", "constraint", ("주차가능", "주차됨", "주차편함")),
    TagRule("데이트", "occasion", ("데이트하기좋은", "데이트코스", "커플")),
    TagRule("벚꽃", "theme", ("벚꽃명소", "벚꽃필때", "봄꽃")),
    TagRule("단풍", "theme", ("단풍명소", "가을단풍")),
    TagRule("봄", "season", ("봄날", "봄시즌")),
    TagRule("비오는날", "season", ("비오는 날", "우천", "우중")),
    TagRule("산책", "place", ("걷기좋은", "산책코스")),
    TagRule("포토스팟", "place", ("사진찍기좋은", "인생샷")),
    TagRule("야경", "place", ("야경명소", "밤풍경")),
    TagRule("카공", "occasion", ("카공하기좋은", "작업하기좋은", "노트북가능")),
    TagRule("가성비", "general", ("가격착한", "저렴한", "합리적인가격")),
    TagRule("심야 영업", "constraint", ("늦게까지", "새벽영업", "야식")),
    TagRule("브런치", "food", ("브런치카페",)),
    TagRule("디저트", "food", ("달달한", "후식")),
    TagRule("카페", "place", ("커피", "카페투어")),
    TagRule("볼거리", "place", ("전시", "팝업", "소품샵")),
    TagRule("매콤한", "food", ("매운", "매운맛")),
    TagRule("담백한", "food", ("깔끔한맛",)),
)

_ALIAS_INDEX: dict[str, TagRule] = {}
for _rule in CANONICAL_TAG_RULES:
    _ALIAS_INDEX[_rule.canonical.lower()] = _rule
    for _alias in _rule.aliases:
        _ALIAS_INDEX[_alias.lower()] = _rule

_WS_RE = re.compile(r"\s+")
_HASH_PREFIX_RE = re.compile(r"^#+")


def normalize_tag_name(tag: str) -> str:
    text = _HASH_PREFIX_RE.sub("", tag.strip())
    return _WS_RE.sub(" ", text)[:MAX_TAG_LENGTH]


def canonicalize_tag(tag: str) -> CanonicalTag:
    normalized = normalize_tag_name(tag)
    rule = _ALIAS_INDEX.get(normalized.lower())
    if rule is None:
        return CanonicalTag(name=normalized, type="general", flags=frozenset())
    return CanonicalTag(name=rule.canonical, type=rule.type, flags=rule.flags)


def is_meaningful_tag(tag: str) -> bool:
    if not tag or len(tag) < 2:
        return False
    return tag.lower() not in GENERIC_TAGS


def sanitize_tags(
    tags: Iterable[object], *, max_tags: int = 12, banned: Iterable[str] = ()
) -> list[str]:
    """Normalize, canonicalize and de-duplicate free-form tags, dropping generic ones."""
    banned_set = {normalize_tag_name(word).lower() for word in banned}
    result: list[str] = []
    for raw in tags:
        if not isinstance(raw, str):
            continue
        normalized = normalize_tag_name(raw)
        if not normalized or normalized.lower() in banned_set:
            continue
        name = canonicalize_tag(normalized).name
        if not is_meaningful_tag(name) or name in result:
            continue
        result.append(name)
        if len(result) >= max_tags:
            break
    return result


def infer_constraint_flags(keywords: Iterable[str]) -> frozenset[str]:
    flags: set[str] = set()
    for raw in keywords:
        keyword = normalize_tag_name(raw)
        if keyword:
            flags |= canonicalize_tag(keyword).flags
    return frozenset(flags)


def expand_keywords(keywords: Iterable[str]) -> list[str]:
    """Keywords plus every alias/canonical form they belong to, order-preserving."""
    expanded: list[str] = []

    def _add(value: str) -> None:
        if value not in expanded:
            expanded.append(value)

    for raw in keywords:
        keyword = normalize_tag_name(raw)
        if not keyword:
            continue
        _add(keyword)
        rule = _ALIAS_INDEX.get(keyword.lower())
        if rule is not None:
            _add(rule.canonical)
            for alias in rule.aliases:
                _add(alias)
    return expanded
