from __future__ import annotations

from collections.abc import Iterable, Sequence

from .domain import Place, StoreQuery

SOLO_MARKERS = ("혼밥", "혼자", "혼술")
QUIET_MARKERS = ("조용", "한적", "차분")
NO_WAIT_MARKERS = ("웨이팅", "바로입장", "대기없")
GENERIC_KEYWORDS = (
    "맛집", "추천", "알려줘", "보여줘", "어디", "어디서", "어디가", "가고 싶어", "먹고 싶어", "가볼 곳",
)


def _has_marker(values: Iterable[str], markers: Sequence[str]) -> bool:
    return any(marker in value.lower() for value in values for marker in markers)


def location_matches_keyword(place: Place, keyword: str) -> bool:
    kw = keyword.strip().lower()
    if not kw:
        return False
    for field in (place.sub_region, place.region, place.province):
        if field and kw in field.lower():
            return True
    return any(kw in tag.lower() for tag in place.tags)


def apply_location_keyword_filter(
    places: Sequence[Place], location_keywords: Sequence[str]
) -> list[Place]:
    keywords = [kw for kw in location_keywords if kw.strip()]
    if not keywords:
        return list(places)
    return [p for p in places if any(location_matches_keyword(p, kw) for kw in keywords)]


def apply_constraint_filter(
    places: Sequence[Place], query: StoreQuery, tag_matched_ids: set[str]
) -> list[Place]:
    """Keep places whose tags back up every requested flag.

    A solo request is also satisfied by a tag match on a solo keyword.
    """
    if not (query.solo_ok or query.quiet or query.no_wait):
        return list(places)
    solo_keyword = _has_marker(query.keywords, SOLO_MARKERS)
    kept: list[Place] = []
    for place in places:
        if query.solo_ok and not (
            _has_marker(place.tags, SOLO_MARKERS) or (solo_keyword and place.id in tag_matched_ids)
        ):
            continue
        if query.quiet and not _has_marker(place.tags, QUIET_MARKERS):
            continue
        if query.no_wait and not _has_marker(place.tags, NO_WAIT_MARKERS):
            continue
        kept.append(place)
    return kept


def _is_generic(keyword: str) -> bool:
    return any(keyword in generic or generic in keyword for generic in GENERIC_KEYWORDS)


def sort_by_tag_and_rating(places: Sequence[Place], tag_matched_ids: set[str]) -> list[Place]:
    return sorted(places, key=lambda p: (p.id not in tag_matched_ids, -(p.rating or 0.0)))


def apply_keyword_filter(
    places: Sequence[Place],
    query: StoreQuery,
    tag_matched_ids: set[str],
    has_location_filter: bool,
) -> list[Place]:
    """Narrow by specific keywords, then order tag matches first and by rating.

    Generic words ("맛집", "추천", ...) never filter. When location keywords are
    active and the keyword filter would empty the list, it is skipped.
    """
    if not query.keywords:
        return list(places)
    specific = [kw.lower() for kw in query.keywords if not _is_generic(kw.lower())]
    results = list(places)
    if specific:
        filtered = [
            p
            for p in results
            if p.id in tag_matched_ids
            or any(kw in f"{p.name} {p.memo} {p.short_desc}".lower() for kw in specific)
        ]
        if filtered or not has_location_filter:
            results = filtered
    return sort_by_tag_and_rating(results, tag_matched_ids)
