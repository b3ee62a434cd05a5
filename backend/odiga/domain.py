from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

ResponseType = Literal["single", "course"]


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class Place:
    """Read-only snapshot of one catalog row."""

    id: str
    name: str
    lat: float
    lon: float
    region: str = ""
    sub_region: str | None = None
    province: str | None = None
    category_main: str | None = None
    category_sub: str | None = None
    address: str = ""
    memo: str = ""
    short_desc: str = ""
    tags: tuple[str, ...] = ()
    rating: float = 0.0
    price_level: int | None = None
    features: Mapping[str, bool] = field(default_factory=dict)
    curation_level: int | None = None
    image_url: str | None = None

    @property
    def category(self) -> str:
        return f"{self.category_main or ''} {self.category_sub or ''}".strip()

    def has_feature(self, name: str) -> bool:
        return bool(self.features.get(name))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Place:
        raw_tags = row.get("tags") or []
        if isinstance(raw_tags, str):
            raw_tags = raw_tags.split(",")
        tags: list[str] = []
        for tag in raw_tags:
            text = str(tag).strip()
            if text and text not in tags:
                tags.append(text)
        raw_features = row.get("features")
        features: dict[str, bool] = {}
        if isinstance(raw_features, Mapping):
            features = {str(key): bool(value) for key, value in raw_features.items()}
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            lat=_as_float(row.get("lat")),
            lon=_as_float(row.get("lon")),
            region=str(row.get("region") or ""),
            sub_region=row.get("sub_region") or None,
            province=row.get("province") or None,
            category_main=row.get("category_main") or None,
            category_sub=row.get("category_sub") or None,
            address=str(row.get("address") or ""),
            memo=str(row.get("memo") or ""),
            short_desc=str(row.get("short_desc") or ""),
            tags=tuple(tags),
            rating=_as_float(row.get("rating")),
            price_level=_as_optional_int(row.get("price_level")),
            features=features,
            curation_level=_as_optional_int(row.get("curation_level")),
            image_url=row.get("image_url") or row.get("imageUrl") or None,
        )


@dataclass(frozen=True, slots=True)
class Intent:
    response_type: ResponseType = "single"
    region: str | None = None
    vibe: tuple[str, ...] = ()
    activity_type: str | None = None
    people_count: int | None = None
    season: str | None = None
    mode: str | None = None
    special_context: str | None = None


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    vibe_match: float
    distance: float
    jjeop_level: float
    popularity: float
    season: float
    activity_match: float


@dataclass(frozen=True, slots=True)
class ScoredPlace:
    place: Place
    score: float
    breakdown: ScoreBreakdown

    @property
    def id(self) -> str:
        return self.place.id

    @property
    def lat(self) -> float:
        return self.place.lat

    @property
    def lon(self) -> float:
        return self.place.lon


@dataclass(frozen=True, slots=True)
class ModeConfig:
    mode: str
    steps: int
    labels: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CourseStep:
    label: str
    place: ScoredPlace
    distance_from_prev: int | None = None


@dataclass(frozen=True, slots=True)
class Course:
    id: int
    steps: tuple[CourseStep, ...]
    total_distance: int
    difficulty: str
    mode: str
    vibes: tuple[str, ...]
    total_score: float

    @property
    def place_ids(self) -> tuple[str, ...]:
        return tuple(step.place.id for step in self.steps)

    @property
    def combination_key(self) -> frozenset[str]:
        return frozenset(self.place_ids)


@dataclass(frozen=True, slots=True)
class SearchSlots:
    location_keywords: tuple[str, ...] = ()
    region: str | None = None
    sub_region: str | None = None
    place_name: str | None = None
    category_main: str | None = None
    category_sub: str | None = None
    exclude_category_main: tuple[str, ...] = ()
    time_of_day: str | None = None
    visit_context: str | None = None
    constraints: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    count: int | None = None
    open_now: bool | None = None


@dataclass(frozen=True, slots=True)
class SearchQuery:
    intent: str = "CLARIFY_QUERY"
    slots: SearchSlots = field(default_factory=SearchSlots)


@dataclass(frozen=True, slots=True)
class StoreQuery:
    """Flattened filter handed to the catalog for one ladder step."""

    location_keywords: tuple[str, ...] = ()
    region: str | None = None
    sub_region: str | None = None
    category_main: str | None = None
    category_sub: str | None = None
    exclude_category_main: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    solo_ok: bool = False
    quiet: bool = False
    no_wait: bool = False
    max_price_level: int | None = None


@dataclass(frozen=True, slots=True)
class FallbackResult:
    places: list[Place]
    fallback_applied: bool
    fallback_notes: list[str]
    fallback_level: int
