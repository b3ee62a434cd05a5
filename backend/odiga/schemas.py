from typing import Any, Literal

from pydantic import BaseModel, Field


class RecommendRequest(BaseModel):
    # Loose types on purpose: the validator layer decides what is usable.
    query: Any = None
    region: str | None = None
    people_count: int | str | None = None
    mode: str | None = None
    response_type: str | None = None
    feedback: str | None = None
    exclude_place_ids: list[Any] | None = None


class SearchRequest(BaseModel):
    text: Any = None
    ui_region: str | None = Field(default=None, description="Region selected in the UI")


class ScoreBreakdownOut(BaseModel):
    vibe_match: float
    distance: float
    jjeop_level: float
    popularity: float
    season: float
    activity_match: float


class PlaceOut(BaseModel):
    id: str
    name: str
    region: str
    sub_region: str | None = None
    province: str | None = None
    category_main: str | None = None
    category_sub: str | None = None
    lat: float
    lon: float
    address: str = ""
    memo: str = ""
    short_desc: str = ""
    tags: list[str] = Field(default_factory=list)
    rating: float = 0.0
    price_level: int | None = None
    image_url: str | None = None
    score: float | None = None
    score_breakdown: ScoreBreakdownOut | None = None


class CourseStepOut(BaseModel):
    label: str
    place: PlaceOut
    distance_from_prev: int | None = None


class CourseOut(BaseModel):
    id: int
    steps: list[CourseStepOut]
    total_distance: int
    difficulty: str
    difficulty_label: str
    mode: str
    vibes: list[str]
    total_score: float


class IntentOut(BaseModel):
    response_type: Literal["single", "course"]
    region: str | None = None
    vibe: list[str] = Field(default_factory=list)
    activity_type: str | None = None
    people_count: int | None = None
    season: str | None = None
    mode: str | None = None
    special_context: str | None = None


class Timing(BaseModel):
    llm_ms: int
    db_ms: int
    total_ms: int


class RecommendResponse(BaseModel):
    type: Literal["single", "course"]
    places: list[PlaceOut]
    courses: list[CourseOut]
    intent: IntentOut
    parse_errors: list[str]
    timing: Timing


class SearchSlotsOut(BaseModel):
    location_keywords: list[str] = Field(default_factory=list)
    region: str | None = None
    sub_region: str | None = None
    place_name: str | None = None
    category_main: str | None = None
    category_sub: str | None = None
    exclude_category_main: list[str] = Field(default_factory=list)
    time_of_day: str | None = None
    visit_context: str | None = None
    constraints: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    count: int | None = None
    open_now: bool | None = None


class UIHintsOut(BaseModel):
    message_type: Literal["success", "no_results_soft", "need_clarification"]
    message: str
    suggestions: list[str] = Field(default_factory=list)


class SearchActionsOut(BaseModel):
    mode: Literal["browse", "explore"]
    should_show_map: bool
    result_limit: int
    fallback_applied: bool
    fallback_notes: list[str]
    fallback_level: int


class SearchResponse(BaseModel):
    places: list[PlaceOut]
    intent: str
    slots: SearchSlotsOut
    actions: SearchActionsOut
    ui_hints: UIHintsOut
    confidence: float | None = None
    trace_id: str
    timing: Timing
