from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import replace

import sentry_sdk

from .categories import ATTRACTION_BUCKET, activity_bucket
from .course_builder import build_courses
from .domain import Course, Intent, Place, ResponseType, ScoredPlace
from .errors import RetrievalError
from .intent import IntentResult, apply_server_defaults, extract_intent
from .logging_config import get_logger
from .metrics import external_call_duration_seconds, recommendations_total
from .mode_planner import plan_mode
from .schemas import RecommendResponse, Timing
from .scoring import apply_feedback, feedback_keywords, rotate_for_feedback, score_places
from .serializers import course_to_out, intent_to_out, scored_to_out
from .settings import ScoringWeights, settings
from .store import PlaceStore
from .utils import elapsed_ms

logger = get_logger(__name__)

IntentExtractor = Callable[[str], Awaitable[IntentResult]]


def has_attraction_step(course: Course) -> bool:
    return any(activity_bucket(step.place.place) == ATTRACTION_BUCKET for step in course.steps)


def prefer_attraction_courses(
    courses: list[Course], candidates: Sequence[ScoredPlace]
) -> list[Course]:
    """Keep only courses with a sightseeing stop when the pool has one to offer."""
    if not any(activity_bucket(p.place) == ATTRACTION_BUCKET for p in candidates):
        return courses
    with_attraction = [course for course in courses if has_attraction_step(course)]
    return with_attraction or courses


class RecommendationService:
    def __init__(
        self,
        store: PlaceStore,
        extract: IntentExtractor = extract_intent,
        weights: ScoringWeights | None = None,
        *,
        single_count: int = settings.SINGLE_RESULT_COUNT,
        course_count: int = settings.COURSE_RESULT_COUNT,
    ) -> None:
        self.store = store
        self.extract = extract
        self.weights = weights or settings.parsed_scoring_weights
        self.single_count = single_count
        self.course_count = course_count

    def rank(
        self,
        places: Iterable[Place],
        intent: Intent,
        *,
        feedback: str | None = None,
        exclude_place_ids: Sequence[str] = (),
    ) -> list[ScoredPlace]:
        excluded = set(exclude_place_ids)
        scored = [p for p in score_places(places, intent, self.weights) if p.id not in excluded]
        scored = apply_feedback(scored, feedback_keywords(feedback))
        return rotate_for_feedback(scored, feedback)

    def assemble(self, ranked: Sequence[ScoredPlace], intent: Intent) -> list[Course]:
        mode_config = plan_mode(intent.people_count or 1, intent.mode)
        courses = build_courses(
            ranked,
            mode_config,
            intent.vibe,
            self.course_count,
            primary_activity_type=intent.activity_type,
        )
        courses = prefer_attraction_courses(courses, ranked)
        # renumber after filtering so ids stay 1..n
        return [replace(course, id=index) for index, course in enumerate(courses, start=1)]

    async def recommend(
        self,
        query: str,
        *,
        region: str | None = None,
        people_count: int | None = None,
        mode: str | None = None,
        response_type: ResponseType | None = None,
        feedback: str | None = None,
        exclude_place_ids: Sequence[str] = (),
    ) -> RecommendResponse:
        """Recommend single places or courses for a free-text request.

        Raises:
            RetrievalError: the place catalog could not be queried.
        """
        started = time.perf_counter()

        llm_started = time.perf_counter()
        with sentry_sdk.start_span(op="odiga.intent", name="extract_intent"):
            extracted = await self.extract(query)
        llm_ms = elapsed_ms(llm_started)
        external_call_duration_seconds.labels(call="intent").observe(llm_ms / 1000)

        intent = apply_server_defaults(
            extracted.intent,
            region=region,
            people_count=people_count,
            mode=mode,
            response_type=response_type,
        )
        sentry_sdk.add_breadcrumb(
            category="odiga",
            message="intent",
            data={"type": intent.response_type, "region": intent.region},
        )

        db_started = time.perf_counter()
        try:
            candidates = await self.store.fetch_candidates(intent, settings.CANDIDATE_LIMIT)
        except RetrievalError:
            logger.error("candidate_fetch_failed", region=intent.region)
            raise
        db_ms = elapsed_ms(db_started)
        external_call_duration_seconds.labels(call="catalog").observe(db_ms / 1000)

        places_out = []
        courses_out = []
        if candidates:
            ranked = self.rank(
                candidates, intent, feedback=feedback, exclude_place_ids=exclude_place_ids
            )
            places_out = [scored_to_out(item) for item in ranked[: self.single_count]]
            if intent.response_type == "course":
                courses_out = [course_to_out(c) for c in self.assemble(ranked, intent)]

        recommendations_total.labels(type=intent.response_type).inc()
        timing = Timing(llm_ms=llm_ms, db_ms=db_ms, total_ms=elapsed_ms(started))
        logger.info(
            "recommendation_completed",
            type=intent.response_type,
            candidates=len(candidates),
            places=len(places_out),
            courses=len(courses_out),
            parse_errors=extracted.parse_errors,
            total_ms=timing.total_ms,
        )
        return RecommendResponse(
            type=intent.response_type,
            places=places_out,
            courses=courses_out,
            intent=intent_to_out(intent),
            parse_errors=list(extracted.parse_errors),
            timing=timing,
        )
