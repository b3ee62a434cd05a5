from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import asdict

import sentry_sdk

from .domain import Place, SearchQuery
from .errors import SearchExecutionError
from .logging_config import get_logger, search_context
from .metrics import external_call_duration_seconds, search_fallback_level_total
from .schemas import SearchActionsOut, SearchResponse, Timing, UIHintsOut
from .search_fallback import run_fallback_search
from .search_parser import ParseResult, parse_search_query, to_store_query
from .search_presentation import generate_search_actions, generate_ui_hints
from .serializers import place_to_out, slots_to_out
from .store import PlaceStore
from .utils import elapsed_ms

logger = get_logger(__name__)

QueryParser = Callable[[str], Awaitable[ParseResult]]


class SearchService:
    def __init__(self, store: PlaceStore, parse: QueryParser = parse_search_query) -> None:
        self.store = store
        self.parse = parse

    async def execute(self, query: SearchQuery) -> list[Place]:
        # region hints are folded into the slots by the ladder, never here
        return await self.store.search(to_store_query(query))

    async def search(
        self, text: str, ui_region: str | None = None, trace_id: str | None = None
    ) -> SearchResponse:
        """Parse free text, search with progressive relaxation, describe the outcome.

        Raises:
            SearchExecutionError: a catalog query failed mid-ladder.
        """
        trace_id = trace_id or uuid.uuid4().hex
        with search_context(trace_id):
            return await self._search(text, ui_region, trace_id)

    async def _search(self, text: str, ui_region: str | None, trace_id: str) -> SearchResponse:
        started = time.perf_counter()

        with sentry_sdk.start_span(op="odiga.search.parse", name="parse_search_query"):
            parsed = await self.parse(text)
        llm_ms = elapsed_ms(started)
        external_call_duration_seconds.labels(call="search_parse").observe(llm_ms / 1000)

        db_started = time.perf_counter()
        try:
            with sentry_sdk.start_span(op="odiga.search.fallback", name="run_fallback_search"):
                fallback = await run_fallback_search(
                    parsed.query, text, ui_region, self.execute, self.store.top_rated
                )
        except SearchExecutionError as exc:
            logger.error("search_failed", fallback_level=exc.level)
            raise
        db_ms = elapsed_ms(db_started)

        search_fallback_level_total.labels(level=str(fallback.fallback_level)).inc()
        hints = generate_ui_hints(
            parsed.query, len(fallback.places), fallback.fallback_applied, fallback.fallback_notes
        )
        actions = generate_search_actions(parsed.query, fallback)
        places = fallback.places[: actions.result_limit]

        timing = Timing(llm_ms=llm_ms, db_ms=db_ms, total_ms=elapsed_ms(started))
        logger.info(
            "search_completed",
            intent=parsed.query.intent,
            results=len(places),
            fallback_level=fallback.fallback_level,
            total_ms=timing.total_ms,
        )
        return SearchResponse(
            places=[place_to_out(place) for place in places],
            intent=parsed.query.intent,
            slots=slots_to_out(parsed.query.slots),
            actions=SearchActionsOut(**asdict(actions)),
            ui_hints=UIHintsOut(**asdict(hints)),
            confidence=parsed.confidence,
            trace_id=trace_id,
            timing=timing,
        )
