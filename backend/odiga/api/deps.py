from __future__ import annotations

from functools import lru_cache

from ..recommend import RecommendationService
from ..search import SearchService
from ..store import PlaceStore


@lru_cache(maxsize=1)
def get_store() -> PlaceStore:
    return PlaceStore.default()


def get_recommendation_service() -> RecommendationService:
    return RecommendationService(get_store())


def get_search_service() -> SearchService:
    return SearchService(get_store())
