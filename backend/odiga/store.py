from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from shutil import copy2
from typing import Any

from .categories import is_specific_category, matches_activity_bucket
from .domain import Intent, Place, StoreQuery
from .errors import RetrievalError
from .search_ranker import (
    apply_constraint_filter,
    apply_keyword_filter,
    apply_location_keyword_filter,
)
from .settings import BUNDLED_DATA_DIR, settings
from .tags import expand_keywords

logger = logging.getLogger(__name__)

PLACES_FILENAME = "places.json"
MEAL_CONTEXTS = ("점심", "저녁", "식사", "밥")


def bootstrap_catalog(target: Path, seed: Path = BUNDLED_DATA_DIR / PLACES_FILENAME) -> None:
    """Copy the bundled seed catalog into the data directory on first use."""
    if target.exists():
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if seed.exists():
        copy2(seed, target)
    else:
        target.write_text("[]\n", encoding="utf-8")


def _contains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def _has_coordinates(row: dict[str, Any]) -> bool:
    try:
        float(row["lat"]), float(row["lon"])
    except (KeyError, TypeError, ValueError):
        return False
    return True


def _by_rating(places: Iterable[Place]) -> list[Place]:
    return sorted(places, key=lambda p: p.rating or 0.0, reverse=True)


def is_meal_context(intent: Intent) -> bool:
    context = intent.special_context or ""
    return any(
        ctx in context or any(ctx in vibe for vibe in intent.vibe) for ctx in MEAL_CONTEXTS
    )


class PlaceStore:
    """
    Place catalog backed by a JSON file of rows.

    Rows are loaded once and kept in memory; the file is the source of truth
    and is never written back.
    """

    def __init__(self, path: Path | None = None, rows: Sequence[dict[str, Any]] | None = None):
        self.path = path
        self._places: list[Place] | None = None
        if rows is not None:
            self._places = self._parse_rows(rows)

    @classmethod
    def default(cls) -> PlaceStore:
        path = settings.places_path
        bootstrap_catalog(path)
        return cls(path=path)

    @staticmethod
    def _parse_rows(rows: Iterable[Any]) -> list[Place]:
        places: list[Place] = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("id"):
                continue
            if not _has_coordinates(row):
                logger.warning("Skipping place %s without coordinates", row["id"])
                continue
            places.append(Place.from_row(row))
        return places

    def _load(self) -> list[Place]:
        if self._places is not None:
            return self._places
        if self.path is None:
            raise RetrievalError("Place catalog has no backing file")
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to read place catalog %s: %s", self.path, exc)
            raise RetrievalError(f"Place catalog unavailable: {self.path.name}") from exc
        if not isinstance(payload, list):
            raise RetrievalError(f"Place catalog must be a JSON list: {self.path.name}")
        self._places = self._parse_rows(payload)
        logger.info("Loaded %s places from %s", len(self._places), self.path)
        return self._places

    def all(self) -> list[Place]:
        return list(self._load())

    async def fetch_candidates(
        self, intent: Intent, limit: int = settings.CANDIDATE_LIMIT
    ) -> list[Place]:
        """Candidates for a recommendation, best-rated first.

        Filters by region (region, province or sub-region contains it), by a
        specific food category when one was asked for, drops cafés for meal
        requests, and finally keeps only the requested activity bucket.
        """
        places = self._load()
        if intent.region:
            places = [
                p
                for p in places
                if _contains(p.region, intent.region)
                or _contains(p.province, intent.region)
                or _contains(p.sub_region, intent.region)
            ]
        if intent.activity_type and is_specific_category(intent.activity_type):
            places = [
                p
                for p in places
                if _contains(p.category_main, intent.activity_type)
                or _contains(p.category_sub, intent.activity_type)
            ]
        if is_meal_context(intent) and "카페" not in (intent.activity_type or ""):
            places = [p for p in places if p.category_main != "카페"]

        ranked = _by_rating(places)[:limit]
        return [p for p in ranked if matches_activity_bucket(p, intent.activity_type)]

    def tag_matched_ids(self, keywords: Sequence[str]) -> set[str]:
        wanted = {kw.lower() for kw in expand_keywords(keywords) if kw.strip()}
        if not wanted:
            return set()
        return {p.id for p in self._load() if wanted & {tag.lower() for tag in p.tags}}

    def _base_rows(self, query: StoreQuery) -> list[Place]:
        places = self._load()
        if query.region and query.region != settings.WHOLE_REGION_SENTINEL:
            places = [p for p in places if p.region == query.region]
        if query.sub_region:
            places = [p for p in places if p.sub_region == query.sub_region]
        if query.category_main:
            places = [p for p in places if p.category_main == query.category_main]
        if query.category_sub:
            places = [p for p in places if p.category_sub == query.category_sub]
        if query.max_price_level is not None:
            places = [
                p
                for p in places
                if p.price_level is not None and p.price_level <= query.max_price_level
            ]
        if query.exclude_category_main:
            places = [p for p in places if p.category_main not in query.exclude_category_main]

        if query.location_keywords:
            limit = 500
        elif query.keywords:
            limit = 200
        else:
            limit = 100
        ordered = sorted(
            places,
            key=lambda p: (p.curation_level is None, -(p.curation_level or 0), -(p.rating or 0.0)),
        )
        return ordered[:limit]

    async def search(self, query: StoreQuery) -> list[Place]:
        """Run one structured search: base filters, then location/constraint/keyword passes."""
        results = self._base_rows(query)
        tag_matched = self.tag_matched_ids(query.keywords)
        has_location = bool(query.location_keywords)
        results = apply_location_keyword_filter(results, query.location_keywords)
        results = apply_constraint_filter(results, query, tag_matched)
        results = apply_keyword_filter(results, query, tag_matched, has_location)
        return results

    async def top_rated(self, limit: int = settings.TOP_RATED_LIMIT) -> list[Place]:
        return _by_rating(self._load())[:limit]
