#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.odiga.logging_config import configure_structlog  # noqa: E402
from backend.odiga.recommend import RecommendationService  # noqa: E402
from backend.odiga.schemas import RecommendResponse, SearchResponse  # noqa: E402
from backend.odiga.search import SearchService  # noqa: E402
from backend.odiga.store import PlaceStore  # noqa: E402


def _print_recommendation(result: RecommendResponse) -> None:
    print(f"type={result.type} region={result.intent.region} mode={result.intent.mode}")
    if result.parse_errors:
        print(f"parse errors: {', '.join(result.parse_errors)}")
    for course in result.courses:
        print(
            f"\nCourse {course.id}  {course.difficulty} {course.difficulty_label}"
            f"  {course.total_distance}m  score={course.total_score:.3f}"
        )
        for step in course.steps:
            leg = f"+{step.distance_from_prev}m" if step.distance_from_prev is not None else ""
            print(f"  [{step.label}] {step.place.name} ({step.place.category_sub}) {leg}")
    if not result.courses:
        for idx, place in enumerate(result.places, start=1):
            print(f"{idx}. {place.name} - {place.sub_region or place.region} ({place.score})")
            if place.short_desc:
                print(f"   {place.short_desc}")


def _print_search(result: SearchResponse) -> None:
    print(f"intent={result.intent} fallback_level={result.actions.fallback_level}")
    print(result.ui_hints.message)
    for idx, place in enumerate(result.places, start=1):
        print(f"{idx}. {place.name} [{place.category_main}/{place.category_sub}] {place.rating}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="odiga CLI for recommendations and search.")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    sub = parser.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("recommend", help="Recommend places or a course")
    rec.add_argument("query", help="Free-text request")
    rec.add_argument("--region")
    rec.add_argument("--people", type=int, dest="people_count")
    rec.add_argument("--mode", choices=["solo", "date", "group", "party"])
    rec.add_argument("--type", choices=["single", "course"], dest="response_type")
    rec.add_argument("--feedback", help="What was wrong with the previous answer")

    srch = sub.add_parser("search", help="Free-text search with relaxation")
    srch.add_argument("text")
    srch.add_argument("--region", dest="ui_region")

    args = parser.parse_args(argv)
    configure_structlog(level=logging.WARNING, stream=sys.stderr)
    store = PlaceStore.default()

    if args.command == "recommend":
        result = asyncio.run(
            RecommendationService(store).recommend(
                args.query,
                region=args.region,
                people_count=args.people_count,
                mode=args.mode,
                response_type=args.response_type,
                feedback=args.feedback,
            )
        )
        if args.json:
            print(json.dumps(result.model_dump(), ensure_ascii=False, indent=2))
        else:
            _print_recommendation(result)
        return

    result = asyncio.run(SearchService(store).search(args.text, args.ui_region))
    if args.json:
        print(json.dumps(result.model_dump(), ensure_ascii=False, indent=2))
    else:
        _print_search(result)


if __name__ == "__main__":
    main()
