from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"
BUNDLED_DATA_DIR = Path(__file__).resolve().parent / "data"


@dataclass(slots=True, frozen=True)
class ScoringWeights:
    vibe: float = 0.30
    distance: float = 0.15
    jjeop: float = 0.15
    popularity: float = 0.15
    season: float = 0.10
    activity: float = 0.15

    @classmethod
    def from_string(cls, payload: str | None) -> ScoringWeights:
        base = cls()
        if not payload:
            return base
        mapping: dict[str, float] = {}
        for part in payload.split(","):
            if "=" not in part:
                continue
            key, value = part.split("=", 1)
            key = key.strip().lower()
            try:
                mapping[key] = float(value.strip())
            except ValueError:
                continue
        return cls(
            vibe=mapping.get("vibe", base.vibe),
            distance=mapping.get("distance", base.distance),
            jjeop=mapping.get("jjeop", base.jjeop),
            popularity=mapping.get("popularity", base.popularity),
            season=mapping.get("season", base.season),
            activity=mapping.get("activity", base.activity),
        )


DEFAULT_WEIGHTS = ScoringWeights()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    DEBUG: bool = False

    # catalog directory (defaults to ~/.odiga-data, seeded from the bundled copy)
    DATA_DIR: Path | None = None

    # CORS allow origins (comma-separated). Default empty (no cross-origin).
    CORS_ALLOW_ORIGINS: str = ""

    # Intent / query extraction
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: float = 15.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0
    INTENT_MODEL: str = "gpt-4o-mini"
    INTENT_MAX_TOKENS: int = 300
    SEARCH_PARSE_MAX_TOKENS: int = 500

    # Scoring
    SCORING_WEIGHTS: str = (
        "vibe=0.30,distance=0.15,jjeop=0.15,popularity=0.15,season=0.10,activity=0.15"
    )

    # Course geometry
    WALKING_DETOUR_FACTOR: float = 1.3  # straight line -> street grid
    MIN_STOP_SPACING_METERS: float = 100.0
    DIFFICULTY_EASY_MAX_METERS: float = 800.0
    DIFFICULTY_MEDIUM_MAX_METERS: float = 1800.0
    COURSE_MAX_ATTEMPTS: int = 20

    # Recommendation
    SINGLE_RESULT_COUNT: int = 5
    COURSE_RESULT_COUNT: int = 3
    CANDIDATE_LIMIT: int = 200
    MAX_EXCLUDE_PLACE_IDS: int = 50

    # Search
    DEFAULT_REGION: str = "서울"
    WHOLE_REGION_SENTINEL: str = "서울 전체"
    TOP_RATED_LIMIT: int = 20

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def data_dir(self) -> Path:
        # Blank values in `.env` would otherwise resolve to the repository root.
        raw_env = os.getenv("DATA_DIR")
        if raw_env is not None and raw_env.strip():
            return Path(raw_env.strip()).expanduser().resolve()
        if self.DATA_DIR is not None:
            candidate = Path(self.DATA_DIR).expanduser()
            if str(candidate).strip() not in {"", ".", "./", ".\\"}:
                return candidate.resolve()
        return Path.home() / ".odiga-data"

    @property
    def places_path(self) -> Path:
        return self.data_dir / "places.json"

    @property
    def parsed_scoring_weights(self) -> ScoringWeights:
        return ScoringWeights.from_string(self.SCORING_WEIGHTS)


settings = Settings()
