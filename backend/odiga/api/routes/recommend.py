from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...errors import RetrievalError
from ...input_validation import InputValidator
from ...logging_config import get_logger
from ...recommend import RecommendationService
from ...schemas import RecommendRequest, RecommendResponse
from ..deps import get_recommendation_service

router = APIRouter(tags=["recommend"])
logger = get_logger(__name__)


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(
    req: RecommendRequest,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendResponse:
    query = InputValidator.require_query(req.query)
    try:
        return await service.recommend(
            query,
            region=InputValidator.sanitize_region(req.region),
            people_count=InputValidator.to_positive_int(req.people_count),
            mode=InputValidator.validate_mode(req.mode),
            response_type=InputValidator.validate_response_type(req.response_type),
            feedback=InputValidator.sanitize_feedback(req.feedback),
            exclude_place_ids=InputValidator.sanitize_exclude_ids(req.exclude_place_ids),
        )
    except RetrievalError as exc:
        logger.error("recommend_failed", error=str(exc))
        raise HTTPException(500, "Internal server error") from exc
