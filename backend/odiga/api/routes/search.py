from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ...errors import RetrievalError, SearchExecutionError
from ...input_validation import InputValidator
from ...logging_config import get_logger
from ...schemas import SearchRequest, SearchResponse
from ...search import SearchService
from ..deps import get_search_service

router = APIRouter(tags=["search"])
logger = get_logger(__name__)


@router.post("/search", response_model=SearchResponse)
async def search(
    req: SearchRequest,
    request: Request,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    text = InputValidator.require_query(req.text, field="text")
    trace_id = getattr(request.state, "request_id", None)
    try:
        return await service.search(
            text, InputValidator.sanitize_region(req.ui_region), trace_id=trace_id
        )
    except (SearchExecutionError, RetrievalError) as exc:
        logger.error("search_request_failed", error=str(exc))
        raise HTTPException(500, "Internal server error") from exc
