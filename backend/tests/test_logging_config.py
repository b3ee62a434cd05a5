import structlog
from backend.odiga.logging_config import mark_degraded_search, search_context


def test_wide_fallbacks_are_marked_degraded():
    assert mark_degraded_search(None, "info", {"fallback_level": 5})["degraded"] is True
    assert mark_degraded_search(None, "info", {"fallback_level": 4})["degraded"] is True
    assert "degraded" not in mark_degraded_search(None, "info", {"fallback_level": 3})
    assert "degraded" not in mark_degraded_search(None, "info", {"event": "recommendation"})


def test_search_context_binds_trace_id():
    with search_context("trace-123"):
        event = structlog.contextvars.merge_contextvars(None, "info", {"event": "x"})
        assert event["trace_id"] == "trace-123"
    after = structlog.contextvars.merge_contextvars(None, "info", {"event": "x"})
    assert "trace_id" not in after
