from __future__ import annotations


class OdigaError(RuntimeError):
    """Base class for recommendation/search failures."""


class LLMUnavailable(OdigaError):
    """Raised when the text-understanding service cannot be reached or answers garbage."""


class IntentUnavailable(OdigaError):
    """Raised when a structured intent cannot be extracted from the user text."""


class RetrievalError(OdigaError):
    """Raised when the place catalog cannot be queried.

    Distinct from "no candidates": callers render a storage failure, not an
    empty result.
    """


class SearchExecutionError(OdigaError):
    """Raised when a query execution fails mid-ladder."""

    def __init__(self, message: str, *, level: int) -> None:
        super().__init__(message)
        self.level = level
