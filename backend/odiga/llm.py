from __future__ import annotations

import asyncio
import json
import re
from typing import Any

import httpx

from .errors import LLMUnavailable
from .settings import settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

_NEW_STYLE_MODEL_PREFIXES = ("gpt-4o", "gpt-4.1", "gpt-5", "o1", "o3", "o4")


def _headers() -> dict[str, str]:
    if not settings.OPENAI_API_KEY:
        raise LLMUnavailable("OPENAI_API_KEY not configured")
    return {
        "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                timeout = httpx.Timeout(
                    settings.OPENAI_TIMEOUT_SECONDS,
                    connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
                )
                base_url = settings.OPENAI_API_BASE.rstrip("/") or "https://api.openai.com/v1"
                _client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
    return _client


async def post_json(
    path: str, payload: dict[str, Any], *, timeout: float | None = None
) -> dict[str, Any]:
    client = await _get_client()
    headers = _headers()
    try:
        response = await client.post(path, json=payload, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise LLMUnavailable(f"Request failed: {exc}") from exc
    if response.status_code >= 400:
        raise LLMUnavailable(f"LLM error {response.status_code}: {response.text[:200]}")
    try:
        return response.json()
    except ValueError as exc:
        raise LLMUnavailable("Invalid JSON from LLM endpoint") from exc


async def close_async_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def _token_param(model: str | None) -> str:
    name = (model or "").lower()
    if name.startswith(_NEW_STYLE_MODEL_PREFIXES):
        return "max_completion_tokens"
    return "max_tokens"


def extract_json_dict(raw: str) -> dict[str, Any]:
    """Extract a JSON object from model output that may contain prose or code fences."""

    if not isinstance(raw, str):
        raise ValueError("payload must be a string")
    text = raw.strip()
    if not text:
        raise ValueError("payload is empty")

    fence_match = _CODE_FENCE_RE.search(text)
    if fence_match:
        text = fence_match.group(1).strip()

    decoder = json.JSONDecoder()
    for index, char in enumerate(text):
        if char != "{":
            continue
        try:
            obj, _ = decoder.raw_decode(text[index:])
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj

    raise ValueError("No JSON object found in payload")


async def chat_text(system_prompt: str, user_prompt: str, *, max_tokens: int) -> str:
    """Single-turn completion; returns the first choice's content."""
    model = settings.INTENT_MODEL
    payload: dict[str, Any] = {
        "model": model,
        "temperature": 0,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }
    payload[_token_param(model)] = max_tokens
    response = await post_json(
        "/chat/completions", payload, timeout=settings.OPENAI_TIMEOUT_SECONDS
    )
    choices = response.get("choices") or []
    if not choices:
        raise LLMUnavailable("Empty LLM response")
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else ""


async def chat_json(system_prompt: str, user_prompt: str, *, max_tokens: int) -> dict[str, Any]:
    """Completion parsed into a JSON object.

    Raises:
        LLMUnavailable: transport or API failure.
        ValueError: the model answered without a usable JSON object.
    """
    content = await chat_text(system_prompt, user_prompt, max_tokens=max_tokens)
    return extract_json_dict(content)
