"""Shared utilities for TripCraft's LLM-backed agents."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from tripcraft.core.llm import LLMClient, llm_json
from tripcraft.core.prompts import PromptNotFoundError, RenderedPrompt

T = TypeVar("T", bound=BaseModel)


class AgentExecutionError(RuntimeError):
    """Raised when an agent cannot return a valid payload."""


# Everything an LLM round trip can raise: transport failures, prompt problems,
# undecodable JSON and schema mismatches.
LLM_CALL_ERRORS = (httpx.HTTPError, ValueError, PromptNotFoundError, AgentExecutionError)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, set):
        return sorted(value)
    return value


def format_prompt_data(data: Any) -> str:
    """Render arbitrary python data for inclusion in an LLM prompt."""

    return json.dumps(data, indent=2, default=_json_default, ensure_ascii=False)


async def call_llm_and_validate(
    *,
    client: LLMClient,
    schema: Type[T],
    rendered: RenderedPrompt,
    system_prompt: str,
    prompt_version: str,
    stop: Optional[Sequence[str]] = None,
) -> T:
    """Send a rendered prompt and validate the JSON payload against ``schema``."""

    data = await llm_json(
        client,
        prompt=rendered.prompt,
        system=system_prompt,
        model=rendered.model,
        stop=stop,
        prompt_version=prompt_version,
        json_mode=rendered.json_mode,
    )
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise AgentExecutionError(
            f"LLM response could not be validated as {schema.__name__}: {exc}"
        ) from exc


from .itinerary import ItineraryAgent
from .packing import PackingAgent
from .photos import PhotoAgent, photo_caption

__all__ = [
    "AgentExecutionError",
    "ItineraryAgent",
    "LLM_CALL_ERRORS",
    "PackingAgent",
    "PhotoAgent",
    "call_llm_and_validate",
    "format_prompt_data",
    "photo_caption",
]
