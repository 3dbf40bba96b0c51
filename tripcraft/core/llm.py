"""Centralised LLM client utilities."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

import httpx

from tripcraft.config import Settings


_LOGGER = logging.getLogger(__name__)


class LLMResponseError(ValueError):
    """Raised when a chat completion payload has no usable content."""


def _clean_dict(payload: MutableMapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass
class LLMClient:
    """A small async wrapper for calling OpenAI-compatible chat completion APIs."""

    model: str = "gpt-4o"
    temperature: float = 0.7
    timeout: Optional[float] = 60.0
    max_tokens: Optional[int] = None
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls, settings: Settings, *, http_client: Optional[httpx.AsyncClient] = None
    ) -> "LLMClient":
        return cls(
            model=settings.model,
            temperature=settings.temperature,
            timeout=settings.llm_timeout,
            max_tokens=settings.max_tokens,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            http_client=http_client,
        )

    async def chat(
        self,
        *,
        prompt: str,
        system: Optional[str] = None,
        model: Optional[str] = None,
        stop: Optional[Sequence[str]] = None,
        prompt_version: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        force_json: bool = False,
    ) -> Dict[str, Any]:
        """Call the backing LLM API and return its raw response."""

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        if force_json:
            messages.append(
                {
                    "role": "system",
                    "content": "You must respond with a valid JSON object and nothing else.",
                }
            )

        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "stop": list(stop) if stop else None,
            "user": prompt_version,
            "response_format": {"type": "json_object"} if force_json else None,
        }

        payload = _clean_dict(payload)

        _LOGGER.debug(
            "Calling chat completion model %s [prompt_version=%s]",
            payload["model"],
            prompt_version,
        )

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        url = f"{self.base_url.rstrip('/')}/chat/completions"
        if self.http_client is not None:
            response = await self.http_client.post(
                url, json=payload, headers=headers, timeout=self.timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def extract_content(response: Mapping[str, Any]) -> str:
        """Extract the assistant message content from a chat completion response."""

        choices = response.get("choices")
        if not choices:
            raise LLMResponseError("LLM response did not contain any choices")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            raise LLMResponseError("LLM response did not contain content")
        return content


async def llm_json(
    client: LLMClient,
    *,
    prompt: str,
    prompt_version: str,
    system: Optional[str] = None,
    model: Optional[str] = None,
    stop: Optional[Sequence[str]] = None,
    json_mode: bool = True,
) -> Any:
    """Call ``client`` expecting a JSON response.

    The first request is sent as-is. When ``json_mode`` is set, a reply that
    does not decode is reissued once with JSON output forced; otherwise, or on a
    second decoding failure, :class:`json.JSONDecodeError` propagates.
    """

    try:
        response = await client.chat(
            prompt=prompt,
            system=system,
            model=model,
            stop=stop,
            prompt_version=prompt_version,
        )
        content = client.extract_content(response)
        return json.loads(content)
    except json.JSONDecodeError:
        if not json_mode:
            raise
        _LOGGER.info("LLM returned invalid JSON, retrying with forced JSON [prompt_version=%s]", prompt_version)
        retry_response = await client.chat(
            prompt=prompt,
            system=system,
            model=model,
            stop=stop,
            prompt_version=prompt_version,
            force_json=True,
        )
        retry_content = client.extract_content(retry_response)
        return json.loads(retry_content)


__all__ = ["LLMClient", "LLMResponseError", "llm_json"]
