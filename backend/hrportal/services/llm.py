"""
Chat-completion client for the HR agents.

Two runtimes are supported: OpenAI (cloud) and Ollama (on-premise). With
``AI_PROVIDER=auto`` OpenAI is used when an API key is configured and the local
Ollama server otherwise. Agents only ever ask for JSON objects, so both
runtimes are called in JSON mode and replies are parsed before returning.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
import openai
import ollama
from openai import AsyncOpenAI
from ollama import AsyncClient

from hrportal.core.config import Settings, settings as default_settings
from hrportal.core.exceptions import HRPortalError

logger = logging.getLogger("hrportal.llm")

OPENAI = "openai"
OLLAMA = "ollama"


class LLMError(HRPortalError):
    """The model provider failed, timed out or answered with something unusable."""

    status_code = 502
    default_message = "AI service unavailable"


def resolve_provider(config: Settings) -> Tuple[str, str]:
    """
    Pick the runtime and model for the configured provider.

    An explicit ``openai`` without a key falls back to the local runtime.
    """
    requested = config.AI_PROVIDER.lower()
    if requested in (OPENAI, "auto") and config.OPENAI_API_KEY:
        return OPENAI, config.OPENAI_MODEL
    if requested == OPENAI:
        logger.warning("AI_PROVIDER=openai but OPENAI_API_KEY is not set; using Ollama")
    return OLLAMA, config.OLLAMA_MODEL


def parse_json_reply(content: str) -> Dict[str, Any]:
    """Decode a model reply that should hold a single JSON object."""
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    try:
        data = json.loads(text)
    except ValueError:
        raise LLMError("AI service returned an invalid response")
    if not isinstance(data, dict):
        raise LLMError("AI service returned an invalid response")
    return data


class LLMClient:
    def __init__(
        self,
        provider: str,
        model: str,
        api_key: Optional[str] = None,
        ollama_base_url: str = "http://localhost:11434",
        timeout: float = 60.0,
    ):
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.ollama_base_url = ollama_base_url
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "LLMClient":
        config = config or default_settings
        provider, model = resolve_provider(config)
        return cls(
            provider=provider,
            model=model,
            api_key=config.OPENAI_API_KEY,
            ollama_base_url=config.OLLAMA_BASE_URL,
            timeout=config.LLM_REQUEST_TIMEOUT,
        )

    async def _call_openai(
        self, messages: List[Dict[str, str]], temperature: float, max_tokens: Optional[int]
    ) -> str:
        client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        request_kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        }
        if max_tokens:
            request_kwargs["max_tokens"] = max_tokens

        response = await client.chat.completions.create(**request_kwargs)
        if response.usage:
            logger.debug(f"OpenAI {self.model} used {response.usage.total_tokens} tokens")
        return response.choices[0].message.content or ""

    async def _call_ollama(
        self, messages: List[Dict[str, str]], temperature: float, max_tokens: Optional[int]
    ) -> str:
        client = AsyncClient(host=self.ollama_base_url)
        response = await asyncio.wait_for(
            client.chat(
                model=self.model,
                messages=messages,
                format="json",
                options={"temperature": temperature, "num_predict": max_tokens or -1},
            ),
            timeout=self.timeout,
        )
        # Older ollama releases return a dict, newer ones a ChatResponse
        if isinstance(response, dict):
            return (response.get("message") or {}).get("content", "")
        message = getattr(response, "message", None)
        return getattr(message, "content", "") or ""

    async def complete_json(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Ask for a JSON object shaped like ``schema``.

        Raises:
            LLMError: provider failure, timeout, or a reply that is not a JSON object
        """
        instruction = {
            "role": "system",
            "content": "Reply with a single JSON object shaped like this example, and nothing else:\n"
            + json.dumps(schema, indent=2),
        }
        payload = [*messages, instruction]

        try:
            if self.provider == OPENAI:
                content = await self._call_openai(payload, temperature, max_tokens)
            else:
                content = await self._call_ollama(payload, temperature, max_tokens)
        except asyncio.TimeoutError:
            logger.error(f"{self.provider} request timed out after {self.timeout}s")
            raise LLMError(f"AI service timed out after {self.timeout:.0f}s")
        except (openai.OpenAIError, ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.error(f"{self.provider} request failed: [{type(e).__name__}] {e}")
            raise LLMError(f"AI service error ({self.provider})")

        return parse_json_reply(content)
