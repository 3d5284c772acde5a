"""
Pulse LLM Client
================

Abstract client for the LLM collaborator.
Supports Claude (Anthropic) with OpenAI as a fallback.

The LLM is only used for structured review analysis (deep dive and
analyze-text). Both providers use their async SDK clients so several
deep dives can run concurrently.
"""

import os
import re
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from enum import Enum

logger = logging.getLogger(__name__)


class LLMProvider(Enum):
    """Supported LLM providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


@dataclass
class LLMResponse:
    """Response from an LLM."""
    content: str
    model: str
    provider: LLMProvider
    tokens_input: int
    tokens_output: int
    cost_usd: float

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output


_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json(content: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of a model response.

    Strips ``` fences, then falls back to the outermost {...} span when the
    model wrapped the JSON in prose.

    Raises:
        ValueError: No JSON object could be parsed
    """
    text = content.strip()
    if text.startswith("```"):
        parts = text.split("```")
        text = parts[1] if len(parts) > 1 else text
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if not match:
            logger.error(f"No JSON object in LLM response: {content[:500]}")
            raise ValueError("LLM did not return valid JSON")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.error(f"JSON parse error: {e}\nContent: {content[:500]}")
            raise ValueError(f"LLM did not return valid JSON: {e}")

    if not isinstance(parsed, dict):
        raise ValueError("LLM returned JSON that is not an object")
    return parsed


class LLMClient(ABC):
    """
    Abstract LLM client.

    Subclasses implement _complete() against their SDK; generate() adds the
    API key check and the usage accounting shared by all providers.
    """

    provider: LLMProvider
    api_key_env: str = ""
    default_model: str = ""

    # USD per 1M tokens, (input, output)
    PRICING: Dict[str, Tuple[float, float]] = {}
    FALLBACK_PRICE: Tuple[float, float] = (3.0, 15.0)

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or os.getenv(self.api_key_env)
        self.model = model or self.default_model
        self._client = None
        if not self.api_key:
            logger.warning(f"{self.api_key_env} not set - {self.provider.value} calls will fail")

    def cost_usd(self, tokens_input: int, tokens_output: int) -> float:
        price_in, price_out = self.PRICING.get(self.model, self.FALLBACK_PRICE)
        return round((tokens_input * price_in + tokens_output * price_out) / 1_000_000, 6)

    @abstractmethod
    async def _complete(
        self,
        prompt: str,
        system: Optional[str],
        max_tokens: int,
        temperature: float,
    ) -> Tuple[str, int, int]:
        """Call the provider; returns (text, input tokens, output tokens)."""

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a completion."""
        if not self.api_key:
            raise ValueError(f"{self.api_key_env} required")

        content, tokens_input, tokens_output = await self._complete(
            prompt, system, max_tokens, temperature,
        )
        return LLMResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            cost_usd=self.cost_usd(tokens_input, tokens_output),
        )

    async def generate_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> Dict[str, Any]:
        """Generate a completion and parse it as a JSON object."""
        response = await self.generate(
            prompt=prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=0.3,  # more deterministic for JSON
        )
        logger.debug(
            f"{response.provider.value} {response.model}: "
            f"{response.total_tokens} tokens, ${response.cost_usd}"
        )
        return extract_json(response.content)


class AnthropicClient(LLMClient):
    """Claude through the async Anthropic SDK."""

    provider = LLMProvider.ANTHROPIC
    api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-sonnet-4-20250514"

    PRICING = {
        "claude-sonnet-4-20250514": (3.0, 15.0),
        "claude-3-5-haiku-20241022": (0.8, 4.0),
    }

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def _complete(self, prompt, system, max_tokens, temperature):
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self._get_client().messages.create(**kwargs)
        text = "".join(block.text for block in response.content if getattr(block, "type", "text") == "text")
        return text, response.usage.input_tokens, response.usage.output_tokens


class OpenAIClient(LLMClient):
    """GPT through the async OpenAI SDK, used when Anthropic is not configured."""

    provider = LLMProvider.OPENAI
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"

    PRICING = {
        "gpt-4o": (2.5, 10.0),
        "gpt-4o-mini": (0.15, 0.6),
    }
    FALLBACK_PRICE = (2.5, 10.0)

    def _get_client(self):
        if self._client is None:
            import openai
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _complete(self, prompt, system, max_tokens, temperature):
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})

        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        usage = response.usage
        return (
            response.choices[0].message.content or "",
            usage.prompt_tokens,
            usage.completion_tokens,
        )


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> LLMClient:
    """
    Pick an LLM client.

    An explicit provider wins; otherwise Claude when ANTHROPIC_API_KEY is
    set, then GPT when OPENAI_API_KEY is set.

    Raises:
        ValueError: No provider configured
    """
    if provider == "openai":
        return OpenAIClient(model=model)
    if provider == "anthropic" or os.getenv("ANTHROPIC_API_KEY"):
        return AnthropicClient(model=model)
    if os.getenv("OPENAI_API_KEY"):
        # PULSE_LLM_MODEL names a Claude model
        return OpenAIClient()

    raise ValueError("No LLM API key found. Set ANTHROPIC_API_KEY or OPENAI_API_KEY")
