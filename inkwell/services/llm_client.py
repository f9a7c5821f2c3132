"""
LLM client for any OpenAI-compatible chat completions endpoint.

Public API
----------
LLMClient.complete(prompt, ...)       -> str
LLMClient.complete_json(prompt, ...)  -> (success, parsed)
parse_json_robust(text)               -> (success, parsed)

The preferred model (AI_MODEL_LARGE) is tried first; any HTTP failure is
retried once against AI_MODEL_FALLBACK_LARGE.  Completed responses are kept
in the ResponseCache handed to the constructor.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional, Tuple

import httpx

from inkwell.config import settings
from inkwell.utils.cache import ResponseCache

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The LLM endpoint failed for both the preferred and the fallback model."""


class LLMConfigurationError(LLMError):
    """No API key is configured."""


# ---------------------------------------------------------------------------
# JSON recovery for messy model output
# ---------------------------------------------------------------------------

def _try_json(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def _strip_code_fences(text: str) -> str:
    """Remove ```json / ``` delimiters that LLMs often wrap output in."""
    text = re.sub(r"^```(?:json|javascript|text)?\s*\n?", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\n?```\s*$", "", text)
    return text.strip()


def _fix_json_issues(text: str) -> str:
    text = re.sub(r",(\s*[}\]])", r"\1", text)
    text = re.sub(r"\bTrue\b", "true", text)
    text = re.sub(r"\bFalse\b", "false", text)
    text = re.sub(r"\bNone\b", "null", text)
    return text.strip()


def extract_balanced(text: str, open_b: str, close_b: str) -> str:
    """First complete, balanced ``open_b … close_b`` fragment of *text*, or ''."""
    start = text.find(open_b)
    if start == -1:
        return ""

    depth = 0
    in_string = False
    escape_next = False
    for i, ch in enumerate(text[start:], start=start):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == open_b:
            depth += 1
        elif ch == close_b:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return ""


def parse_json_robust(response: str, prefer: str = "[") -> Tuple[bool, Any]:
    """
    Parse JSON out of LLM output.

    Tries, in order: the raw text, the text without code fences, a repaired
    version (trailing commas, Python literals), and finally the first
    balanced array/object embedded in surrounding prose.  *prefer* picks
    which bracket kind is searched for first.
    """
    if not response:
        return False, None

    text = response.strip()
    ok, val = _try_json(text)
    if ok:
        return True, val

    text = _strip_code_fences(text)
    for candidate in (text, _fix_json_issues(text)):
        ok, val = _try_json(candidate)
        if ok:
            return True, val

    pairs = [("[", "]"), ("{", "}")]
    if prefer == "{":
        pairs.reverse()
    for open_b, close_b in pairs:
        fragment = extract_balanced(text, open_b, close_b)
        if not fragment:
            continue
        for candidate in (fragment, _fix_json_issues(fragment)):
            ok, val = _try_json(candidate)
            if ok:
                return True, val

    logger.warning("parse_json_robust: all strategies failed. Preview: %s", response[:200])
    return False, None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class LLMClient:
    """Chat-completions client with preferred/fallback model and response caching."""

    MAX_CONCURRENT: int = 4

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache = cache if cache is not None else ResponseCache()
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.base_url = base_url or settings.AI_API_BASE_URL
        self.preferred_model = settings.AI_MODEL_LARGE
        self.fallback_model = settings.AI_MODEL_FALLBACK_LARGE
        self.timeout = httpx.Timeout(float(settings.LLM_TIMEOUT), connect=10.0)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    @staticmethod
    def cache_key(prompt: str, provider: str = "openai", **params: Any) -> str:
        return f"{provider}:{prompt}:{json.dumps(params, sort_keys=True)}"

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        cache_key: Optional[str] = None,
    ) -> str:
        """
        Return the assistant message content for a single-turn *prompt*.

        Raises:
            LLMConfigurationError: no API key configured.
            LLMError: both the preferred and the fallback model failed.
        """
        temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        key = cache_key or self.cache_key(
            prompt, model=model, temperature=temperature, max_tokens=max_tokens
        )

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("LLM cache hit (%d chars prompt)", len(prompt))
            return cached

        if not self.api_key:
            raise LLMConfigurationError("AI_API_KEY is not configured")

        preferred = model or self.preferred_model
        try:
            content = await self._post(prompt, preferred, temperature, max_tokens)
        except httpx.HTTPError as exc:
            logger.warning(
                "LLM call with %s failed (%s); retrying with %s",
                preferred,
                exc,
                self.fallback_model,
            )
            try:
                content = await self._post(prompt, self.fallback_model, temperature, max_tokens)
            except httpx.HTTPError as fallback_exc:
                raise LLMError(f"LLM request failed: {fallback_exc}") from fallback_exc

        self.cache.set(key, content)
        return content

    async def complete_json(self, prompt: str, prefer: str = "[", **kwargs: Any) -> Tuple[bool, Any]:
        return parse_json_robust(await self.complete(prompt, **kwargs), prefer=prefer)

    async def _post(self, prompt: str, model: str, temperature: float, max_tokens: int) -> str:
        async with self._semaphore:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.base_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": model,
                        "messages": [{"role": "user", "content": prompt}],
                        "temperature": temperature,
                        "max_tokens": max_tokens,
                    },
                )
                resp.raise_for_status()
                try:
                    data = resp.json()
                except ValueError as exc:
                    raise httpx.DecodingError(f"Invalid JSON from {model}") from exc

        choices = data.get("choices") or [{}]
        return ((choices[0].get("message") or {}).get("content")) or ""
