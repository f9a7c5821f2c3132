"""
LanguageTool HTTP client.

POST {LANGUAGE_TOOL_URL} with form fields ``text`` and ``language``; each
entry of the ``matches`` array becomes one suggestion:

    id           = "{rule.id}-{offset}"
    category     = spelling when rule.issueType == "misspelling", else grammar
    replacements = [r.value for r in match.replacements]

offset/length are converted from UTF-16 code units to Python string indices.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from inkwell.config import settings
from inkwell.services.suggestions import Suggestion, normalize_suggestion

logger = logging.getLogger(__name__)


class LanguageToolError(RuntimeError):
    """Raised when the LanguageTool service cannot be reached or answers badly."""


def utf16_index_map(text: str) -> List[int]:
    """
    Map each UTF-16 code unit index of *text* (plus the end) to a code point index.

    LanguageTool counts offsets in Java chars, so every character outside the
    BMP takes two units there and one in Python.
    """
    index_map = []
    for i, ch in enumerate(text):
        index_map.append(i)
        if ord(ch) > 0xFFFF:
            index_map.append(i)
    index_map.append(len(text))
    return index_map


def _to_code_points(offset: Any, length: Any, index_map: Optional[List[int]]) -> Tuple[Any, Any]:
    if index_map is None or not isinstance(offset, int) or not isinstance(length, int):
        return offset, length
    end = offset + length
    if offset < 0 or length < 0 or end >= len(index_map):
        return offset, length
    start = index_map[offset]
    return start, index_map[end] - start


def match_to_record(match: Dict[str, Any], index_map: Optional[List[int]] = None) -> Dict[str, Any]:
    rule = match.get("rule")
    if not isinstance(rule, dict):
        rule = {}
    offset, length = _to_code_points(match.get("offset"), match.get("length"), index_map)
    replacements = match.get("replacements")
    if not isinstance(replacements, list):
        replacements = []
    return {
        "id": f"{rule.get('id', 'LT')}-{offset}",
        "offset": offset,
        "length": length,
        "message": match.get("message", ""),
        "replacements": [r.get("value") for r in replacements if isinstance(r, dict)],
        "category": "spelling" if rule.get("issueType") == "misspelling" else "grammar",
        "rule_id": rule.get("id"),
    }


class LanguageToolClient:
    """Thin async wrapper around the LanguageTool ``/v2/check`` endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.LANGUAGE_TOOL_URL
        self.language = language or settings.LANGUAGE_TOOL_LANGUAGE
        self.timeout = timeout or settings.LANGUAGE_TOOL_TIMEOUT
        self._transport = transport

    async def check(self, text: str, language: Optional[str] = None) -> List[Suggestion]:
        """Return LanguageTool's findings for *text*; raises LanguageToolError on failure."""
        if not text.strip():
            return []

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.base_url,
                    data={"text": text, "language": language or self.language},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise LanguageToolError(f"LanguageTool request failed: {exc}") from exc
        except ValueError as exc:
            raise LanguageToolError("LanguageTool returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise LanguageToolError("LanguageTool returned an unexpected body")

        # only texts with astral characters need offset conversion
        index_map = utf16_index_map(text) if any(ord(ch) > 0xFFFF for ch in text) else None
        suggestions = []
        matches = data.get("matches")
        for match in matches if isinstance(matches, list) else []:
            if not isinstance(match, dict):
                continue
            suggestion = normalize_suggestion(match_to_record(match, index_map))
            if suggestion is not None:
                suggestions.append(suggestion)

        logger.debug("LanguageTool: %d matches for %d chars", len(suggestions), len(text))
        return suggestions

    async def check_health(self) -> bool:
        try:
            await self.check("This is a test.")
            return True
        except LanguageToolError as exc:
            logger.warning("LanguageTool health check failed: %s", exc)
            return False
