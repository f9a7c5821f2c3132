"""
Text analysis pass: suggestions plus readability statistics.

Standard mode runs LanguageTool and the local style checker concurrently;
max mode swaps LanguageTool for the LLM grammar check.  Spelling findings
for words in the user's dictionary are removed here, before the suggestions
ever reach a span tracker.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Iterable, List, Optional

from inkwell.services.language_tool import LanguageToolClient, LanguageToolError
from inkwell.services.readability import ReadabilityStats, compute_readability
from inkwell.services.style_checker import style_suggestions
from inkwell.services.suggestions import Suggestion, SuggestionCategory, dedupe_by_id
from inkwell.services.writing_assistant import WritingAssistant

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class AnalysisResult:
    suggestions: List[Suggestion] = dataclasses.field(default_factory=list)
    stats: ReadabilityStats = dataclasses.field(default_factory=ReadabilityStats)
    errors: List[str] = dataclasses.field(default_factory=list)


def filter_dictionary_words(
    text: str,
    suggestions: Iterable[Suggestion],
    dictionary: Iterable[str],
) -> List[Suggestion]:
    """Drop spelling suggestions whose covered word is user-approved (case-insensitive)."""
    approved = {word.lower() for word in dictionary}
    if not approved:
        return list(suggestions)
    kept = []
    for suggestion in suggestions:
        if suggestion.category is SuggestionCategory.SPELLING:
            word = text[suggestion.offset:suggestion.end].lower()
            if word in approved:
                continue
        kept.append(suggestion)
    return kept


class AnalysisService:
    """Runs one complete analysis pass over an immutable text snapshot."""

    def __init__(
        self,
        language_tool: Optional[LanguageToolClient] = None,
        assistant: Optional[WritingAssistant] = None,
    ) -> None:
        self.language_tool = language_tool or LanguageToolClient()
        self.assistant = assistant

    async def analyse(
        self,
        text: str,
        dictionary: Iterable[str] = (),
        max_mode: bool = False,
        language: Optional[str] = None,
    ) -> AnalysisResult:
        if not text.strip():
            return AnalysisResult()

        errors: List[str] = []
        checker_task = self._checker_suggestions(text, max_mode, language, errors)
        style_task = asyncio.to_thread(style_suggestions, text)
        stats_task = asyncio.to_thread(compute_readability, text)

        checker, style, stats = await asyncio.gather(checker_task, style_task, stats_task)

        suggestions = filter_dictionary_words(text, [*checker, *style], dictionary)
        suggestions = dedupe_by_id(suggestions)

        logger.info(
            "analyse: %d chars → %d suggestions (max_mode=%s)",
            len(text),
            len(suggestions),
            max_mode,
        )
        return AnalysisResult(suggestions=suggestions, stats=stats, errors=errors)

    async def _checker_suggestions(
        self,
        text: str,
        max_mode: bool,
        language: Optional[str],
        errors: List[str],
    ) -> List[Suggestion]:
        if max_mode and self.assistant is not None:
            result = await self.assistant.grammar_check(text)
            if result.is_success:
                return result.data or []
            errors.append(f"llm: {result.message}")
            return []

        try:
            return await self.language_tool.check(text, language=language)
        except LanguageToolError as exc:
            logger.error("analyse: %s", exc)
            errors.append(f"language_tool: {exc}")
            return []
