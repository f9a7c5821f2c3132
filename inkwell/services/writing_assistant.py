"""
LLM-backed writing assistant features.

Tone harmonizer, definition expander, citation hunter (LLM keywords +
OpenAlex search), slide decker, the combined research report and the
max-mode grammar check.  Prompts are module-level constants so they can be
tuned without touching logic code.

Every public coroutine returns an ``AssistantResult``; LLM and network
failures are logged and reported through ``is_success=False`` rather than
raised.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
from typing import Any, Dict, Generic, List, Optional, TypeVar
from urllib.parse import quote

import httpx

from inkwell.config import settings
from inkwell.services.llm_client import LLMClient, LLMError, extract_balanced, parse_json_robust
from inkwell.services.suggestions import Suggestion, normalize_suggestions
from inkwell.utils.cache import ResponseCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class AssistantResult(Generic[T]):
    is_success: bool
    message: str
    data: Optional[T] = None


@dataclasses.dataclass(frozen=True)
class ToneSuggestion:
    original: str
    revised: str


@dataclasses.dataclass(frozen=True)
class DefinitionEntry:
    term: str
    definition: str
    etymology: str
    example: str


@dataclasses.dataclass(frozen=True)
class CitationEntry:
    title: str
    authors: str
    journal: str
    url: str
    citedness: float


@dataclasses.dataclass
class CitationReport:
    keywords: List[str]
    citations: List[CitationEntry]


@dataclasses.dataclass(frozen=True)
class SlidePoint:
    text: str


@dataclasses.dataclass
class ResearchReport:
    tone_suggestions: List[ToneSuggestion]
    citations: List[CitationEntry]
    slide_deck: List[SlidePoint]


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_GRAMMAR_PROMPT = """\
You are an academic writing assistant. Analyse the user's entire paper and find \
issues of spelling, grammar, or academic style. For **each** issue, produce a JSON \
object with these fields (and no extras): id (string UUID), offset (number, starting \
char index), length (number), message (string), replacements (string[]), type (either \
"spell", "grammar", or "style"). Return a JSON array ONLY.

TEXT:
\"\"\"{text}
\"\"\"\
"""

_TONE_PROMPT = """\
Standardize the tone of the following academic paper to be formal and scholarly. \
Suggest changes, do not make them automatically. Return a list of suggestions in this \
format: original sentence → revised sentence.

Paper:
\"\"\"{text}
\"\"\"\
"""

_DEFINITION_PROMPT = """\
For the academic term "{term}", provide a concise definition suitable for a university \
student. Additionally, include its etymology and one example sentence showing its correct \
usage in an academic context. Here is the full text for context: {context}. Format the \
output as a JSON object with three keys: "definition", "etymology", and "example".\
"""

_KEYWORD_PROMPT = """\
Extract the top {top_k} academic keywords or topics relevant to this paper for citation \
purposes. Return them as a comma-separated list only.

\"\"\"{text}
\"\"\"\
"""

_SLIDE_PROMPT = """\
Create a slide presentation outline for the following paper, assuming a talk length of \
{minutes} minutes. Output 1 bullet point per minute. Each bullet should summarise one key \
point or idea in a clear academic voice.

\"\"\"{text}
\"\"\"\
"""

TONE_ARROW = "→"


# ---------------------------------------------------------------------------
# Output parsers
# ---------------------------------------------------------------------------

def parse_tone_suggestions(raw: str) -> List[ToneSuggestion]:
    """One ``original → revised`` pair per line; incomplete lines are dropped."""
    suggestions = []
    for line in raw.splitlines():
        line = line.strip()
        if not line or TONE_ARROW not in line:
            continue
        original, _, revised = line.partition(TONE_ARROW)
        original, revised = original.strip(), revised.strip()
        if original and revised:
            suggestions.append(ToneSuggestion(original, revised))
    return suggestions


def parse_definition(term: str, raw: str) -> Optional[DefinitionEntry]:
    fragment = extract_balanced(raw, "{", "}")
    if not fragment:
        return None
    ok, parsed = parse_json_robust(fragment, prefer="{")
    if not ok or not isinstance(parsed, dict):
        return None
    return DefinitionEntry(
        term=term,
        definition=str(parsed.get("definition") or ""),
        etymology=str(parsed.get("etymology") or ""),
        example=str(parsed.get("example") or ""),
    )


def parse_keywords(raw: str, top_k: int) -> List[str]:
    keywords = [k.strip() for k in re.split(r"[,\n]", raw)]
    return [k for k in keywords if k][:top_k]


_BULLET_PREFIX_RE = re.compile(r"^[-•*\d.\s]+")


def parse_slide_points(raw: str, minutes: int) -> List[SlidePoint]:
    points = []
    for line in re.split(r"\n+", raw):
        text = _BULLET_PREFIX_RE.sub("", line.strip()).strip()
        if text:
            points.append(SlidePoint(text))
    return points[:minutes]


def clamp_minutes(minutes: int) -> int:
    return min(max(minutes, settings.SLIDE_MIN_MINUTES), settings.SLIDE_MAX_MINUTES)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def map_openalex_work(work: Dict[str, Any]) -> CitationEntry:
    location = work.get("primary_location") or {}
    source = location.get("source") or {}
    authors = [
        (a.get("author") or {}).get("display_name")
        for a in work.get("authorships") or []
    ]
    citedness = (work.get("summary_stats") or {}).get("2yr_mean_citedness")
    if citedness is None:
        citedness = work.get("2yr_mean_citedness") or 0
    return CitationEntry(
        title=work.get("display_name") or "",
        authors=", ".join(a for a in authors if a),
        journal=source.get("display_name") or "",
        url=source.get("homepage_url") or location.get("landing_page_url") or work.get("doi") or "",
        citedness=_as_float(citedness),
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class WritingAssistant:
    """Bundles the LLM-backed features around one LLMClient and one cache."""

    def __init__(
        self,
        llm: LLMClient,
        cache: Optional[ResponseCache] = None,
        openalex_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.llm = llm
        self.cache = cache if cache is not None else llm.cache
        self._openalex_transport = openalex_transport

    async def grammar_check(self, text: str) -> AssistantResult[List[Suggestion]]:
        """Max-mode grammar/spelling/style check; output goes through the suggestion validator."""
        try:
            ok, parsed = await self.llm.complete_json(
                _GRAMMAR_PROMPT.format(text=text), temperature=0.1, max_tokens=2048
            )
        except LLMError as exc:
            logger.error("grammar_check: %s", exc)
            return AssistantResult(False, "LLM error")
        if not ok or not isinstance(parsed, list):
            logger.warning("grammar_check: LLM output was not a JSON array")
            return AssistantResult(False, "LLM output invalid")
        return AssistantResult(True, "LLM suggestions", normalize_suggestions(parsed))

    async def harmonize_tone(self, text: str) -> AssistantResult[List[ToneSuggestion]]:
        try:
            raw = await self.llm.complete(_TONE_PROMPT.format(text=text))
        except LLMError as exc:
            logger.error("harmonize_tone: %s", exc)
            return AssistantResult(False, "LLM error")
        return AssistantResult(True, "Tone suggestions", parse_tone_suggestions(raw))

    async def define_term(self, term: str, context: str) -> AssistantResult[DefinitionEntry]:
        try:
            raw = await self.llm.complete(_DEFINITION_PROMPT.format(term=term, context=context))
        except LLMError as exc:
            logger.error("define_term: %s", exc)
            return AssistantResult(False, "LLM error")
        entry = parse_definition(term, raw)
        if entry is None:
            return AssistantResult(False, "Failed to parse AI response.")
        return AssistantResult(True, "Definition generated", entry)

    async def create_slide_deck(self, text: str, minutes: int) -> AssistantResult[List[SlidePoint]]:
        safe_minutes = clamp_minutes(minutes)
        logger.info("create_slide_deck: %d chars, %d minutes", len(text), safe_minutes)
        try:
            raw = await self.llm.complete(_SLIDE_PROMPT.format(minutes=safe_minutes, text=text))
        except LLMError as exc:
            logger.error("create_slide_deck: %s", exc)
            return AssistantResult(False, "LLM error")
        points = parse_slide_points(raw, safe_minutes)
        logger.info("create_slide_deck: parsed %d points", len(points))
        return AssistantResult(True, "Slide deck generated", points)

    async def hunt_citations(self, text: str) -> AssistantResult[CitationReport]:
        top_k = settings.CITATION_TOP_K
        try:
            raw = await self.llm.complete(_KEYWORD_PROMPT.format(top_k=top_k, text=text))
        except LLMError as exc:
            logger.error("hunt_citations: %s", exc)
            return AssistantResult(False, "Citation hunter error")

        keywords = parse_keywords(raw, top_k)
        logger.info("hunt_citations: keywords %s", keywords)
        try:
            citations = await self.search_openalex(keywords)
        except httpx.HTTPError as exc:
            logger.error("hunt_citations: OpenAlex request failed: %s", exc)
            return AssistantResult(False, "Citation hunter error")
        return AssistantResult(True, "Citations fetched", CitationReport(keywords, citations))

    async def search_openalex(self, keywords: List[str]) -> List[CitationEntry]:
        """Title search OR-ing *keywords*; top works by two-year mean citedness."""
        if not keywords:
            return []

        cache_key = f"citation:{'|'.join(keywords)}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("search_openalex: cache hit for %s", keywords)
            return cached

        title_filter = "title.search:" + "|".join(quote(k, safe="") for k in keywords)
        url = f"{settings.OPENALEX_URL}?filter={title_filter}&per_page=50"
        async with httpx.AsyncClient(timeout=30.0, transport=self._openalex_transport) as client:
            resp = await client.get(url)

        if resp.status_code != 200:
            logger.warning("search_openalex: OpenAlex returned HTTP %d", resp.status_code)
            return []
        try:
            body = resp.json()
        except ValueError:
            logger.warning("search_openalex: OpenAlex returned a non-JSON body")
            return []
        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            return []

        works = sorted(
            (map_openalex_work(w) for w in results if isinstance(w, dict)),
            key=lambda c: c.citedness,
            reverse=True,
        )[:settings.CITATION_RESULTS]
        logger.info("search_openalex: %d records, keeping %d", len(results), len(works))

        if works:
            self.cache.set(cache_key, works, ttl=settings.CITATION_CACHE_TTL)
        return works

    async def research_report(self, text: str, slide_minutes: int = 10) -> AssistantResult[ResearchReport]:
        """Tone, citations and slides in parallel; succeeds when any part did."""
        tone, citations, slides = await asyncio.gather(
            self.harmonize_tone(text),
            self.hunt_citations(text),
            self.create_slide_deck(text, slide_minutes),
        )
        report = ResearchReport(
            tone_suggestions=tone.data or [],
            citations=citations.data.citations if citations.data else [],
            slide_deck=slides.data or [],
        )
        if tone.is_success or citations.is_success or slides.is_success:
            return AssistantResult(True, "Analysis complete", report)
        return AssistantResult(False, "Analysis failed. Please try again.")
