"""
Editing sessions: one open document, its span tracker and its analysis
scheduler.

The SessionManager is a plain instance created in the application lifespan
and stored on ``app.state``; tests build isolated instances.
"""
from __future__ import annotations

import dataclasses
import logging
import time
import uuid
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

from inkwell.config import settings
from inkwell.services.analysis import AnalysisResult, AnalysisService
from inkwell.services.analysis_scheduler import AnalysisResponse, AnalysisScheduler
from inkwell.services.document_model import EditStep, PlainDocument, RichDocument
from inkwell.services.readability import ReadabilityStats
from inkwell.services.span_tracker import AppliedFix, DisplaySpan, MappingMode, SuggestionSpanTracker

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class EditingSession:
    """Binds one document to its tracker and scheduler."""

    def __init__(
        self,
        session_id: str,
        document: Union[PlainDocument, RichDocument],
        analysis: AnalysisService,
        user_id: Optional[str] = None,
        dictionary: Iterable[str] = (),
        max_mode: bool = False,
        language: Optional[str] = None,
        quiescence_seconds: Optional[float] = None,
        mapping_mode: Union[MappingMode, str, None] = None,
    ) -> None:
        self.id = session_id
        self.user_id = user_id
        self.document = document
        self.max_mode = max_mode
        self.language = language
        self.dictionary: FrozenSet[str] = frozenset(w.lower() for w in dictionary)
        self.stats = ReadabilityStats()
        self.created_at = time.time()
        self.last_analysis_errors: List[str] = []
        self._analysis = analysis

        self.tracker = SuggestionSpanTracker(
            document,
            mapping_mode=mapping_mode or settings.SPAN_MAPPING_MODE,
        )
        self.scheduler = AnalysisScheduler(
            analyse=self._analyse_snapshot,
            snapshot=lambda: self.document.plain_text,
            on_result=self._on_analysis,
            quiescence_seconds=(
                settings.analysis_debounce_seconds if quiescence_seconds is None else quiescence_seconds
            ),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def edit(self, from_: int, to: int, text: str, schedule: bool = True) -> EditStep:
        """Apply a user edit; raises ValueError for ranges outside the document."""
        step = self.document.replace(from_, to, text)
        self.tracker.sync_on_document_edit(step)
        if schedule:
            self.scheduler.notify_edit()
        return step

    async def analyse_now(self) -> bool:
        return await self.scheduler.run_now()

    def apply_fix(self, suggestion_id: str, replacement: str) -> Optional[AppliedFix]:
        return self.tracker.apply_fix(suggestion_id, replacement)

    def dismiss(self, suggestion_id: str) -> bool:
        return self.tracker.dismiss(suggestion_id)

    def set_dictionary(self, words: Iterable[str]) -> None:
        self.dictionary = frozenset(w.lower() for w in words)

    def decorations(self) -> List[DisplaySpan]:
        return self.tracker.recompute_decorations(self.document)

    def close(self) -> None:
        self.scheduler.cancel()

    def snapshot(self) -> dict:
        return {
            "id": self.id,
            "revision": self.document.revision,
            "text": self.document.plain_text,
            "document": self.document.to_dict(),
            "max_mode": self.max_mode,
            "generation": self.scheduler.generation,
            "analysis_pending": self.scheduler.pending or self.scheduler.in_flight > 0,
            "suggestions": [s.to_dict() for s in self.tracker.suggestions()],
            "decorations": [d.to_dict() for d in self.decorations()],
            "stats": dataclasses.asdict(self.stats),
            "errors": list(self.last_analysis_errors),
        }

    # ------------------------------------------------------------------
    # Scheduler callbacks
    # ------------------------------------------------------------------

    async def _analyse_snapshot(self, text: str) -> AnalysisResult:
        return await self._analysis.analyse(
            text,
            dictionary=self.dictionary,
            max_mode=self.max_mode,
            language=self.language,
        )

    def _on_analysis(self, response: AnalysisResponse) -> None:
        result: AnalysisResult = response.result
        accepted = self.tracker.ingest(result.suggestions)
        self.stats = result.stats
        self.last_analysis_errors = list(result.errors)
        logger.info(
            "Session %s: generation %d ingested %d/%d suggestions",
            self.id,
            response.generation,
            accepted,
            len(result.suggestions),
        )


class SessionManager:
    """
    Registry of open editing sessions for this process.

    Sessions idle for longer than ``idle_ttl`` seconds are closed the next time
    the registry is touched; past ``max_sessions`` the least recently used
    session is closed to make room for a new one.
    """

    def __init__(
        self,
        analysis: AnalysisService,
        quiescence_seconds: Optional[float] = None,
        idle_ttl: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.analysis = analysis
        self.quiescence_seconds = quiescence_seconds
        self.idle_ttl = settings.SESSION_IDLE_TTL if idle_ttl is None else idle_ttl
        self.max_sessions = settings.MAX_SESSIONS if max_sessions is None else max_sessions
        self._clock = clock
        self._sessions: Dict[str, EditingSession] = {}
        self._last_active: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        text: Optional[str] = None,
        paragraphs: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
        dictionary: Iterable[str] = (),
        max_mode: bool = False,
        language: Optional[str] = None,
    ) -> EditingSession:
        if paragraphs is not None:
            document: Union[PlainDocument, RichDocument] = RichDocument(paragraphs)
        else:
            document = PlainDocument(text or "")

        session = EditingSession(
            session_id=uuid.uuid4().hex,
            document=document,
            analysis=self.analysis,
            user_id=user_id,
            dictionary=dictionary,
            max_mode=max_mode,
            language=language,
            quiescence_seconds=self.quiescence_seconds,
        )
        self.prune_idle()
        while self._sessions and len(self._sessions) >= self.max_sessions:
            oldest = min(self._last_active, key=self._last_active.get)
            logger.warning("Session limit %d reached; closing least recently used %s", self.max_sessions, oldest)
            self._discard(oldest)

        self._sessions[session.id] = session
        self._last_active[session.id] = self._clock()
        logger.info("Opened session %s (%s, %d chars)", session.id, type(document).__name__, len(document.plain_text))
        return session

    def get(self, session_id: str) -> EditingSession:
        """Return an open session and mark it active; expired sessions are not found."""
        self.prune_idle()
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._last_active[session_id] = self._clock()
        return session

    def close(self, session_id: str) -> None:
        if not self._discard(session_id):
            raise SessionNotFoundError(session_id)
        logger.info("Closed session %s", session_id)

    def prune_idle(self) -> int:
        """Close sessions idle longer than ``idle_ttl``; returns how many were closed."""
        if self.idle_ttl <= 0:
            return 0
        cutoff = self._clock() - self.idle_ttl
        expired = [sid for sid, seen in self._last_active.items() if seen <= cutoff]
        for session_id in expired:
            self._discard(session_id)
        if expired:
            logger.info("Closed %d idle sessions", len(expired))
        return len(expired)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        self._last_active.clear()

    def _discard(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        self._last_active.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True
