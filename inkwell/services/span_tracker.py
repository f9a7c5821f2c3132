"""
Suggestion span tracker.

Owns the active suggestions of one open document together with their live
document ranges, and answers two questions:

* which highlight decorations should be rendered right now
  (``recompute_decorations``), and
* how stored suggestions move or get invalidated when the user edits the
  document (``sync_on_document_edit``) or applies a fix (``apply_fix``).

Every failure mode (stale offsets, out-of-range records, missing ids,
collapsed spans) is recovered here; callers only see return values.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Dict, Iterable, List, Optional, Union

from inkwell.services.document_model import (
    EditMapping,
    EditStep,
    PlainDocument,
    PositionMap,
    RichDocument,
)
from inkwell.services.suggestions import (
    Suggestion,
    SuggestionCategory,
    normalize_suggestions,
)

logger = logging.getLogger(__name__)

Document = Union[PlainDocument, RichDocument]
EditDescription = Union[EditStep, EditMapping, Iterable[EditStep], None]


class MappingMode(str, enum.Enum):
    MAP = "map"
    INVALIDATE = "invalidate"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class LiveSpan:
    suggestion: Suggestion
    from_: int
    to: int
    # covered text when last resolved; used when an edit cannot be mapped
    excerpt: str = ""


@dataclasses.dataclass(frozen=True)
class DisplaySpan:
    start: int
    end: int
    category: SuggestionCategory
    from_: Optional[int] = None
    to: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "category": self.category.value,
            "from": self.from_,
            "to": self.to,
        }


@dataclasses.dataclass(frozen=True)
class AppliedFix:
    suggestion_id: str
    from_: int
    to: int
    original: str
    replacement: str
    delta: int


# ---------------------------------------------------------------------------
# Decorations
# ---------------------------------------------------------------------------

def compute_display_spans(
    suggestions: Iterable[Suggestion],
    position_map: PositionMap,
) -> List[DisplaySpan]:
    """
    Label each character with the highest-priority category covering it and
    coalesce equal labels into runs.

    A suggestion only overwrites a character whose recorded priority is
    strictly lower, so among equal categories the first suggestion wins.
    """
    n = len(position_map)
    if n == 0:
        return []

    winning_category: List[Optional[SuggestionCategory]] = [None] * n
    winning_priority = [0] * n
    for suggestion in suggestions:
        priority = suggestion.category.priority
        start = max(suggestion.offset, 0)
        end = min(suggestion.offset + suggestion.length, n)
        for i in range(start, end):
            if priority > winning_priority[i]:
                winning_priority[i] = priority
                winning_category[i] = suggestion.category

    spans: List[DisplaySpan] = []
    i = 0
    while i < n:
        category = winning_category[i]
        if category is None:
            i += 1
            continue
        j = i
        while j < n and winning_category[j] == category:
            j += 1
        document_range = position_map.span_for(i, j - i)
        from_, to = document_range if document_range else (None, None)
        spans.append(DisplaySpan(i, j, category, from_, to))
        i = j
    return spans


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

class SuggestionSpanTracker:
    """Sole owner of the active suggestion set for one document."""

    def __init__(
        self,
        document: Document,
        mapping_mode: Union[MappingMode, str] = MappingMode.MAP,
    ) -> None:
        self.document = document
        self.mapping_mode = MappingMode(mapping_mode)
        self._spans: Dict[str, LiveSpan] = {}
        self._position_map = document.position_map()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._spans)

    def __contains__(self, suggestion_id: str) -> bool:
        return suggestion_id in self._spans

    @property
    def position_map(self) -> PositionMap:
        return self._position_map

    def suggestions(self) -> List[Suggestion]:
        """Snapshot of the held suggestions in iteration order."""
        return [dataclasses.replace(live.suggestion, replacements=list(live.suggestion.replacements))
                for live in self._spans.values()]

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        live = self._spans.get(suggestion_id)
        return live.suggestion if live else None

    def recompute_decorations(self, document_snapshot: Optional[Document] = None) -> List[DisplaySpan]:
        snapshot = document_snapshot if document_snapshot is not None else self.document
        position_map = snapshot.position_map()
        return compute_display_spans(
            (live.suggestion for live in self._spans.values()),
            position_map,
        )

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def ingest(self, new_suggestions: Iterable[Union[Suggestion, dict]]) -> int:
        """
        Replace the held set with *new_suggestions*.

        Records that are malformed, have a non-positive length or fall outside
        the current text are dropped.  Returns the number accepted.
        """
        self._position_map = self.document.position_map()
        text = self._position_map.text
        resolved: Dict[str, LiveSpan] = {}
        dropped = 0

        for incoming in normalize_suggestions(new_suggestions):
            # held records are mutated by fixes and edits; never alias the caller's
            suggestion = dataclasses.replace(incoming, replacements=list(incoming.replacements))
            if suggestion.length <= 0:
                logger.debug("Rejecting suggestion %s with length %d", suggestion.id, suggestion.length)
                dropped += 1
                continue
            document_range = self._position_map.span_for(suggestion.offset, suggestion.length)
            if document_range is None:
                logger.debug(
                    "Dropping out-of-bounds suggestion %s (%d+%d > %d)",
                    suggestion.id,
                    suggestion.offset,
                    suggestion.length,
                    len(text),
                )
                dropped += 1
                continue
            from_, to = document_range
            resolved[suggestion.id] = LiveSpan(
                suggestion=suggestion,
                from_=from_,
                to=to,
                excerpt=text[suggestion.offset:suggestion.end],
            )

        self._spans = resolved
        if dropped:
            logger.info("Ingested %d suggestions (%d dropped)", len(resolved), dropped)
        return len(resolved)

    def apply_fix(self, suggestion_id: str, replacement: str) -> Optional[AppliedFix]:
        """
        Replace the suggestion's range with *replacement*.

        Remaining suggestions starting strictly after the fixed one are shifted
        by the length delta; overlapping ones are left where they are.
        Returns None (and changes nothing) when the id is not held.
        """
        live = self._spans.get(suggestion_id)
        if live is None:
            logger.info("apply_fix: suggestion %s is no longer active", suggestion_id)
            return None

        fixed = live.suggestion
        delta = len(replacement) - fixed.length
        original = self.document.text_between(live.from_, live.to)
        self.document.replace(live.from_, live.to, replacement)
        del self._spans[suggestion_id]

        for other in self._spans.values():
            if other.suggestion.offset > fixed.offset:
                other.suggestion.offset += delta

        self._position_map = self.document.position_map()
        self._reresolve_from_offsets()

        return AppliedFix(
            suggestion_id=suggestion_id,
            from_=live.from_,
            to=live.to,
            original=original,
            replacement=replacement,
            delta=delta,
        )

    def dismiss(self, suggestion_id: str) -> bool:
        return self._spans.pop(suggestion_id, None) is not None

    def sync_on_document_edit(self, edit: EditDescription) -> int:
        """
        Bring live spans in line with an edit already applied to the document.

        Returns the number of suggestions dropped.
        """
        self._position_map = self.document.position_map()
        before = len(self._spans)

        if edit is None:
            self._revalidate_excerpts()
        else:
            mapping = _as_mapping(edit)
            kept: Dict[str, LiveSpan] = {}
            for suggestion_id, live in self._spans.items():
                if self.mapping_mode is MappingMode.INVALIDATE and mapping.touches(live.from_, live.to):
                    logger.debug("Edit touched suggestion %s; invalidating", suggestion_id)
                    continue
                from_, to = mapping.map_span(live.from_, live.to)
                if self._rebind(live, from_, to):
                    kept[suggestion_id] = live
            self._spans = kept

        dropped = before - len(self._spans)
        if dropped:
            logger.debug("Document edit invalidated %d suggestions", dropped)
        return dropped

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _rebind(self, live: LiveSpan, from_: int, to: int) -> bool:
        """Attach *live* to a new document range; False when the range is unusable."""
        if from_ >= to or from_ < 0 or to > self.document.size:
            return False
        start, end = self._position_map.offset_range(from_, to)
        if end <= start:
            return False
        live.suggestion.offset = start
        live.suggestion.length = end - start
        live.from_, live.to = from_, to
        live.excerpt = self._position_map.text[start:end]
        return True

    def _reresolve_from_offsets(self) -> None:
        text = self._position_map.text
        kept: Dict[str, LiveSpan] = {}
        for suggestion_id, live in self._spans.items():
            suggestion = live.suggestion
            document_range = self._position_map.span_for(suggestion.offset, suggestion.length)
            if document_range is None:
                logger.debug("Suggestion %s no longer fits the document; dropping", suggestion_id)
                continue
            live.from_, live.to = document_range
            live.excerpt = text[suggestion.offset:suggestion.end]
            kept[suggestion_id] = live
        self._spans = kept

    def _revalidate_excerpts(self) -> None:
        text = self._position_map.text
        kept: Dict[str, LiveSpan] = {}
        for suggestion_id, live in self._spans.items():
            suggestion = live.suggestion
            if text[suggestion.offset:suggestion.end] != live.excerpt:
                continue
            document_range = self._position_map.span_for(suggestion.offset, suggestion.length)
            if document_range is None:
                continue
            live.from_, live.to = document_range
            kept[suggestion_id] = live
        self._spans = kept


def _as_mapping(edit: EditDescription) -> EditMapping:
    if isinstance(edit, EditMapping):
        return edit
    if isinstance(edit, EditStep):
        return EditMapping((edit,))
    return EditMapping.of(edit)
