"""
Suggestion records and the validation boundary for upstream checker output.

Upstream checkers (LanguageTool, the local style checker, the LLM grammar
check) return loosely-shaped records.  ``normalize_suggestion`` coerces one
such record into the strict ``Suggestion`` dataclass or rejects it; nothing
loosely typed reaches the span tracker.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import re
from typing import Any, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)


class SuggestionCategory(str, enum.Enum):
    SPELLING = "spelling"
    GRAMMAR = "grammar"
    STYLE = "style"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]


_PRIORITY = {
    SuggestionCategory.SPELLING: 3,
    SuggestionCategory.GRAMMAR: 2,
    SuggestionCategory.STYLE: 1,
}

# Names used by upstream producers for the same categories
_CATEGORY_ALIASES = {
    "spell": SuggestionCategory.SPELLING,
    "spelling": SuggestionCategory.SPELLING,
    "misspelling": SuggestionCategory.SPELLING,
    "grammar": SuggestionCategory.GRAMMAR,
    "style": SuggestionCategory.STYLE,
}


@dataclasses.dataclass
class Suggestion:
    id: str
    offset: int
    length: int
    category: SuggestionCategory
    message: str = ""
    replacements: List[str] = dataclasses.field(default_factory=list)
    rule_id: Optional[str] = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "offset": self.offset,
            "length": self.length,
            "category": self.category.value,
            "message": self.message,
            "replacements": list(self.replacements),
            "rule_id": self.rule_id,
        }


def parse_category(value: Any) -> Optional[SuggestionCategory]:
    if isinstance(value, SuggestionCategory):
        return value
    if not isinstance(value, str):
        return None
    return _CATEGORY_ALIASES.get(value.strip().lower())


_INT_RE = re.compile(r"-?[0-9]+")


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass; a boolean offset is never meaningful
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _as_replacements(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(r) for r in value if r is not None]


def normalize_suggestion(raw: Mapping[str, Any]) -> Optional[Suggestion]:
    """
    Coerce one upstream record into a ``Suggestion``.

    Accepts either ``category`` or the legacy ``type`` key.  Returns None for
    records missing an offset/length/category; a missing id is synthesised
    from the rule id (or category) and the offset.
    """
    if not isinstance(raw, Mapping):
        return None

    offset = _as_int(raw.get("offset"))
    length = _as_int(raw.get("length"))
    category = parse_category(raw.get("category", raw.get("type")))
    if offset is None or length is None or category is None:
        logger.debug("Rejecting malformed suggestion record: %r", raw)
        return None

    rule_id = raw.get("rule_id")
    rule_id = str(rule_id) if rule_id else None

    suggestion_id = raw.get("id")
    if not suggestion_id:
        suggestion_id = f"{rule_id or category.value}-{offset}"

    replacements = _as_replacements(raw.get("replacements"))

    return Suggestion(
        id=str(suggestion_id),
        offset=offset,
        length=length,
        category=category,
        message=str(raw.get("message") or ""),
        replacements=replacements,
        rule_id=rule_id,
    )


def normalize_suggestions(records: Iterable[Any]) -> List[Suggestion]:
    """Normalise a batch, skipping records that cannot be coerced."""
    result: List[Suggestion] = []
    for record in records:
        if isinstance(record, Suggestion):
            result.append(record)
            continue
        suggestion = normalize_suggestion(record)
        if suggestion is not None:
            result.append(suggestion)
    return result


def dedupe_by_id(suggestions: Iterable[Suggestion]) -> List[Suggestion]:
    """Later records replace earlier ones with the same id, keeping the first position."""
    by_id = {}
    for suggestion in suggestions:
        by_id[suggestion.id] = suggestion
    return list(by_id.values())
