"""
Local prose-style heuristics in the write-good family.

Each check scans the raw text with a regular expression and reports
``StyleFinding(index, length, reason)``.  No replacements are proposed;
style findings only highlight.

Checks (in reporting order at equal index):
  passive      - form of "to be" followed by a past participle
  illusion     - the same word twice in a row ("the the")
  so           - sentence starting with "So"
  thereIs      - sentence starting with "There is" / "There are"
  weasel       - vague intensifiers and quantifiers
  adverb       - adverbs that weaken the claim
  tooWordy     - phrases with a shorter equivalent
  cliches      - stock phrases
"""
from __future__ import annotations

import dataclasses
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Pattern

from inkwell.services.suggestions import Suggestion, SuggestionCategory

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class StyleFinding:
    index: int
    length: int
    reason: str
    check: str


# ---------------------------------------------------------------------------
# Word lists - edit these to tune the checker
# ---------------------------------------------------------------------------

_TO_BE = ("am", "are", "were", "being", "is", "been", "was", "be")

_IRREGULAR_PARTICIPLES = (
    "awoken", "been", "born", "beat", "become", "begun", "bent", "bound",
    "bitten", "bled", "blown", "broken", "brought", "built", "burnt", "bought",
    "caught", "chosen", "dealt", "done", "drawn", "driven", "eaten", "fallen",
    "fed", "felt", "fought", "found", "forgotten", "forgiven", "frozen",
    "given", "gone", "grown", "hung", "heard", "hidden", "held", "hurt",
    "kept", "known", "laid", "led", "left", "lent", "lost", "made", "meant",
    "met", "paid", "put", "read", "ridden", "rung", "risen", "run", "said",
    "seen", "sold", "sent", "set", "shaken", "shown", "shut", "sung", "sunk",
    "slain", "slept", "spoken", "spent", "spun", "spread", "stolen", "stuck",
    "struck", "sworn", "swept", "swum", "taken", "taught", "torn", "told",
    "thought", "thrown", "understood", "woken", "worn", "won", "written",
)

_WEASEL_WORDS = (
    "many", "various", "very", "fairly", "several", "extremely", "exceedingly",
    "quite", "remarkably", "few", "surprisingly", "mostly", "largely", "huge",
    "tiny", "excellent", "interestingly", "significantly", "substantially",
    "clearly", "vast", "relatively", "completely", "are a number", "is a number",
)

_WEAK_ADVERBS = (
    "absolutely", "actually", "basically", "certainly", "definitely",
    "essentially", "honestly", "hopefully", "literally", "merely",
    "naturally", "obviously", "practically", "probably", "really",
    "seriously", "simply", "slightly", "somewhat", "totally", "truly",
    "undoubtedly", "utterly", "virtually",
)

_WORDY_PHRASES = (
    "a number of", "at this point in time", "at the present time",
    "due to the fact that", "for the purpose of", "has the ability to",
    "in close proximity to", "in light of the fact that", "in order to",
    "in spite of the fact that", "in the event that", "in the near future",
    "it is important to note that", "prior to", "subsequent to",
    "with regard to", "with respect to", "the majority of",
)

_CLICHES = (
    "a chip off the old block", "at the end of the day", "avoid like the plague",
    "in this day and age", "last but not least", "low-hanging fruit",
    "needless to say", "think outside the box", "the bottom line",
    "tip of the iceberg", "paradigm shift", "when all is said and done",
)


def _alternation(words: Iterable[str]) -> str:
    # longest first so multi-word entries win over their prefixes
    ordered = sorted(words, key=len, reverse=True)
    return "|".join(re.escape(w).replace(r"\ ", r"\s+") for w in ordered)


_PASSIVE_RE = re.compile(
    r"\b(?:%s)\b\s+(?:\w+ed|%s)\b" % ("|".join(_TO_BE), "|".join(_IRREGULAR_PARTICIPLES)),
    re.IGNORECASE,
)
_ILLUSION_RE = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)
_SO_RE = re.compile(r"(?:^|[.!?]\s+)(?P<phrase>so)\b(?=\s)", re.IGNORECASE)
_THERE_IS_RE = re.compile(r"(?:^|[.!?]\s+)(?P<phrase>there\s+(?:is|are))\b", re.IGNORECASE)
_WEASEL_RE = re.compile(r"\b(?:%s)\b" % _alternation(_WEASEL_WORDS), re.IGNORECASE)
_ADVERB_RE = re.compile(r"\b(?:%s)\b" % _alternation(_WEAK_ADVERBS), re.IGNORECASE)
_WORDY_RE = re.compile(r"\b(?:%s)\b" % _alternation(_WORDY_PHRASES), re.IGNORECASE)
_CLICHE_RE = re.compile(r"\b(?:%s)\b" % _alternation(_CLICHES), re.IGNORECASE)


def _scan(
    text: str,
    pattern: Pattern[str],
    check: str,
    reason: Callable[[str], str],
    group: Optional[str] = None,
) -> List[StyleFinding]:
    findings = []
    for match in pattern.finditer(text):
        start, end = match.span(group) if group else match.span()
        phrase = text[start:end]
        findings.append(StyleFinding(start, end - start, reason(phrase), check))
    return findings


def _illusions(text: str) -> List[StyleFinding]:
    return [
        StyleFinding(m.start(), m.end() - m.start(), f'"{m.group(1)}" is repeated', "illusion")
        for m in _ILLUSION_RE.finditer(text)
    ]


_CHECKS: Dict[str, Callable[[str], List[StyleFinding]]] = {
    "passive": lambda t: _scan(t, _PASSIVE_RE, "passive", lambda p: f'"{p}" may be passive voice'),
    "illusion": _illusions,
    "so": lambda t: _scan(t, _SO_RE, "so", lambda p: f'"{p}" adds no meaning', group="phrase"),
    "thereIs": lambda t: _scan(
        t, _THERE_IS_RE, "thereIs", lambda p: f'"{p}" is unnecessary verbiage', group="phrase"
    ),
    "weasel": lambda t: _scan(t, _WEASEL_RE, "weasel", lambda p: f'"{p}" is a weasel word'),
    "adverb": lambda t: _scan(t, _ADVERB_RE, "adverb", lambda p: f'"{p}" can weaken meaning'),
    "tooWordy": lambda t: _scan(t, _WORDY_RE, "tooWordy", lambda p: f'"{p}" is wordy or unneeded'),
    "cliches": lambda t: _scan(t, _CLICHE_RE, "cliches", lambda p: f'"{p}" is a cliche'),
}


def check_style(text: str, checks: Optional[Iterable[str]] = None) -> List[StyleFinding]:
    """Run the enabled checks (all by default) and return findings ordered by index."""
    if not text.strip():
        return []
    enabled = list(checks) if checks is not None else list(_CHECKS)
    unknown = [name for name in enabled if name not in _CHECKS]
    if unknown:
        raise ValueError(f"Unknown style check: {', '.join(unknown)}")
    findings: List[StyleFinding] = []
    for name in enabled:
        findings.extend(_CHECKS[name](text))
    # stable sort keeps check order for findings at the same index
    findings.sort(key=lambda f: f.index)
    return findings


def style_suggestions(text: str) -> List[Suggestion]:
    """Style findings as style-category suggestions (``wg-<index>`` ids)."""
    return [
        Suggestion(
            id=f"wg-{finding.index}",
            offset=finding.index,
            length=finding.length,
            category=SuggestionCategory.STYLE,
            message=finding.reason,
            replacements=[],
            rule_id=finding.check,
        )
        for finding in check_style(text)
    ]
