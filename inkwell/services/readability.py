"""
Readability statistics for a text snapshot.

CPU-bound; callers run it in a worker thread on an immutable string.
"""
from __future__ import annotations

import dataclasses

import textstat

from inkwell.config import settings


@dataclasses.dataclass(frozen=True)
class ReadabilityStats:
    score: float = 0.0
    words: int = 0
    sentences: int = 0
    avg_word_length: float = 0.0
    reading_time_minutes: float = 0.0


def compute_readability(text: str, words_per_minute: int = settings.READING_WPM) -> ReadabilityStats:
    """Flesch reading ease plus basic counts; zeros for blank text."""
    if not text.strip():
        return ReadabilityStats()

    words = textstat.lexicon_count(text, removepunct=True)
    sentences = textstat.sentence_count(text)
    letters = textstat.letter_count(text, ignore_spaces=True)

    return ReadabilityStats(
        score=round(textstat.flesch_reading_ease(text), 2),
        words=words,
        sentences=sentences,
        avg_word_length=round(letters / words, 2) if words else 0.0,
        reading_time_minutes=round(words / words_per_minute, 2),
    )
