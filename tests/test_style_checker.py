"""Tests for the local prose-style checks and readability statistics."""
import pytest

from inkwell.services.readability import ReadabilityStats, compute_readability
from inkwell.services.style_checker import check_style, style_suggestions
from inkwell.services.suggestions import SuggestionCategory


def _by_check(text, check):
    return [(f.index, f.length, f.reason) for f in check_style(text, checks=[check])]


def test_passive_voice():
    assert _by_check("The report was written quickly.", "passive") == [
        (11, 11, '"was written" may be passive voice')
    ]


def test_regular_participle_passive():
    [(index, length, _)] = _by_check("The samples were collected in May.", "passive")
    assert (index, length) == (12, 14)


def test_repeated_word():
    assert _by_check("This is the the end.", "illusion") == [(8, 7, '"the" is repeated')]


def test_sentence_starting_with_so():
    findings = _by_check("So we began. So what.", "so")
    assert [f[0] for f in findings] == [0, 13]
    assert findings[0][2] == '"So" adds no meaning'


def test_there_is():
    assert _by_check("There are reasons.", "thereIs") == [
        (0, 9, '"There are" is unnecessary verbiage')
    ]


def test_weasel_words():
    assert _by_check("There are many reasons.", "weasel") == [(10, 4, '"many" is a weasel word')]


def test_weak_adverb():
    assert _by_check("It is really good.", "adverb") == [(6, 6, '"really" can weaken meaning')]


def test_wordy_phrase():
    assert _by_check("We did this in order to win.", "tooWordy") == [
        (12, 11, '"in order to" is wordy or unneeded')
    ]


def test_cliche():
    assert _by_check("At the end of the day it works.", "cliches") == [
        (0, 21, '"At the end of the day" is a cliche')
    ]


def test_findings_sorted_by_index():
    findings = check_style("It is really good. There are many reasons.")
    indices = [f.index for f in findings]
    assert indices == sorted(indices)
    assert {f.check for f in findings} >= {"adverb", "thereIs", "weasel"}


def test_unknown_check_raises():
    with pytest.raises(ValueError):
        check_style("Some text.", checks=["nonsense"])


def test_blank_text_has_no_findings():
    assert check_style("   ") == []
    assert style_suggestions("") == []


def test_style_suggestions_shape():
    [suggestion] = style_suggestions("It is really good.")
    assert suggestion.id == "wg-6"
    assert suggestion.category is SuggestionCategory.STYLE
    assert suggestion.rule_id == "adverb"
    assert suggestion.replacements == []


def test_readability_blank_text():
    assert compute_readability("  ") == ReadabilityStats()


def test_readability_counts():
    text = "The cat sat on the mat. The dog ran to the park and back home again."
    stats = compute_readability(text, words_per_minute=200)
    assert stats.words == 16
    assert stats.sentences == 2
    assert stats.reading_time_minutes == 0.08
    assert stats.avg_word_length > 2
    assert stats.score > 60
