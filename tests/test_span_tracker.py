"""Tests for the suggestion span tracker: decorations, ingest, fixes and edit mapping."""
import pytest

from inkwell.services.document_model import EditStep, PlainDocument, RichDocument
from inkwell.services.span_tracker import (
    MappingMode,
    SuggestionSpanTracker,
    compute_display_spans,
)
from inkwell.services.suggestions import Suggestion, SuggestionCategory

SPELLING = SuggestionCategory.SPELLING
GRAMMAR = SuggestionCategory.GRAMMAR
STYLE = SuggestionCategory.STYLE


def _tracker(text: str, *suggestions, mode=MappingMode.MAP) -> SuggestionSpanTracker:
    tracker = SuggestionSpanTracker(PlainDocument(text), mapping_mode=mode)
    tracker.ingest(list(suggestions))
    return tracker


def _spans(tracker):
    return [(d.start, d.end, d.category) for d in tracker.recompute_decorations()]


# ---------------------------------------------------------------------------
# Decorations
# ---------------------------------------------------------------------------

def test_single_spelling_span_and_fix():
    tracker = _tracker("Teh cat sat.", Suggestion("s1", 0, 3, SPELLING, replacements=["The"]))
    assert _spans(tracker) == [(0, 3, SPELLING)]

    fix = tracker.apply_fix("s1", "The")

    assert fix is not None
    assert fix.delta == 0
    assert fix.original == "Teh"
    assert tracker.document.plain_text == "The cat sat."
    assert len(tracker) == 0
    assert tracker.recompute_decorations() == []


def test_overlapping_spelling_and_style_yield_spelling():
    tracker = _tracker(
        "Teh cat sat.",
        Suggestion("style", 0, 3, STYLE),
        Suggestion("spell", 0, 3, SPELLING),
    )
    assert _spans(tracker) == [(0, 3, SPELLING)]


def test_partial_overlap_splits_into_non_overlapping_runs():
    tracker = _tracker(
        "The results was very good indeed.",
        Suggestion("style", 0, 20, STYLE),
        Suggestion("grammar", 12, 3, GRAMMAR),
        Suggestion("spell", 14, 8, SPELLING),
    )
    spans = _spans(tracker)
    assert spans == [
        (0, 12, STYLE),
        (12, 14, GRAMMAR),
        (14, 22, SPELLING),
    ]
    for (s1, e1, _), (s2, e2, _) in zip(spans, spans[1:]):
        assert e1 <= s2


def test_spelling_wins_every_shared_character():
    tracker = _tracker(
        "abcdefghij",
        Suggestion("style", 2, 6, STYLE),
        Suggestion("spell", 4, 2, SPELLING),
    )
    labels = {}
    for start, end, category in _spans(tracker):
        for i in range(start, end):
            labels[i] = category
    assert labels[4] is SPELLING
    assert labels[5] is SPELLING
    assert labels[2] is STYLE
    assert labels[7] is STYLE


def test_adjacent_equal_categories_coalesce():
    tracker = _tracker(
        "abcdefghij",
        Suggestion("a", 0, 3, STYLE),
        Suggestion("b", 3, 3, STYLE),
    )
    assert _spans(tracker) == [(0, 6, STYLE)]


def test_recompute_is_idempotent():
    tracker = _tracker(
        "Teh cat sat on teh mat.",
        Suggestion("s1", 0, 3, SPELLING),
        Suggestion("s2", 15, 3, SPELLING),
        Suggestion("st", 4, 7, STYLE),
    )
    first = [d.to_dict() for d in tracker.recompute_decorations()]
    second = [d.to_dict() for d in tracker.recompute_decorations()]
    assert first == second


def test_decorations_empty_for_empty_text():
    assert compute_display_spans([Suggestion("x", 0, 1, SPELLING)], PlainDocument("").position_map()) == []


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------

def test_ingest_replaces_previous_set():
    tracker = _tracker("Teh cat sat.", Suggestion("first", 0, 3, SPELLING))
    tracker.ingest([Suggestion("second", 4, 3, STYLE)])

    assert "first" not in tracker
    assert "second" in tracker
    assert _spans(tracker) == [(4, 7, STYLE)]


def test_ingest_drops_out_of_bounds_suggestion():
    text = "x" * 40
    tracker = SuggestionSpanTracker(PlainDocument(text))
    accepted = tracker.ingest([
        Suggestion("far", 50, 5, SPELLING),
        Suggestion("edge", 38, 5, SPELLING),
        Suggestion("ok", 0, 5, SPELLING),
    ])
    assert accepted == 1
    assert [s.id for s in tracker.suggestions()] == ["ok"]


@pytest.mark.parametrize("length", [0, -2])
def test_ingest_rejects_non_positive_length(length):
    tracker = _tracker("Teh cat sat.", Suggestion("bad", 0, length, SPELLING))
    assert len(tracker) == 0
    assert tracker.recompute_decorations() == []


def test_ingest_accepts_raw_records_and_skips_malformed():
    tracker = SuggestionSpanTracker(PlainDocument("Teh cat sat."))
    accepted = tracker.ingest([
        {"id": "raw", "offset": 0, "length": 3, "type": "spell", "replacements": ["The"]},
        {"id": "broken", "offset": "zero", "length": 3, "type": "spell"},
        {"id": "nocat", "offset": 4, "length": 3},
        {"id": "superscript", "offset": "\u00b2", "length": 3, "type": "spell"},
        {"id": "double-minus", "offset": "--1", "length": 3, "type": "spell"},
        {"id": "odd-fixes", "offset": 4, "length": 3, "type": "grammar", "replacements": 5},
    ])
    assert accepted == 2
    assert tracker.get("raw").category is SPELLING
    assert tracker.get("odd-fixes").replacements == []
    assert tracker.get("superscript") is None


def test_ingest_copies_caller_records():
    incoming = Suggestion("s", 20, 3, SPELLING)
    tracker = _tracker(
        "abcdefghijklmnopqrstuvwxyz",
        Suggestion("fix", 0, 3, SPELLING),
        incoming,
    )
    tracker.apply_fix("fix", "abcde")
    assert incoming.offset == 20
    assert tracker.get("s").offset == 22


# ---------------------------------------------------------------------------
# apply_fix
# ---------------------------------------------------------------------------

def test_apply_fix_shifts_only_later_suggestions():
    text = "abcdefghijklmnopqrstuvwxyz0123"
    tracker = _tracker(
        text,
        Suggestion("five", 5, 3, SPELLING),
        Suggestion("ten", 10, 3, SPELLING),
        Suggestion("twenty", 20, 3, SPELLING),
    )

    fix = tracker.apply_fix("ten", "KLMNO")

    assert fix.delta == 2
    assert tracker.get("five").offset == 5
    assert tracker.get("twenty").offset == 22
    assert "ten" not in tracker
    assert tracker.document.plain_text == text[:10] + "KLMNO" + text[13:]
    # shifted span still covers the same characters
    assert tracker.document.plain_text[22:25] == "uvw"


def test_apply_fix_with_shorter_replacement():
    tracker = _tracker(
        "Inkwell is very very good and teh end.",
        Suggestion("repeat", 11, 9, GRAMMAR),
        Suggestion("teh", 30, 3, SPELLING),
    )
    fix = tracker.apply_fix("repeat", "very")
    assert fix.delta == -5
    assert tracker.document.plain_text == "Inkwell is very good and teh end."
    moved = tracker.get("teh")
    assert moved.offset == 25
    assert tracker.document.plain_text[moved.offset:moved.end] == "teh"


def test_apply_fix_missing_id_is_a_no_op():
    tracker = _tracker("Teh cat sat.", Suggestion("s1", 0, 3, SPELLING))
    revision = tracker.document.revision

    assert tracker.apply_fix("nonexistent-id", "x") is None

    assert tracker.document.plain_text == "Teh cat sat."
    assert tracker.document.revision == revision
    assert [s.id for s in tracker.suggestions()] == ["s1"]


def test_apply_fix_twice_second_is_no_op():
    tracker = _tracker("Teh cat sat.", Suggestion("s1", 0, 3, SPELLING))
    assert tracker.apply_fix("s1", "The") is not None
    assert tracker.apply_fix("s1", "THE") is None
    assert tracker.document.plain_text == "The cat sat."


def test_dismiss_removes_without_touching_document():
    tracker = _tracker("Teh cat sat.", Suggestion("s1", 0, 3, SPELLING))
    assert tracker.dismiss("s1") is True
    assert tracker.dismiss("s1") is False
    assert tracker.document.plain_text == "Teh cat sat."
    assert len(tracker) == 0


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------

def test_insert_before_span_moves_suggestion():
    tracker = _tracker("The cat sat.", Suggestion("cat", 4, 3, STYLE))
    step = tracker.document.replace(0, 0, "Look ")

    dropped = tracker.sync_on_document_edit(step)

    assert dropped == 0
    moved = tracker.get("cat")
    assert moved.offset == 9
    assert tracker.document.plain_text[moved.offset:moved.end] == "cat"
    assert _spans(tracker) == [(9, 12, STYLE)]


def test_insert_at_span_edges_stays_outside():
    tracker = _tracker("The cat sat.", Suggestion("cat", 4, 3, STYLE))
    tracker.sync_on_document_edit(tracker.document.replace(7, 7, "s"))
    tracker.sync_on_document_edit(tracker.document.replace(4, 4, "fat "))

    moved = tracker.get("cat")
    assert tracker.document.plain_text == "The fat cats sat."
    assert (moved.offset, moved.length) == (8, 3)


def test_edit_after_span_leaves_it_alone():
    tracker = _tracker("Teh cat sat.", Suggestion("teh", 0, 3, SPELLING))
    tracker.sync_on_document_edit(tracker.document.replace(8, 11, "slept"))
    assert tracker.get("teh").offset == 0
    assert tracker.get("teh").length == 3


def test_deleting_covered_text_drops_suggestion():
    tracker = _tracker(
        "Teh cat sat.",
        Suggestion("cat", 4, 3, STYLE),
        Suggestion("teh", 0, 3, SPELLING),
    )
    dropped = tracker.sync_on_document_edit(tracker.document.replace(3, 8, " "))
    assert dropped == 1
    assert "cat" not in tracker
    assert "teh" in tracker


def test_invalidate_mode_drops_touched_spans():
    tracker = _tracker(
        "Teh cat sat.",
        Suggestion("teh", 0, 3, SPELLING),
        Suggestion("sat", 8, 3, STYLE),
        mode=MappingMode.INVALIDATE,
    )
    tracker.sync_on_document_edit(tracker.document.replace(1, 2, "h"))
    assert "teh" not in tracker
    assert "sat" in tracker


def test_map_mode_keeps_touched_spans():
    tracker = _tracker("Teh cat sat.", Suggestion("teh", 0, 3, SPELLING))
    tracker.sync_on_document_edit(tracker.document.replace(1, 2, "h"))
    kept = tracker.get("teh")
    assert (kept.offset, kept.length) == (0, 3)


def test_unknown_edit_revalidates_excerpts():
    tracker = _tracker(
        "Teh cat sat.",
        Suggestion("teh", 0, 3, SPELLING),
        Suggestion("sat", 8, 3, STYLE),
    )
    tracker.document.replace(0, 3, "The")

    dropped = tracker.sync_on_document_edit(None)

    assert dropped == 1
    assert "teh" not in tracker
    assert "sat" in tracker


def test_multi_step_mapping():
    tracker = _tracker("The cat sat.", Suggestion("sat", 8, 3, STYLE))
    steps = [
        tracker.document.replace(0, 0, "Oh, "),
        tracker.document.replace(0, 2, ""),
    ]
    tracker.sync_on_document_edit(steps)
    moved = tracker.get("sat")
    assert tracker.document.plain_text == ", The cat sat."
    assert tracker.document.plain_text[moved.offset:moved.end] == "sat"


# ---------------------------------------------------------------------------
# Rich documents
# ---------------------------------------------------------------------------

def test_rich_document_fix_in_second_paragraph():
    document = RichDocument(["Teh cat.", "A recieve here."])
    tracker = SuggestionSpanTracker(document)
    assert document.plain_text == "Teh cat. A recieve here."

    tracker.ingest([
        Suggestion("teh", 0, 3, SPELLING),
        Suggestion("recieve", 11, 7, SPELLING),
    ])
    live = {s.id: tracker.position_map.span_for(s.offset, s.length) for s in tracker.suggestions()}
    assert live["teh"] == (1, 4)
    assert live["recieve"] == (13, 20)

    tracker.apply_fix("recieve", "receive")

    assert document.blocks == ["Teh cat.", "A receive here."]
    assert "teh" in tracker


def test_rich_document_decorations_carry_document_positions():
    document = RichDocument(["Teh cat.", "A recieve here."])
    tracker = SuggestionSpanTracker(document)
    tracker.ingest([Suggestion("recieve", 11, 7, SPELLING)])

    [span] = tracker.recompute_decorations()
    assert (span.start, span.end) == (11, 18)
    assert (span.from_, span.to) == (13, 20)


def test_rich_document_span_ending_on_block_separator():
    document = RichDocument(["Teh cat.", "Next."])
    tracker = SuggestionSpanTracker(document)
    tracker.ingest([Suggestion("tail", 4, 5, STYLE)])
    [tail] = tracker.suggestions()
    from_, to = tracker.position_map.span_for(tail.offset, tail.length)
    assert (from_, to) == (5, 9)
    assert document.text_between(from_, to) == "cat."


def test_rich_document_edit_in_first_paragraph_moves_second():
    document = RichDocument(["Teh cat.", "A recieve here."])
    tracker = SuggestionSpanTracker(document)
    tracker.ingest([Suggestion("recieve", 11, 7, SPELLING)])

    tracker.sync_on_document_edit(document.replace(1, 1, "Big "))

    moved = tracker.get("recieve")
    assert document.plain_text == "Big Teh cat. A recieve here."
    assert moved.offset == 15
    assert document.plain_text[moved.offset:moved.end] == "recieve"
    assert tracker.position_map.span_for(moved.offset, moved.length) == (17, 24)


def test_rich_document_paragraph_split_keeps_spans():
    document = RichDocument(["Teh cat. A recieve here."])
    tracker = SuggestionSpanTracker(document)
    tracker.ingest([Suggestion("recieve", 11, 7, SPELLING)])

    tracker.sync_on_document_edit(document.replace(10, 10, "\n"))

    assert document.blocks == ["Teh cat. ", "A recieve here."]
    moved = tracker.get("recieve")
    assert document.plain_text[moved.offset:moved.end] == "recieve"
