"""Tests for data models."""
from __future__ import annotations

import pytest

from sat_vocab.models import (
    DisplayBudget,
    DrillCursor,
    DrillOutcome,
    Meaning,
    ReadingSnapshot,
    WordDefinition,
)


class TestWordDefinition:
    def test_wire_shape(self, ephemeral):
        d = ephemeral.to_dict()
        assert d["word"] == "ephemeral"
        assert d["meanings"][0] == {
            "partOfSpeech": "adjective",
            "definitions": ["Lasting for a very short time."],
        }

    def test_from_dict(self, ephemeral):
        assert WordDefinition.from_dict(ephemeral.to_dict()) == ephemeral

    def test_from_dict_missing_phonetic(self):
        d = WordDefinition.from_dict({"word": "x", "meanings": []})
        assert d.phonetic == ""
        assert d.meanings == ()

    def test_frozen(self, ephemeral):
        with pytest.raises(AttributeError):
            ephemeral.word = "other"

    def test_primary(self):
        assert Meaning("noun", ("first", "second")).primary == "first"
        assert Meaning("noun", ()).primary == ""


class TestDrillModels:
    def test_cursor_defaults(self):
        c = DrillCursor()
        assert c.index == 0
        assert c.revealed is False

    def test_outcome_values(self):
        assert DrillOutcome("known") is DrillOutcome.KNOWN
        assert DrillOutcome.UNKNOWN.value == "unknown"


class TestDisplayBudget:
    def test_lines_for(self):
        budget = DisplayBudget(card_width_px=80, char_width_px=8, max_lines=3)
        assert budget.chars_per_line == 10
        assert budget.lines_for(0) == 0
        assert budget.lines_for(10) == 1
        assert budget.lines_for(11) == 2

    def test_narrow_card(self):
        assert DisplayBudget(card_width_px=4, char_width_px=8).chars_per_line == 1


class TestReadingSnapshot:
    def test_from_dict_defaults(self):
        snap = ReadingSnapshot.from_dict({"passage": "Text."})
        assert snap.marked_words == []
        assert snap.definition_cache == {}

    def test_to_dict(self, ubiquitous):
        snap = ReadingSnapshot("Text.", ["ubiquitous"], {"ubiquitous": ubiquitous.to_dict(), "x": None})
        assert ReadingSnapshot.from_dict(snap.to_dict()) == snap
