"""Tests for prompt templates."""
from __future__ import annotations

from sat_vocab.prompts import (
    ACADEMIC_FIELDS,
    TOPIC_CATEGORIES,
    definition_prompts,
    passage_prompt,
)


class TestDefinitionPrompts:
    def test_normal(self):
        system, prompt = definition_prompts("ubiquitous", concise=False)
        assert "under 100 characters" in system
        assert "concise, accurate" in system
        assert '"ubiquitous"' in prompt
        assert "clear definition" in prompt

    def test_concise(self):
        system, prompt = definition_prompts("ubiquitous", concise=True)
        assert "under 50 characters" in system
        assert "very short definition" in prompt

    def test_no_unfilled_placeholders(self):
        for concise in (False, True):
            system, prompt = definition_prompts("x", concise)
            assert "{" not in system
            assert "{" not in prompt


class TestPassagePrompt:
    def test_topic_inserted(self):
        prompt = passage_prompt("Marine Biology")
        assert prompt.count("Marine Biology") == 2
        assert "150-200 word" in prompt
        assert "No titles" in prompt

    def test_topic_lists(self):
        assert len(TOPIC_CATEGORIES) == 20
        assert len(set(TOPIC_CATEGORIES)) == 20
        assert len(ACADEMIC_FIELDS) == 8
