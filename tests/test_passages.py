"""Tests for passage generation and fallbacks."""
from __future__ import annotations

import random

import pytest

from conftest import FakeClock, FakeLLM
from sat_vocab.passages import (
    FALLBACK_PASSAGES,
    MIN_PASSAGE_LENGTH,
    PASSAGE_MAX_TOKENS,
    PASSAGE_TEMPERATURE,
    PassageGenerationError,
    PassageGenerator,
    clean_passage,
    fallback_passage,
)
from sat_vocab.prompts import TOPIC_CATEGORIES

BODY = (
    "Coral reefs shelter a quarter of all marine species despite covering a tiny fraction "
    "of the ocean floor. Their decline is therefore a matter of considerable concern."
)


class FixedRandom:
    """Deterministic stand-in for random.Random: fixed roll, always the first choice."""

    def __init__(self, roll: float = 0.9):
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def choice(self, seq):
        return seq[0]


class TestCleanPassage:
    def test_drops_title(self):
        assert clean_passage(f"Coral Reefs\n\n{BODY}") == BODY

    def test_keeps_sentence_first_paragraph(self):
        text = f"Reefs matter.\n\n{BODY}"
        assert clean_passage(text) == text

    def test_single_paragraph_kept(self):
        assert clean_passage(f"  {BODY}\n") == BODY


class TestFallback:
    def test_literal_passages(self):
        assert len(FALLBACK_PASSAGES) == 6
        assert all(len(p) >= MIN_PASSAGE_LENGTH for p in FALLBACK_PASSAGES)
        assert all("\n\n" in p for p in FALLBACK_PASSAGES)

    def test_fallback_passage(self):
        assert fallback_passage(random.Random(7)) in FALLBACK_PASSAGES


class TestPassageGenerator:
    @pytest.mark.asyncio
    async def test_generate(self):
        llm = FakeLLM([f"Coral Reefs\n\n{BODY}"])
        generator = PassageGenerator(llm, rng=FixedRandom())
        assert await generator.generate() == BODY
        call = llm.calls[0]
        assert call["max_tokens"] == PASSAGE_MAX_TOKENS
        assert call["temperature"] == PASSAGE_TEMPERATURE
        assert TOPIC_CATEGORIES[0] in call["prompt"]

    @pytest.mark.asyncio
    async def test_no_llm(self):
        with pytest.raises(PassageGenerationError):
            await PassageGenerator(None).generate()

    @pytest.mark.asyncio
    async def test_llm_error(self):
        generator = PassageGenerator(FakeLLM(error=ConnectionError("refused")))
        with pytest.raises(PassageGenerationError, match="refused"):
            await generator.generate()

    @pytest.mark.asyncio
    async def test_too_short(self):
        generator = PassageGenerator(FakeLLM(["Too short."]))
        with pytest.raises(PassageGenerationError, match="too short"):
            await generator.generate()

    @pytest.mark.asyncio
    async def test_avoids_recent_topics(self):
        generator = PassageGenerator(FakeLLM([BODY]), rng=FixedRandom())
        await generator.generate("alice")
        assert generator.recent_topics("alice") == {TOPIC_CATEGORIES[0]}
        assert generator.pick_topic("alice") == TOPIC_CATEGORIES[1]
        # History is per user
        assert generator.pick_topic("bob") == TOPIC_CATEGORIES[0]

    @pytest.mark.asyncio
    async def test_failed_generation_not_recorded(self):
        generator = PassageGenerator(FakeLLM(["short"]), rng=FixedRandom())
        with pytest.raises(PassageGenerationError):
            await generator.generate("alice")
        assert generator.recent_topics("alice") == set()

    @pytest.mark.asyncio
    async def test_history_expires(self):
        clock = FakeClock()
        generator = PassageGenerator(
            FakeLLM([BODY]), history_ttl_seconds=60, rng=FixedRandom(), clock=clock,
        )
        await generator.generate("alice")
        clock.advance(61)
        assert generator.pick_topic("alice") == TOPIC_CATEGORIES[0]

    def test_random_academic_topic(self):
        generator = PassageGenerator(None, rng=FixedRandom(roll=0.1))
        assert generator.pick_topic("alice") == "a random academic topic from history"
