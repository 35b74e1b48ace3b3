"""Reading passage generation with literal fallbacks."""
from __future__ import annotations

import itertools
import logging
import random
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from sat_vocab.cache import TTLCache
from sat_vocab.prompts import ACADEMIC_FIELDS, TOPIC_CATEGORIES, passage_prompt

if TYPE_CHECKING:
    from sat_vocab.providers.base import LLMProvider

log = logging.getLogger("sat_vocab.passages")

MIN_PASSAGE_LENGTH = 100
RANDOM_TOPIC_CHANCE = 0.3
PASSAGE_MAX_TOKENS = 300
PASSAGE_TEMPERATURE = 0.9

FALLBACK_PASSAGES = [
    (
        "The Renaissance period marked a profound transformation in European art and culture, "
        "spanning roughly from the 14th to the 17th century. This era witnessed the emergence of "
        "groundbreaking artistic techniques, including linear perspective and chiaroscuro, which "
        "revolutionized how artists represented three-dimensional space and light on "
        "two-dimensional surfaces.\n\n"
        "The cultural movement was characterized by a renewed interest in classical antiquity, "
        "leading to the rediscovery of ancient Greek and Roman texts and artistic principles. "
        "Artists like Leonardo da Vinci and Michelangelo exemplified the Renaissance ideal of the "
        "\"universal man,\" combining artistic talent with scientific inquiry and philosophical "
        "depth. This period also saw the development of humanism, which emphasized the value and "
        "agency of human beings, individually and collectively."
    ),
    (
        "Quantum mechanics represents one of the most revolutionary developments in modern "
        "physics, fundamentally altering our understanding of the universe at its most "
        "fundamental level. The theory introduces concepts that challenge our everyday intuition, "
        "such as wave-particle duality, where particles can exhibit both wave-like and "
        "particle-like properties depending on how they are observed.\n\n"
        "The uncertainty principle, formulated by Werner Heisenberg, states that it is impossible "
        "to simultaneously know both the position and momentum of a particle with absolute "
        "precision. This principle has profound implications for our understanding of reality, "
        "suggesting that at the quantum level, the universe operates according to probabilistic "
        "rather than deterministic laws. These discoveries have led to technological innovations "
        "ranging from lasers and transistors to quantum computers and medical imaging devices."
    ),
    (
        "Marine biology encompasses the scientific study of organisms that inhabit the world's "
        "oceans and other saltwater environments. This diverse field investigates everything from "
        "microscopic plankton to the largest creatures on Earth, including blue whales that can "
        "reach lengths of over 100 feet. Marine biologists study not only individual species but "
        "also complex ecosystems and the intricate relationships between marine organisms and "
        "their environment.\n\n"
        "The field has become increasingly important as human activities impact ocean health "
        "through pollution, overfishing, and climate change. Coral reefs, often called the "
        "\"rainforests of the sea,\" serve as crucial habitats for thousands of species while "
        "also protecting coastal communities from storms and erosion. Understanding marine "
        "ecosystems is essential for developing sustainable practices that preserve these vital "
        "resources for future generations."
    ),
    (
        "The Industrial Revolution, beginning in the late 18th century, fundamentally transformed "
        "human society through unprecedented technological and economic changes. This period saw "
        "the transition from manual labor and hand production methods to machine-based "
        "manufacturing, dramatically increasing productivity and efficiency across various "
        "industries.\n\n"
        "The development of steam power, mechanized textile production, and improved iron-making "
        "techniques created new economic opportunities while also presenting significant social "
        "challenges. Urbanization accelerated as people moved from rural areas to cities in "
        "search of employment, leading to the growth of industrial centers and the emergence of "
        "new social classes. This transformation also sparked important discussions about labor "
        "rights, working conditions, and the role of government in regulating industrial "
        "development."
    ),
    (
        "Cognitive psychology explores the mental processes that underlie human behavior, "
        "including attention, memory, language, problem-solving, and decision-making. This field "
        "investigates how people acquire, process, store, and retrieve information, providing "
        "insights into both normal cognitive functioning and various cognitive disorders.\n\n"
        "Research in cognitive psychology has revealed that human memory is not a passive storage "
        "system but an active, reconstructive process influenced by various factors such as "
        "attention, emotion, and context. Studies have shown that our cognitive processes are "
        "subject to various biases and limitations, which can affect everything from eyewitness "
        "testimony to medical diagnosis. Understanding these cognitive mechanisms has important "
        "applications in education, healthcare, and artificial intelligence development."
    ),
    (
        "Climate change represents one of the most pressing global challenges of the 21st "
        "century, with far-reaching implications for ecosystems, human societies, and economic "
        "systems worldwide. The scientific consensus indicates that human activities, "
        "particularly the burning of fossil fuels and deforestation, have significantly "
        "contributed to the observed warming of Earth's climate system.\n\n"
        "The impacts of climate change are already evident in rising global temperatures, "
        "melting polar ice caps, and increasingly frequent extreme weather events. These changes "
        "affect agricultural productivity, water availability, and human health, while also "
        "threatening biodiversity and ecosystem stability. Addressing climate change requires "
        "coordinated international efforts to reduce greenhouse gas emissions, develop renewable "
        "energy sources, and implement adaptation strategies to cope with unavoidable changes."
    ),
]


class PassageGenerationError(Exception):
    """No usable passage could be produced; callers substitute a fallback."""


def fallback_passage(rng: random.Random | None = None) -> str:
    return (rng or random).choice(FALLBACK_PASSAGES)


def clean_passage(raw: str) -> str:
    """Trim model output and drop a short, sentence-free first paragraph (a title)."""
    passage = (raw or "").strip()
    paragraphs = passage.split("\n\n")
    if len(paragraphs) > 1 and len(paragraphs[0]) < 150 and "." not in paragraphs[0]:
        passage = "\n\n".join(paragraphs[1:]).strip()
    return passage


class PassageGenerator:
    """Generates SSAT-style passages, steering each user away from recent topics.

    The topic history is owned by the generator instance and forgets entries
    after ``history_ttl_seconds``.
    """

    def __init__(
        self,
        llm: LLMProvider | None,
        history_ttl_seconds: float = 86400,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.llm = llm
        self._rng = rng or random.Random()
        self._history = TTLCache(history_ttl_seconds, clock)
        self._seq = itertools.count()

    def recent_topics(self, user_id: str) -> set[str]:
        return {topic for uid, topic in self._history.values() if uid == user_id}

    def pick_topic(self, user_id: str) -> str:
        if self._rng.random() < RANDOM_TOPIC_CHANCE:
            return f"a random academic topic from {self._rng.choice(ACADEMIC_FIELDS)}"
        recent = self.recent_topics(user_id)
        candidates = [t for t in TOPIC_CATEGORIES if t not in recent] or TOPIC_CATEGORIES
        return self._rng.choice(candidates)

    async def generate(self, user_id: str = "anonymous") -> str:
        if self.llm is None:
            raise PassageGenerationError("LLM provider is not configured")

        topic = self.pick_topic(user_id)
        try:
            raw = await self.llm.generate(
                passage_prompt(topic),
                temperature=PASSAGE_TEMPERATURE,
                max_tokens=PASSAGE_MAX_TOKENS,
            )
        except Exception as e:
            raise PassageGenerationError(f"passage generation failed: {e}") from e

        passage = clean_passage(raw)
        if len(passage) < MIN_PASSAGE_LENGTH:
            raise PassageGenerationError(f"passage too short ({len(passage)} chars)")

        self._history.set((user_id, next(self._seq)), (user_id, topic))
        log.info("Generated passage on %r for %s (%d chars)", topic, user_id, len(passage))
        return passage
