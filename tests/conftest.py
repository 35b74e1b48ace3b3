"""Shared test fixtures."""
from __future__ import annotations

import asyncio

import pytest

from sat_vocab.db import Database
from sat_vocab.dictionary import DictionaryUnavailable
from sat_vocab.models import Meaning, WordDefinition
from sat_vocab.resolver import DefinitionResolver


class FakeDictionary:
    """In-memory stand-in for DictionaryClient that records every lookup."""

    def __init__(self, entries: dict[str, WordDefinition] | None = None, unavailable: bool = False):
        self.entries = dict(entries or {})
        self.unavailable = unavailable
        self.calls: list[str] = []

    async def lookup(self, word: str) -> WordDefinition | None:
        self.calls.append(word)
        if self.unavailable:
            raise DictionaryUnavailable("service down")
        return self.entries.get(word)


class FakeLLM:
    """Returns canned responses in order (the last one repeats) and records calls."""

    def __init__(self, responses=None, error: Exception | None = None, delay: float = 0.0):
        self.responses = list(responses or [])
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def generate(self, prompt: str, temperature: float = 0.7,
                       max_tokens: int = 1024, system: str | None = None) -> str:
        self.calls.append({
            "prompt": prompt, "temperature": temperature,
            "max_tokens": max_tokens, "system": system,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if not self.responses:
            return ""
        return self.responses[min(len(self.calls), len(self.responses)) - 1]

    def name(self) -> str:
        return "fake-llm"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def tmp_db(tmp_path):
    """Create a fresh temporary database."""
    db = Database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ubiquitous():
    return WordDefinition(
        "ubiquitous",
        "/juːˈbɪkwɪtəs/",
        (Meaning("adjective", (
            "Present, appearing, or found everywhere.",
            "Seemingly present everywhere at once.",
            "Widespread; constantly encountered.",
        )),),
    )


@pytest.fixture
def ephemeral():
    return WordDefinition(
        "ephemeral",
        "/ɪˈfɛm(ə)rəl/",
        (
            Meaning("adjective", ("Lasting for a very short time.",)),
            Meaning("noun", ("An ephemeral plant.",)),
        ),
    )


@pytest.fixture
def fake_dictionary(ubiquitous, ephemeral):
    return FakeDictionary({"ubiquitous": ubiquitous, "ephemeral": ephemeral})


@pytest.fixture
def fake_llm():
    return FakeLLM(["Type: Noun\nA nonsense word used as a placeholder"])


@pytest.fixture
def resolver(fake_dictionary, fake_llm):
    return DefinitionResolver(fake_dictionary, fake_llm, llm_timeout_seconds=1.0)
