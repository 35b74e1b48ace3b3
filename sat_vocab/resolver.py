"""Resolve a word to a definition: function-word table, dictionary, then LLM."""
from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

from sat_vocab.cache import TTLCache
from sat_vocab.common_words import COMMON_WORDS
from sat_vocab.dictionary import DictionaryUnavailable
from sat_vocab.models import Meaning, WordDefinition
from sat_vocab.prompts import definition_prompts

if TYPE_CHECKING:
    from sat_vocab.providers.base import LLMProvider

log = logging.getLogger("sat_vocab.resolver")

ACRONYM_RE = re.compile(r"^[A-Z]{2,5}$")
NUMBER_RE = re.compile(r"^\d+$")
TYPE_PREFIX_RE = re.compile(r"^Type:\s*(Noun|Verb|Adjective|Adverb|Acronym|Number)\s*\n?")
PRONUNCIATION_RE = re.compile(r"\(([^)]+)\)")

# Boilerplate the model tends to put in front of the definition body.
_LEAD_INS = [
    re.compile(r"^Pronunciation:\s*\n?", re.IGNORECASE),
    re.compile(r"^Definition:\s*", re.IGNORECASE),
    re.compile(r"""^Here is the definition of\s*["']?[^"']*["']?:\s*""", re.IGNORECASE),
    re.compile(r"^Type:\s*(Noun|Verb|Adjective|Adverb|Acronym|Number)\s*\n?", re.IGNORECASE),
]

CONCISE_MAX_TOKENS = 80
NORMAL_MAX_TOKENS = 120
DEFINITION_TEMPERATURE = 0.3


class DictionaryLookup(Protocol):
    async def lookup(self, word: str) -> WordDefinition | None:
        ...


def looks_like_acronym(word: str) -> bool:
    return bool(ACRONYM_RE.match(word))


def looks_like_number(word: str) -> bool:
    return bool(NUMBER_RE.match(word))


def infer_part_of_speech(word: str) -> str:
    if word.endswith("ly"):
        return "Adverb"
    if word.endswith(("ing", "ed")):
        return "Verb"
    if word.endswith(("al", "ous", "ful", "less")):
        return "Adjective"
    return "Noun"


def clean_definition_text(text: str) -> str:
    text = re.sub(r"[*_`]", "", text)
    for pattern in _LEAD_INS:
        text = pattern.sub("", text)
    text = re.sub(r"\n\n+", "\n", text)
    return text.strip()


def parse_ai_definition(word: str, raw: str | None) -> WordDefinition | None:
    """Turn a free-form LLM answer into a single-meaning definition.

    Best effort: a missing ``Type:`` prefix falls back to suffix-based part of
    speech, and the first parenthesized span is taken as the pronunciation.
    Returns None only when nothing is left after cleanup.
    """
    text = (raw or "").strip()
    if not text:
        return None

    m = TYPE_PREFIX_RE.match(text)
    if m:
        part_of_speech = m.group(1)
        body = text[m.end():].strip()
    else:
        part_of_speech = infer_part_of_speech(word)
        body = text

    phonetic = ""
    pm = PRONUNCIATION_RE.search(body)
    if pm:
        phonetic = pm.group(1)
        body = (body[:pm.start()] + body[pm.end():]).strip()

    body = clean_definition_text(body)
    if not body:
        return None
    return WordDefinition(word, phonetic, (Meaning(part_of_speech, (body,)),))


def merge_definitions(
    word: str,
    dictionary: WordDefinition | None,
    ai: WordDefinition | None,
    ai_authoritative: bool,
) -> WordDefinition | None:
    """Combine the two sources; an authoritative AI answer replaces the dictionary hit."""
    if ai is None:
        return replace(dictionary, word=word) if dictionary else None
    if dictionary is None or ai_authoritative:
        return ai
    return WordDefinition(word, dictionary.phonetic, dictionary.meanings + ai.meanings)


async def resolve_with_timeout(
    resolver: DefinitionResolver,
    word: str,
    concise: bool = False,
    timeout: float | None = None,
) -> WordDefinition | None:
    """Resolve *word*, converting a stalled or failing lookup into None."""
    try:
        return await asyncio.wait_for(resolver.resolve(word, concise=concise), timeout=timeout)
    except asyncio.TimeoutError:
        log.warning("Definition lookup for %r timed out after %ss", word, timeout)
    except Exception as e:
        log.warning("Definition lookup for %r failed: %s", word, e)
    return None


class DefinitionResolver:
    def __init__(
        self,
        dictionary: DictionaryLookup,
        llm: LLMProvider | None = None,
        cache_ttl_seconds: float = 3600,
        llm_timeout_seconds: float | None = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.dictionary = dictionary
        self.llm = llm
        self.llm_timeout_seconds = llm_timeout_seconds
        self._cache = TTLCache(cache_ttl_seconds, clock)

    async def resolve(self, word: str, concise: bool = False) -> WordDefinition | None:
        if word in COMMON_WORDS:
            return COMMON_WORDS[word]

        key = (word, concise)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = await self._resolve_uncached(word, concise)
        if result is not None:
            self._cache.set(key, result)
        return result

    async def _resolve_uncached(self, word: str, concise: bool) -> WordDefinition | None:
        dictionary_def = await self._lookup(word)
        needs_clarification = looks_like_acronym(word) or looks_like_number(word)

        if dictionary_def is not None and not needs_clarification:
            return replace(dictionary_def, word=word)

        ai_def = await self._ask_llm(word, concise)
        result = merge_definitions(word, dictionary_def, ai_def, ai_authoritative=needs_clarification)
        if result is None:
            log.info("No definition found for %r", word)
        return result

    async def _lookup(self, word: str) -> WordDefinition | None:
        try:
            return await self.dictionary.lookup(word)
        except DictionaryUnavailable as e:
            log.warning("Dictionary unavailable: %s", e)
            return None

    async def _ask_llm(self, word: str, concise: bool) -> WordDefinition | None:
        if self.llm is None:
            return None
        system, prompt = definition_prompts(word, concise)
        try:
            raw = await asyncio.wait_for(
                self.llm.generate(
                    prompt,
                    temperature=DEFINITION_TEMPERATURE,
                    max_tokens=CONCISE_MAX_TOKENS if concise else NORMAL_MAX_TOKENS,
                    system=system,
                ),
                timeout=self.llm_timeout_seconds,
            )
        except asyncio.TimeoutError:
            log.warning("LLM definition for %r timed out", word)
            return None
        except Exception as e:
            log.warning("LLM definition for %r failed: %s", word, e)
            return None
        return parse_ai_definition(word, raw)
