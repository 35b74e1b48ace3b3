"""Reading session: passage, marked words, and a warm definition cache."""
from __future__ import annotations

import asyncio
import logging
import random
import re
import uuid
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Protocol

from sat_vocab.models import ReadingSnapshot, WordDefinition
from sat_vocab.passages import fallback_passage
from sat_vocab.resolver import resolve_with_timeout

if TYPE_CHECKING:
    from sat_vocab.resolver import DefinitionResolver

log = logging.getLogger("sat_vocab.reading")

EDGE_PUNCTUATION = ".,!?;:\"'()[]"
TOOLTIP_SENSES_PER_PART = 2

_WHITESPACE_RE = re.compile(r"(\s+)")


class PassageSource(Protocol):
    async def generate(self, user_id: str = "anonymous") -> str:
        ...


def normalize_token(token: str) -> str:
    """Strip leading/trailing punctuation; an all-punctuation token becomes ''."""
    return token.strip(EDGE_PUNCTUATION)


def tokenize(passage: str) -> list[str]:
    """Split on whitespace, keeping the whitespace runs so the text can be rebuilt."""
    return [t for t in _WHITESPACE_RE.split(passage) if t]


class MarkedWordSet:
    """Ordered set of normalized words the reader flagged, in marking order."""

    def __init__(self, words: Iterable[str] = ()):
        self._words: dict[str, None] = {}
        for w in words:
            word = normalize_token(w)
            if word:
                self._words[word] = None

    def toggle(self, word: str) -> bool:
        """Add *word* if absent, remove it if present. Returns True when added."""
        if word in self._words:
            del self._words[word]
            return False
        self._words[word] = None
        return True

    def clear(self) -> None:
        self._words.clear()

    def words(self) -> tuple[str, ...]:
        return tuple(self._words)

    def __contains__(self, word: object) -> bool:
        return word in self._words

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._words))

    def __len__(self) -> int:
        return len(self._words)


class DefinitionCache:
    """word -> definition, where a stored None means "looked up, nothing found"."""

    def __init__(self, entries: dict[str, WordDefinition | None] | None = None):
        self._entries: dict[str, WordDefinition | None] = dict(entries or {})

    def get(self, word: str) -> WordDefinition | None:
        return self._entries.get(word)

    def put(self, word: str, definition: WordDefinition | None) -> None:
        self._entries[word] = definition

    def words(self) -> list[str]:
        return list(self._entries)

    def to_dict(self) -> dict[str, dict | None]:
        return {w: (d.to_dict() if d else None) for w, d in self._entries.items()}

    @classmethod
    def from_dict(cls, data: dict[str, dict | None]) -> DefinitionCache:
        return cls({w: (WordDefinition.from_dict(d) if d else None) for w, d in data.items()})

    def __contains__(self, word: object) -> bool:
        return word in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def tooltip(word: str, definition: WordDefinition | None, per_part: int = TOOLTIP_SENSES_PER_PART) -> dict:
    if definition is None:
        return {"word": word, "found": False, "phonetic": "", "meanings": []}
    return {
        "word": word,
        "found": True,
        "phonetic": definition.phonetic,
        "meanings": [
            {"partOfSpeech": m.part_of_speech, "definitions": list(m.definitions[:per_part])}
            for m in definition.meanings
        ],
    }


class ReadingSession:
    def __init__(
        self,
        resolver: DefinitionResolver,
        passages: PassageSource | None = None,
        passage: str | None = None,
        marked_words: Iterable[str] = (),
        definition_cache: DefinitionCache | None = None,
        user_id: str = "anonymous",
        lookup_timeout_seconds: float | None = 10.0,
        passage_timeout_seconds: float | None = 60.0,
        rng: random.Random | None = None,
    ):
        self.id = uuid.uuid4().hex
        self.resolver = resolver
        self.passages = passages
        self.user_id = user_id
        self.passage = passage
        self.marked = MarkedWordSet(marked_words)
        self.cache = definition_cache if definition_cache is not None else DefinitionCache()
        self.lookup_timeout_seconds = lookup_timeout_seconds
        self.passage_timeout_seconds = passage_timeout_seconds
        self.loading = passage is None
        self.error: str | None = None
        self.loading_words: set[str] = set()
        self._rng = rng or random.Random()
        self._inflight: dict[str, asyncio.Task] = {}
        self._bg_tasks: set[asyncio.Task] = set()

    @classmethod
    def restore(cls, snapshot: ReadingSnapshot, resolver: DefinitionResolver, **kwargs) -> ReadingSession:
        return cls(
            resolver,
            passage=snapshot.passage,
            marked_words=snapshot.marked_words,
            definition_cache=DefinitionCache.from_dict(snapshot.definition_cache),
            **kwargs,
        )

    # ── Passage ───────────────────────────────────────────────────────────

    async def start(self) -> str:
        """Load a passage unless one was supplied; any failure yields a fallback."""
        if self.passage is not None:
            self.loading = False
            return self.passage

        self.loading = True
        self.error = None
        try:
            if self.passages is None:
                raise RuntimeError("No passage source configured")
            self.passage = await asyncio.wait_for(
                self.passages.generate(self.user_id), timeout=self.passage_timeout_seconds
            )
        except asyncio.TimeoutError:
            log.warning("Passage generation timed out for session %s", self.id)
            self.error = "Passage generation timed out."
            self.passage = fallback_passage(self._rng)
        except Exception as e:
            log.warning("Passage generation failed for session %s: %s", self.id, e)
            self.error = str(e) or "Failed to generate new passage."
            self.passage = fallback_passage(self._rng)
        finally:
            self.loading = False
        return self.passage

    def dismiss_error(self) -> None:
        self.error = None

    # ── Marking ───────────────────────────────────────────────────────────

    def toggle(self, token: str) -> bool | None:
        """Toggle *token* from the passage or the word bank.

        Returns True if the word is now marked, False if unmarked, and None
        when the token normalizes to nothing. A newly marked, uncached word
        gets a background definition lookup.
        """
        word = normalize_token(token)
        if not word:
            return None
        added = self.marked.toggle(word)
        if added and word not in self.cache:
            task = self._lookup(word)
            self._bg_tasks.add(task)
            task.add_done_callback(self._bg_tasks.discard)
        return added

    def clear_all(self) -> None:
        self.marked.clear()

    async def hover(self, token: str) -> dict | None:
        """Tooltip for a marked word, fetching its definition if not cached yet."""
        word = normalize_token(token)
        if not word or word not in self.marked:
            return None
        if word not in self.cache:
            self.loading_words.add(word)
            try:
                await self._lookup(word)
            finally:
                self.loading_words.discard(word)
        return tooltip(word, self.cache.get(word))

    def _lookup(self, word: str) -> asyncio.Task:
        """One in-flight lookup per word; the result always lands in the cache."""
        task = self._inflight.get(word)
        if task is None:
            task = asyncio.create_task(self._fetch_into_cache(word))
            self._inflight[word] = task
            task.add_done_callback(lambda t, w=word: self._forget(w, t))
        return task

    def _forget(self, word: str, task: asyncio.Task) -> None:
        if self._inflight.get(word) is task:
            del self._inflight[word]

    async def _fetch_into_cache(self, word: str) -> WordDefinition | None:
        result = await resolve_with_timeout(
            self.resolver, word, timeout=self.lookup_timeout_seconds
        )
        self.cache.put(word, result)
        return result

    async def settle(self) -> None:
        """Wait for background lookups started by toggles."""
        if self._bg_tasks:
            await asyncio.gather(*list(self._bg_tasks))

    # ── Views ─────────────────────────────────────────────────────────────

    def passage_view(self) -> list[dict]:
        tokens = []
        for tok in tokenize(self.passage or ""):
            if tok.isspace():
                tokens.append({"text": tok, "word": None, "marked": False})
                continue
            word = normalize_token(tok) or None
            tokens.append({"text": tok, "word": word, "marked": word in self.marked})
        return tokens

    def word_bank(self) -> list[str]:
        return list(self.marked.words())

    def snapshot(self) -> ReadingSnapshot:
        return ReadingSnapshot(
            passage=self.passage or "",
            marked_words=list(self.marked.words()),
            definition_cache=self.cache.to_dict(),
        )

    def view(self) -> dict:
        return {
            "session_id": self.id,
            "passage": self.passage,
            "loading": self.loading,
            "error": self.error,
            "tokens": self.passage_view(),
            "word_bank": self.word_bank(),
            "loading_words": sorted(self.loading_words),
        }
