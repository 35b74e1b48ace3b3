"""Client for the public Free Dictionary API."""
from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from sat_vocab.models import Meaning, WordDefinition

log = logging.getLogger("sat_vocab.dictionary")


class DictionaryUnavailable(Exception):
    """The lookup service could not be reached or answered with an error status."""


def parse_entry(entry: dict) -> WordDefinition | None:
    """Build a definition from the first entry of a dictionaryapi.dev response.

    Meanings without any definition text are dropped; an entry left with no
    meanings yields None.
    """
    phonetic = entry.get("phonetic") or next(
        (p["text"] for p in entry.get("phonetics", []) if p.get("text")), ""
    )
    meanings = []
    for m in entry.get("meanings", []):
        defs = tuple(d["definition"] for d in m.get("definitions", []) if d.get("definition"))
        if defs:
            meanings.append(Meaning(m.get("partOfSpeech", ""), defs))
    if not meanings:
        return None
    return WordDefinition(entry.get("word", ""), phonetic, tuple(meanings))


class DictionaryClient:
    def __init__(
        self,
        base_url: str = "https://api.dictionaryapi.dev/api/v2/entries/en",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def lookup(self, word: str) -> WordDefinition | None:
        """Return the first entry for *word*, or None when the API has no entry.

        Raises DictionaryUnavailable for transport failures and non-404 errors.
        """
        url = f"{self.base_url}/{quote(word, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            raise DictionaryUnavailable(f"lookup for {word!r} failed: {e}") from e

        if resp.status_code == 404:
            log.info("Dictionary has no entry for %r", word)
            return None
        if resp.status_code != 200:
            raise DictionaryUnavailable(f"lookup for {word!r} returned {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise DictionaryUnavailable(f"lookup for {word!r} returned invalid JSON") from e
        if not isinstance(data, list) or not data:
            return None
        return parse_entry(data[0])
