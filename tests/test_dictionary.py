"""Tests for the Free Dictionary API client."""
from __future__ import annotations

import httpx
import pytest

from sat_vocab.dictionary import DictionaryClient, DictionaryUnavailable, parse_entry

ENTRY = {
    "word": "ubiquitous",
    "phonetics": [{"audio": ""}, {"text": "/juːˈbɪkwɪtəs/"}],
    "meanings": [
        {
            "partOfSpeech": "adjective",
            "definitions": [
                {"definition": "Being everywhere at once: omnipresent."},
                {"definition": "Appearing to be everywhere at once."},
            ],
        },
        {"partOfSpeech": "noun", "definitions": []},
    ],
}


def _client(handler) -> DictionaryClient:
    return DictionaryClient("https://dict.test/entries/en", transport=httpx.MockTransport(handler))


class TestParseEntry:
    def test_phonetic_from_phonetics_list(self):
        d = parse_entry(ENTRY)
        assert d.word == "ubiquitous"
        assert d.phonetic == "/juːˈbɪkwɪtəs/"

    def test_top_level_phonetic_preferred(self):
        d = parse_entry({**ENTRY, "phonetic": "/top/"})
        assert d.phonetic == "/top/"

    def test_empty_meanings_dropped(self):
        d = parse_entry(ENTRY)
        assert [m.part_of_speech for m in d.meanings] == ["adjective"]
        assert len(d.meanings[0].definitions) == 2

    def test_no_meanings(self):
        assert parse_entry({"word": "x", "meanings": []}) is None


class TestDictionaryClient:
    @pytest.mark.asyncio
    async def test_found(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=[ENTRY, {"word": "ignored"}])

        d = await _client(handler).lookup("ubiquitous")
        assert d.meanings[0].primary == "Being everywhere at once: omnipresent."
        assert seen == ["/entries/en/ubiquitous"]

    @pytest.mark.asyncio
    async def test_word_is_quoted(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path)
            return httpx.Response(404, json={"title": "No Definitions Found"})

        await _client(handler).lookup("a/b")
        assert seen == [b"/entries/en/a%2Fb"]

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = _client(lambda r: httpx.Response(404, json={"title": "No Definitions Found"}))
        assert await client.lookup("xyzzy123") is None

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = _client(lambda r: httpx.Response(503))
        with pytest.raises(DictionaryUnavailable):
            await client.lookup("ubiquitous")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DictionaryUnavailable):
            await _client(handler).lookup("ubiquitous")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = _client(lambda r: httpx.Response(200, content=b"<html>"))
        with pytest.raises(DictionaryUnavailable):
            await client.lookup("ubiquitous")

    @pytest.mark.asyncio
    async def test_empty_list(self):
        client = _client(lambda r: httpx.Response(200, json=[]))
        assert await client.lookup("ubiquitous") is None
