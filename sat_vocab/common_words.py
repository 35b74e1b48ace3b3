"""Fixed definitions for function words the open dictionary handles poorly."""
from __future__ import annotations

from sat_vocab.models import Meaning, WordDefinition


def _entry(word: str, phonetic: str, pos: str, definition: str) -> WordDefinition:
    return WordDefinition(word, phonetic, (Meaning(pos, (definition,)),))


COMMON_WORDS: dict[str, WordDefinition] = {
    w.word: w
    for w in [
        _entry("a", "/ə/", "article",
               "Used before singular nouns to indicate one example of something"),
        _entry("an", "/ən/", "article",
               "Used before words beginning with a vowel sound to indicate one example"),
        _entry("the", "/ðə/", "article",
               "Used before nouns to indicate a specific person, place, or thing"),
        _entry("is", "/ɪz/", "verb", "Third person singular present tense of 'be'"),
        _entry("are", "/ɑr/", "verb",
               "Second person singular and plural present tense of 'be'"),
        _entry("was", "/wəz/", "verb", "First and third person singular past tense of 'be'"),
        _entry("were", "/wər/", "verb",
               "Second person singular and plural past tense of 'be'"),
        _entry("be", "/bi/", "verb", "To exist or occur; to have a specific state or quality"),
        _entry("been", "/bɪn/", "verb", "Past participle of 'be'"),
        _entry("being", "/ˈbiɪŋ/", "verb", "Present participle of 'be'"),
    ]
}
