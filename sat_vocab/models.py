from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Meaning:
    part_of_speech: str
    definitions: tuple[str, ...]

    @property
    def primary(self) -> str:
        return self.definitions[0] if self.definitions else ""


@dataclass(frozen=True)
class WordDefinition:
    word: str
    phonetic: str
    meanings: tuple[Meaning, ...]

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "phonetic": self.phonetic,
            "meanings": [
                {"partOfSpeech": m.part_of_speech, "definitions": list(m.definitions)}
                for m in self.meanings
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> WordDefinition:
        return cls(
            word=data["word"],
            phonetic=data.get("phonetic") or "",
            meanings=tuple(
                Meaning(m["partOfSpeech"], tuple(m["definitions"]))
                for m in data.get("meanings", [])
            ),
        )


@dataclass
class DrillCursor:
    index: int = 0
    revealed: bool = False


class DrillOutcome(str, Enum):
    KNOWN = "known"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DisplayBudget:
    """Approximate capacity of the definition face of a drill card."""

    card_width_px: int = 768
    char_width_px: int = 8
    max_lines: int = 8

    @property
    def chars_per_line(self) -> int:
        return max(1, self.card_width_px // self.char_width_px)

    @property
    def max_chars(self) -> int:
        return self.chars_per_line * self.max_lines

    def lines_for(self, length: int) -> int:
        return math.ceil(length / self.chars_per_line)


@dataclass
class ReadingSnapshot:
    passage: str
    marked_words: list[str] = field(default_factory=list)
    definition_cache: dict[str, dict | None] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "passage": self.passage,
            "marked_words": list(self.marked_words),
            "definition_cache": dict(self.definition_cache),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ReadingSnapshot:
        return cls(
            passage=data["passage"],
            marked_words=list(data.get("marked_words", [])),
            definition_cache=dict(data.get("definition_cache", {})),
        )
