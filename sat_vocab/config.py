from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from sat_vocab.models import DisplayBudget

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "ollama",
    "llm_model": "llama3.1:8b",
    "ollama_url": "http://localhost:11434",
    "openai_base_url": "",
    "dictionary_url": "https://api.dictionaryapi.dev/api/v2/entries/en",
    "db_path": "progress.db",
    "lookup_timeout_seconds": 10.0,
    "passage_timeout_seconds": 60.0,
    "definition_cache_ttl_seconds": 3600,
    "passage_history_ttl_seconds": 86400,
    "session_ttl_seconds": 86400,
    "card_width_px": 768,
    "char_width_px": 8,
    "max_lines": 8,
    "swipe_threshold_px": 80,
    "exit_animation_seconds": 0.3,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    openai_base_url: str = DEFAULTS["openai_base_url"]
    dictionary_url: str = DEFAULTS["dictionary_url"]
    db_path: str = DEFAULTS["db_path"]
    lookup_timeout_seconds: float = DEFAULTS["lookup_timeout_seconds"]
    passage_timeout_seconds: float = DEFAULTS["passage_timeout_seconds"]
    definition_cache_ttl_seconds: int = DEFAULTS["definition_cache_ttl_seconds"]
    passage_history_ttl_seconds: int = DEFAULTS["passage_history_ttl_seconds"]
    session_ttl_seconds: int = DEFAULTS["session_ttl_seconds"]
    card_width_px: int = DEFAULTS["card_width_px"]
    char_width_px: int = DEFAULTS["char_width_px"]
    max_lines: int = DEFAULTS["max_lines"]
    swipe_threshold_px: int = DEFAULTS["swipe_threshold_px"]
    exit_animation_seconds: float = DEFAULTS["exit_animation_seconds"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    @property
    def display_budget(self) -> DisplayBudget:
        return DisplayBudget(
            card_width_px=self.card_width_px,
            char_width_px=self.char_width_px,
            max_lines=self.max_lines,
        )

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "openai_base_url": self.openai_base_url,
            "dictionary_url": self.dictionary_url,
            "db_path": self.db_path,
            "lookup_timeout_seconds": self.lookup_timeout_seconds,
            "passage_timeout_seconds": self.passage_timeout_seconds,
            "definition_cache_ttl_seconds": self.definition_cache_ttl_seconds,
            "passage_history_ttl_seconds": self.passage_history_ttl_seconds,
            "session_ttl_seconds": self.session_ttl_seconds,
            "card_width_px": self.card_width_px,
            "char_width_px": self.char_width_px,
            "max_lines": self.max_lines,
            "swipe_threshold_px": self.swipe_threshold_px,
            "exit_animation_seconds": self.exit_animation_seconds,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
