from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from sat_vocab.providers.base import LLMProvider

if TYPE_CHECKING:
    from sat_vocab.config import Settings

log = logging.getLogger("sat_vocab.llm")


def build_llm(s: Settings) -> LLMProvider | None:
    """Build the configured LLM provider, or None when it is switched off or has no key."""
    if s.llm_provider == "ollama":
        from sat_vocab.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    elif s.llm_provider == "openai":
        if not os.environ.get("OPENAI_API_KEY"):
            log.warning("OPENAI_API_KEY is not set; AI definitions and passages are disabled")
            return None
        from sat_vocab.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=s.llm_model, base_url=s.openai_base_url or None)
    elif s.llm_provider == "anthropic":
        if not os.environ.get("ANTHROPIC_API_KEY"):
            log.warning("ANTHROPIC_API_KEY is not set; AI definitions and passages are disabled")
            return None
        from sat_vocab.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=s.llm_model)
    elif s.llm_provider == "none":
        return None
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")
