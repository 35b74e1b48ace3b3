from __future__ import annotations

import logging
import time

import httpx

from sat_vocab.providers.base import LLMProvider

log = logging.getLogger("sat_vocab.llm")


class OllamaProvider(LLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        system: str | None = None,
    ) -> str:
        log.info("── PROMPT (%s) ──\n%s", self.model, prompt)
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }
        if system:
            body["system"] = system

        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
            resp = await client.post(f"{self.base_url}/api/generate", json=body)
            resp.raise_for_status()
            data = resp.json()
        elapsed = time.monotonic() - t0
        response = data["response"]
        tokens = data.get("eval_count", "?")
        log.info("── RESPONSE (%.1fs, %s tokens) ──\n%s", elapsed, tokens, response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"
