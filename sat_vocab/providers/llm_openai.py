from __future__ import annotations

import os

from sat_vocab.providers.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions; ``base_url`` points it at compatible hosts such as Groq."""

    def __init__(self, model: str = "gpt-4o-mini", base_url: str | None = None):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
            base_url=base_url or None,
        )
        self.model = model

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        system: str | None = None,
    ) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=messages,
        )
        return resp.choices[0].message.content or ""

    def name(self) -> str:
        return f"openai/{self.model}"
