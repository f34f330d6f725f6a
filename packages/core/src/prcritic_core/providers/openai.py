from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from prcritic_core.providers.base import BaseCompletionClient


class OpenAIClient(BaseCompletionClient):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'prcritic[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, model: str, prompt: str, schema: dict | None) -> str | None:
        kwargs = {}
        content = prompt
        if schema is not None:
            # JSON mode guarantees syntax; the schema itself is spelled out in the prompt.
            kwargs["response_format"] = {"type": "json_object"}
            content = self._with_schema_instructions(prompt, schema)

        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": content}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
            **kwargs,
        )
        return response.choices[0].message.content
