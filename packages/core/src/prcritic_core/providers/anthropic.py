from __future__ import annotations

from prcritic_core.providers.base import BaseCompletionClient


class AnthropicClient(BaseCompletionClient):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'prcritic[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, model: str, prompt: str, schema: dict | None) -> str | None:
        from anthropic.types import TextBlock

        # No native JSON-schema mode here, so the contract travels in the prompt.
        content = self._with_schema_instructions(prompt, schema) if schema is not None else prompt
        response = self.client.messages.create(
            model=model,
            messages=[{"role": "user", "content": content}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return "".join(block.text for block in response.content if isinstance(block, TextBlock))
