from __future__ import annotations

from prcritic_core.providers.base import BaseCompletionClient


class GeminiClient(BaseCompletionClient):
    MODEL = "gemini-2.5-pro"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str):
        try:
            from google import genai
        except ImportError:
            raise ImportError(
                "The 'google-genai' package is required for this provider. "
                "Install it with: pip install google-genai"
            )
        self.client = genai.Client(api_key=api_key)

    def _call_api(self, model: str, prompt: str, schema: dict | None) -> str | None:
        # Imported inside the method because google-genai is optional;
        # __init__ already validated it is installed before we reach here.
        from google.genai import types

        if schema is not None:
            # Gemini enforces the schema server-side when asked for JSON.
            config = types.GenerateContentConfig(
                temperature=self.TEMPERATURE,
                response_mime_type="application/json",
                response_schema=schema,
            )
        else:
            config = types.GenerateContentConfig(temperature=self.TEMPERATURE)

        response = self.client.models.generate_content(model=model, contents=prompt, config=config)
        return response.text
