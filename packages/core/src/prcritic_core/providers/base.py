"""Base completion client implementing the Template Method pattern.

Every provider exposes the same contract to the pipeline:
    complete(model, prompt, schema) → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

There is no retry loop. A failed call is terminal for the operation that
made it; complete() wraps whatever the SDK raised in CompletionError so
callers only have one exception type to handle.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192


class CompletionError(RuntimeError):
    """The generative-AI endpoint could not produce a response."""


class BaseCompletionClient(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS
    TEMPERATURE: float = 0.2

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, model: str | None, prompt: str, schema: dict | None = None) -> str:
        """Send one prompt and return the raw text answer.

        When ``schema`` is given the provider is asked for JSON matching it;
        checking the answer against the schema is the caller's job.
        """
        model = model or self.MODEL
        logger.debug(
            "%s: requesting %s (%d prompt chars, structured=%s)",
            self.__class__.__name__,
            model,
            len(prompt),
            schema is not None,
        )
        try:
            text = self._call_api(model, prompt, schema)
        except Exception as e:
            logger.error("%s API call failed: %s", self.__class__.__name__, e)
            raise CompletionError(f"{self.__class__.__name__} request failed: {e}") from e
        return (text or "").strip()

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, model: str, prompt: str, schema: dict | None) -> str | None:
        """Make a single API call and return the raw text response.

        It should raise on failure — complete() turns that into CompletionError.
        """

    # ------------------------------------------------------------------ #
    # Shared helpers                                                       #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _with_schema_instructions(prompt: str, schema: dict) -> str:
        """Append the JSON contract for providers without native schema support."""
        return f"""{prompt}

### Output Format:
Respond with **only** a JSON object that validates against this JSON Schema:

{json.dumps(schema, indent=2)}

Do not return any text outside the JSON object."""
