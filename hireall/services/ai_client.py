"""
AI Client

The provider (DeepSeek by default) speaks the OpenAI chat completions API,
so we use the openai library with a custom base_url.

Every call goes through the ``ai`` circuit breaker: after 3 failures the
circuit opens for 60s and callers get a 503 (or their template fallback).

AI is used ONLY for cover letter drafts, resume drafts and CV analysis.
Results are stored in MongoDB so the same request is never re-sent.
"""

import json
import logging
import re
from typing import Optional

from openai import OpenAI, OpenAIError

from hireall.core.circuit_breaker import AI_SERVICE, call_with_circuit_breaker
from hireall.core.config import Settings, get_settings
from hireall.core.errors import ExternalServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class AIClient:
    """
    Thin wrapper around the OpenAI client with JSON helpers.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.client = OpenAI(
            api_key=settings.ai_api_key,
            base_url=settings.ai_base_url,
        )
        self.model = settings.ai_model

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1000,
                  temperature: float = 0.1) -> str:
        """
        Internal method to call the chat completions API.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        content = response.choices[0].message.content
        if not content:
            raise ExternalServiceError("AI provider returned an empty response")
        return content

    def _extract_json(self, text: str) -> dict:
        """
        Extract JSON from API response.
        Handles cases where model wraps JSON in markdown code blocks or
        surrounds it with prose.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

        try:
            return json.loads(text)
        except ValueError:
            match = _JSON_OBJECT.search(text)
            if not match:
                raise
            return json.loads(match.group(0))

    def complete(self, system_prompt: str, user_content: str, max_tokens: int = 1000,
                 temperature: float = 0.1) -> str:
        """Call the model through the circuit breaker.

        Raises CircuitOpenError (503) while the circuit is open and
        ExternalServiceError (502) when the provider call fails.
        """
        try:
            return call_with_circuit_breaker(
                AI_SERVICE,
                lambda: self._call_api(system_prompt, user_content, max_tokens, temperature),
            )
        except OpenAIError as e:
            logger.error("AI provider call failed: %s", e)
            raise ExternalServiceError("AI provider request failed")

    def complete_json(self, system_prompt: str, user_content: str, max_tokens: int = 1500) -> dict:
        """Like ``complete`` but parses the reply; raises ValueError on bad JSON."""
        return self._extract_json(self.complete(system_prompt, user_content, max_tokens))

    def test_connection(self) -> bool:
        """Test if the AI provider is reachable"""
        try:
            response = self._call_api(
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10
            )
            return "OK" in response.upper()
        except (OpenAIError, ExternalServiceError) as e:
            logger.warning("AI connection failed: %s", e)
            return False


# Singleton instance
_ai_client: Optional[AIClient] = None


def get_ai_client() -> AIClient:
    """Get or create the AI client (singleton pattern).

    Raises ServiceUnavailableError when no API key is configured.
    """
    global _ai_client
    if not get_settings().ai_enabled:
        raise ServiceUnavailableError("AI service is not configured")
    if _ai_client is None:
        _ai_client = AIClient()
    return _ai_client
