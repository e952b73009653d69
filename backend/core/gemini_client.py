"""
Google Generative Language (Gemini) API client wrapper.
"""
import logging
import httpx
from typing import Optional, Dict, Any
from core.config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_BASE_URL,
    LLM_TEMPERATURE,
    LLM_MAX_TOKENS,
    LLM_TIMEOUT_SECONDS,
)
from core.errors import GenerationError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Client for the generateContent endpoint. Never retries on its own."""

    def __init__(
        self,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = LLM_TIMEOUT_SECONDS,
        temperature: float = LLM_TEMPERATURE,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.client = client or httpx.Client(timeout=timeout)

    def generate(self, prompt: str, max_output_tokens: int = LLM_MAX_TOKENS) -> str:
        """Send a prompt and return the generated text."""
        if not self.api_key:
            raise GenerationError("GEMINI_API_KEY is not configured", reason="missing_api_key")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }

        try:
            response = self.client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            raise GenerationError(f"Gemini API error: {e}", reason="transport") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error(f"Gemini API returned {response.status_code}: {message}")
            raise GenerationError(
                f"Gemini API error: {message}",
                status_code=response.status_code,
                reason="status",
            )

        return self._extract_text(response.json())

    def __call__(self, prompt: str, max_output_tokens: int = LLM_MAX_TOKENS) -> str:
        return self.generate(prompt, max_output_tokens)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message", "Unknown error")
        except ValueError:
            return response.text or "Unknown error"

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """Pull the first candidate's text, raising on blocks, truncation and empty output."""
        block_reason = data.get("promptFeedback", {}).get("blockReason")
        if block_reason:
            raise GenerationError(f"Prompt blocked by safety filters: {block_reason}", reason="safety")

        candidates = data.get("candidates") or []
        if not candidates:
            raise GenerationError("No output received from Gemini", reason="empty")

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason == "SAFETY":
            raise GenerationError("Response blocked by safety filters", reason="safety")

        parts = candidate.get("content", {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts).strip()

        if not text:
            if finish_reason == "MAX_TOKENS":
                raise GenerationError("Response truncated before any text was produced", reason="truncated")
            raise GenerationError("No output received from Gemini", reason="empty")

        if finish_reason == "MAX_TOKENS":
            logger.warning("Gemini response hit the output token limit; text may be truncated")

        return text


# Global Gemini client instance
gemini = GeminiClient()
