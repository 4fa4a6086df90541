"""
Gemini generateContent adapter.
Requests JSON output and returns the first candidate's text untouched.
"""
import logging
from typing import Optional

import httpx

from ..errors import ErrorKind
from .base import GenerationResult, TextGenerator

logger = logging.getLogger(__name__)

RESPONSE_PREVIEW_LIMIT = 500


class GeminiClient(TextGenerator):
    """
    Calls `POST {base_url}/{model}:generateContent?key=...`.

    Requires GEMINI_API_KEY. Never retries; every failure is returned as a
    GenerationResult with a readable reason.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def generate(self, prompt: str, model_name: str) -> GenerationResult:
        if not self.api_key:
            return GenerationResult(
                success=False,
                error="GEMINI_API_KEY is not configured.",
                error_kind=ErrorKind.CONFIGURATION_ERROR,
            )

        url = f"{self.base_url}/{model_name}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

        try:
            if self._client is not None:
                response = self._client.post(url, params={"key": self.api_key}, json=payload)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Exception during AI API call: {type(e).__name__}")
            return GenerationResult(
                success=False,
                error=f"Exception during AI API call: {e}",
                error_kind=ErrorKind.TRANSPORT_ERROR,
            )

        if response.status_code != 200:
            body = response.text[:RESPONSE_PREVIEW_LIMIT]
            logger.error(f"❌ AI API request failed with status {response.status_code}")
            return GenerationResult(
                success=False,
                error=f"AI API request failed with status {response.status_code}. Response: {body}",
                error_kind=ErrorKind.TRANSPORT_ERROR,
            )

        try:
            data = response.json()
        except ValueError:
            return GenerationResult(
                success=False,
                error="AI API returned a response that is not valid JSON.",
                error_kind=ErrorKind.TRANSPORT_ERROR,
            )

        text = _first_candidate_text(data)
        if not text:
            return GenerationResult(
                success=False,
                error="AI content generation failed: No valid content received.",
                error_kind=ErrorKind.TRANSPORT_ERROR,
            )
        return GenerationResult(success=True, text=text)


def _first_candidate_text(data) -> Optional[str]:
    """candidates[0].content.parts[0].text, or None if any level is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
