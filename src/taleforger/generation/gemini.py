"""Gemini REST client for single text generation attempts.

The client performs exactly one ``generateContent`` request per call and
never retries on its own; retries belong to ``generate_with_retry``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .retry import GenerationError, GenerationRequest

logger = logging.getLogger("taleforger.generation")


class GenerationAPIError(GenerationError):
    """Raised when the Gemini API rejects a request or cannot be reached.

    Contains the HTTP status code (when there is one) and the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


def extract_text(payload: dict[str, Any]) -> str | None:
    """Return the text of the first part of the first candidate, if any."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not candidates:
        return None
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    if not parts:
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


class GeminiClient:
    """Async client for the Gemini ``generateContent`` endpoint.

    Built once at application start and handed to the story generator.

    Args:
        api_key: Gemini API key
        model: Model name, e.g. ``gemini-2.5-flash``
        base_url: API root including version
        timeout: Per-request HTTP timeout in seconds
        transport: Optional httpx transport (used by tests)

    Example:
        ```python
        async with GeminiClient(api_key="...") as client:
            text = await client.generate(request)
        ```
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GeminiClient:
        await self._get_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": request.user_prompt}]}],
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_output_tokens,
            },
        }

    async def generate(self, request: GenerationRequest) -> str | None:
        """Perform one generation attempt.

        Args:
            request: Prompts and generation parameters

        Returns:
            Generated text, or None when the response carried no text

        Raises:
            GenerationAPIError: On transport failures and error responses
        """
        client = await self._get_client()
        path = f"/models/{self.model}:generateContent"

        try:
            response = await client.post(path, json=self.build_payload(request))
        except httpx.HTTPError as e:
            raise GenerationAPIError(f"Request to Gemini failed: {e}") from e

        if response.status_code >= 400:
            error_body: Any = response.text
            try:
                error_body = response.json()
            except json.JSONDecodeError:
                pass

            message = f"Gemini API error {response.status_code}"
            if isinstance(error_body, dict):
                detail = (error_body.get("error") or {}).get("message")
                if detail:
                    message = f"{message}: {detail}"
            raise GenerationAPIError(
                message,
                status_code=response.status_code,
                details={"response": error_body},
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise GenerationAPIError("Gemini API returned malformed JSON") from e

        usage = payload.get("usageMetadata") if isinstance(payload, dict) else None
        if usage:
            logger.debug(
                f"Gemini usage - prompt: {usage.get('promptTokenCount', 0)}, "
                f"completion: {usage.get('candidatesTokenCount', 0)}, "
                f"total: {usage.get('totalTokenCount', 0)}"
            )
        return extract_text(payload)
