from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from ordersync.core.config import (
    EXTRACTION_TIMEOUT_SECONDS,
    GEMINI_API_BASE,
    GEMINI_API_KEY,
    GEMINI_MODEL,
)

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Extract the customer name, phone, and address from this text. "
    'Format it cleanly as a structured note. Text: "{text}"'
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "phone": {"type": "STRING"},
        "address": {"type": "STRING"},
        "cleanNote": {"type": "STRING", "description": "A summary of the order details"},
    },
    "required": ["name", "phone", "address", "cleanNote"],
}


class GeminiExtractor:
    """Calls the Gemini generateContent REST endpoint and asks for a JSON answer."""

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        api_base: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else GEMINI_API_KEY
        self.model = model or GEMINI_MODEL
        self.timeout = timeout if timeout is not None else EXTRACTION_TIMEOUT_SECONDS
        self.api_base = (api_base or GEMINI_API_BASE).rstrip("/")
        self._client = client

    def _url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def _request_body(self, raw_text: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(text=raw_text)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def _post(self, raw_text: str) -> httpx.Response:
        params = {"key": self.api_key}
        body = self._request_body(raw_text)
        if self._client is not None:
            return self._client.post(self._url(), params=params, json=body, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self._url(), params=params, json=body)

    def parse(self, raw_text: str) -> Optional[dict[str, Any]]:
        if not self.api_key:
            logger.warning("Gemini extraction skipped: GEMINI_API_KEY not configured")
            return None
        try:
            response = self._post(raw_text)
        except httpx.HTTPError as exc:
            logger.warning("Gemini extraction request failed: %s", exc)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Gemini extraction returned HTTP %s",
                response.status_code,
                extra={"status_code": response.status_code},
            )
            return None

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
            parsed = json.loads(text or "{}")
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Gemini extraction returned an unreadable body: %s", exc)
            return None

        if not isinstance(parsed, dict):
            return None
        return parsed
