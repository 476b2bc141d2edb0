from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence, Union

import httpx
from pydantic import BaseModel, Field

from config.settings import Settings, get_settings
from relay.errors import ConfigurationError, TransportError, UpstreamAPIError


logger = logging.getLogger(__name__)

NO_REPLY_PLACEHOLDER = "No reply from the model."
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


class TextPart(BaseModel):
    text: str

    def to_payload(self) -> Dict[str, Any]:
        return {"text": self.text}


class InlineImagePart(BaseModel):
    data: str = Field(..., description="Base64-encoded image bytes")
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE

    def to_payload(self) -> Dict[str, Any]:
        return {"inline_data": {"mime_type": self.mime_type, "data": self.data}}


PromptPart = Union[TextPart, InlineImagePart]


def build_request_body(parts: Sequence[PromptPart]) -> Dict[str, Any]:
    return {"contents": [{"parts": [part.to_payload() for part in parts]}]}


def _first_candidate_text(data: Dict[str, Any]) -> Optional[str]:
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


def parse_reply(data: Any) -> str:
    """Turn a decoded generateContent response into reply text.

    An ``error`` object in the body wins over everything else. A body without
    candidate text is still a successful call and yields the placeholder.
    """
    if not isinstance(data, dict):
        raise TransportError("Unexpected response from the model API.")

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise UpstreamAPIError(message or None)

    return _first_candidate_text(data) or NO_REPLY_PLACEHOLDER


class GeminiClient:
    """Single-shot client for the generateContent endpoint.

    One POST per ``complete`` call; no retries and no streaming.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings if settings is not None else get_settings()
        self._http = http_client or httpx.AsyncClient(
            timeout=self._settings.gemini_timeout_seconds
        )

    async def complete(self, parts: Sequence[PromptPart]) -> str:
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise ConfigurationError()

        body = build_request_body(parts)
        try:
            response = await self._http.post(
                self._settings.gemini_api_url,
                params={"key": api_key},
                json=body,
            )
            data = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            logger.error("Model API call failed: %s", exc)
            raise TransportError() from exc

        try:
            reply = parse_reply(data)
        except UpstreamAPIError as exc:
            logger.error("Model API error (status=%s): %s", response.status_code, exc.message)
            raise

        logger.info("Model replied with %s chars", len(reply))
        return reply

    async def aclose(self) -> None:
        await self._http.aclose()
