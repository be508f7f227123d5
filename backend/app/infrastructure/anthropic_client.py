"""Anthropic Text Provider - wraps AsyncAnthropic with error mapping, no retries.

Invariants:
    - Exactly one API attempt per call (client built with max_retries=0)
    - All SDK failures mapped to UpstreamError(provider="anthropic")
    - generate_stream yields text fragments in arrival order and maps errors
      raised both at stream setup and mid-stream

Design Decisions:
    - Wrapper over raw client: services depend on GenerativeTextProvider only
    - Images are sent inline as base64 blocks; the provider never fetches URLs
"""

import base64
import logging
from collections.abc import AsyncIterator

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
    InternalServerError,
)

from app.core.errors import UpstreamError
from app.core.repository_protocols import ImagePayload

logger = logging.getLogger(__name__)

PROVIDER = "anthropic"

SYSTEM_PROMPT = (
    "You are a disaster response analyst. You detect whether images are real "
    "or manipulated, identify disaster types if present, and answer location "
    "and relief questions concisely."
)

# OverloadedError (HTTP 529) is not re-exported by the SDK; detect by status.
_OVERLOADED_STATUS = 529


def _is_overloaded(e: APIError) -> bool:
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


def _map_error(e: Exception) -> UpstreamError:
    """SDK exception -> UpstreamError with a stable error_type."""
    if isinstance(e, RateLimitError):
        return UpstreamError(PROVIDER, "Rate limit exceeded", "rate_limit")
    if isinstance(e, APITimeoutError):
        return UpstreamError(PROVIDER, "API timeout", "timeout")
    if isinstance(e, (APIConnectionError, InternalServerError)):
        return UpstreamError(PROVIDER, str(e), "connection_error")
    if isinstance(e, APIError) and _is_overloaded(e):
        return UpstreamError(PROVIDER, "Anthropic API overloaded (529)", "overloaded")
    if isinstance(e, APIError):
        return UpstreamError(PROVIDER, str(e), "client_error")
    return UpstreamError(PROVIDER, str(e), "unknown")


class AnthropicTextProvider:
    """GenerativeTextProvider backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        timeout_seconds: int = 120,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise _map_error(e) from e
        self._log_success(response)
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

    async def generate_stream(
        self, prompt: str, image: ImagePayload,
    ) -> AsyncIterator[str]:
        """Stream an analysis of image; yields text deltas."""
        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": base64.b64encode(image.data).decode("ascii"),
                },
            },
            {"type": "text", "text": prompt},
        ]
        try:
            async with self.client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": content}],
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except APIError as e:
            raise _map_error(e) from e

    def _log_success(self, response) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        logger.info(
            "Anthropic API success",
            extra={
                "provider": PROVIDER,
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
            },
        )
