"""HTTP Error Mapping - httpx failures -> UpstreamError for every HTTP adapter."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def upstream_errors(provider: str) -> AsyncIterator[None]:
    """Translate transport, status and body-decoding failures for provider."""
    try:
        yield
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        logger.warning(
            "%s returned HTTP %d", provider, status_code,
            extra={"provider": provider, "status_code": status_code},
        )
        raise UpstreamError(
            provider, f"HTTP {status_code}",
            "rate_limit" if status_code == 429 else "http_status",
        ) from e
    except httpx.TimeoutException as e:
        logger.warning("%s timed out", provider, extra={"provider": provider})
        raise UpstreamError(provider, "request timed out", "timeout") from e
    except httpx.HTTPError as e:
        logger.warning(
            "%s transport error: %s", provider, e, extra={"provider": provider},
        )
        raise UpstreamError(provider, str(e), "connection_error") from e
    except (ValueError, KeyError, TypeError) as e:
        raise UpstreamError(provider, f"unexpected response: {e}", "bad_response") from e
