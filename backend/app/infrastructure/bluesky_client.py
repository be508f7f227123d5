"""Bluesky Client - XRPC session login and hashtag post search.

Invariants:
    - login() must succeed before search(); search without a session raises
      UpstreamError(error_type="no_session")
    - A rejected or expired access token drops the session and raises
      UpstreamError(error_type="expired")
    - Posts map to SocialPost(author=handle, text=record.text, uri, indexed_at)
    - Any other failure -> UpstreamError(provider="bluesky")
"""

import logging

import httpx

from app.core.errors import UpstreamError
from app.infrastructure.http_errors import upstream_errors
from app.schemas.social import SocialPost

logger = logging.getLogger(__name__)

PROVIDER = "bluesky"

# XRPC error names returned with 400/401 when the access token is unusable.
_SESSION_ERRORS = frozenset({"ExpiredToken", "InvalidToken", "AuthenticationRequired"})


class BlueskyClient:
    """SocialSearchProvider over the public AT Protocol XRPC endpoints."""

    def __init__(
        self, client: httpx.AsyncClient, service: str, identifier: str, password: str,
    ):
        self.client = client
        self.service = service.rstrip("/")
        self.identifier = identifier
        self.password = password
        self._access_jwt: str | None = None

    async def login(self) -> None:
        async with upstream_errors(PROVIDER):
            response = await self.client.post(
                f"{self.service}/xrpc/com.atproto.server.createSession",
                json={"identifier": self.identifier, "password": self.password},
            )
            response.raise_for_status()
            self._access_jwt = response.json()["accessJwt"]
        logger.info("Bluesky session created", extra={"provider": PROVIDER})

    async def search(self, tag: str, limit: int) -> list[SocialPost]:
        if self._access_jwt is None:
            raise UpstreamError(PROVIDER, "search before login", "no_session")
        async with upstream_errors(PROVIDER):
            response = await self.client.get(
                f"{self.service}/xrpc/app.bsky.feed.searchPosts",
                params={"q": tag, "limit": limit},
                headers={"Authorization": f"Bearer {self._access_jwt}"},
            )
        if _session_rejected(response):
            self._access_jwt = None
            logger.warning(
                "Bluesky session rejected",
                extra={"provider": PROVIDER, "status_code": response.status_code},
            )
            raise UpstreamError(PROVIDER, "session rejected", "expired")
        async with upstream_errors(PROVIDER):
            response.raise_for_status()
            return [_to_post(p) for p in response.json().get("posts", [])]


def _session_rejected(response: httpx.Response) -> bool:
    if response.status_code == 401:
        return True
    if response.status_code != 400:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("error") in _SESSION_ERRORS


def _to_post(raw: dict) -> SocialPost:
    return SocialPost(
        author=raw["author"]["handle"],
        text=(raw.get("record") or {}).get("text", ""),
        uri=raw["uri"],
        indexed_at=raw.get("indexedAt"),
    )
