"""Image Fetcher - downloads report images for verification."""

import httpx

from app.core.repository_protocols import ImagePayload
from app.infrastructure.http_errors import upstream_errors

DEFAULT_MEDIA_TYPE = "image/jpeg"


class HttpImageFetcher:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, url: str) -> ImagePayload:
        async with upstream_errors("image_host"):
            response = await self.client.get(url, follow_redirects=True)
            response.raise_for_status()
        media_type = (
            response.headers.get("content-type", DEFAULT_MEDIA_TYPE)
            .split(";")[0].strip()
        )
        if not media_type.startswith("image/"):
            media_type = DEFAULT_MEDIA_TYPE
        return ImagePayload(data=response.content, media_type=media_type)
