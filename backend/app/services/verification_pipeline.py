"""VerificationPipeline - cache-checked, streamed image analysis for field reports.

Invariants:
    - Cache hit under verify:<report_id> -> provider invoked zero times
    - Fragments are appended in arrival order; nothing is committed until the
      stream completes
    - On completion: cache for one hour and persist verification_status in
      one commit
    - Any failure (fetch, provider, accumulation) -> fixed failure text,
      source=error, nothing cached, persisted status left untouched
    - Exactly one attempt per call; no automatic retry

Design Decisions:
    - Single-consumer accumulation of an async iterator; the pipeline does not
      cancel the stream and does not expose partial text
"""

import logging
from datetime import timedelta
from uuid import UUID

from app.core.domain_types import CacheNamespace, ResultSource, VERIFICATION_FAILED
from app.core.errors import DisasterHubError
from app.core.repository_protocols import (
    GenerativeTextProvider, ImageFetcher, ReportStatusWriter,
)
from app.schemas.report import VerificationResult
from app.services.ttl_cache import DEFAULT_TTL, TTLCache

logger = logging.getLogger(__name__)

VERIFY_PROMPT = (
    "Analyze this image for signs of manipulation or disaster context. "
    "Respond clearly if this appears real or fake and what disaster it matches."
)


class VerificationPipeline:
    """verify(image_url, report_id) -> VerificationResult."""

    def __init__(
        self,
        cache: TTLCache,
        text_provider: GenerativeTextProvider,
        image_fetcher: ImageFetcher,
        reports: ReportStatusWriter,
        ttl: timedelta = DEFAULT_TTL,
    ):
        self.cache = cache
        self.text_provider = text_provider
        self.image_fetcher = image_fetcher
        self.reports = reports
        self.ttl = ttl

    async def verify(self, image_url: str, report_id: UUID) -> VerificationResult:
        cached = await self.cache.get(CacheNamespace.VERIFY, report_id)
        if cached is not None:
            logger.info(
                "Verification served from cache",
                extra={"report_id": str(report_id), "source": "cache"},
            )
            return VerificationResult(source=ResultSource.CACHE, result=cached.value)

        try:
            text = await self._analyze(image_url)
            await self.cache.put(
                CacheNamespace.VERIFY, report_id, text, self.ttl, commit=False,
            )
            await self.reports.set_verification_status(report_id, text)
        except DisasterHubError as e:
            await self.cache.rollback()
            logger.error(
                "Image verification failed: %s", e.message,
                extra={"report_id": str(report_id), "error_code": e.code},
            )
            return _failed()
        except Exception as e:
            await self.cache.rollback()
            logger.error(
                "Image verification failed unexpectedly: %s", e,
                extra={"report_id": str(report_id)}, exc_info=True,
            )
            return _failed()

        logger.info(
            "Verification completed",
            extra={"report_id": str(report_id), "source": "live"},
        )
        return VerificationResult(source=ResultSource.LIVE, result=text)

    async def _analyze(self, image_url: str) -> str:
        """Fetch the image and accumulate the streamed analysis."""
        image = await self.image_fetcher.fetch(image_url)
        fragments: list[str] = []
        async for fragment in self.text_provider.generate_stream(VERIFY_PROMPT, image):
            fragments.append(fragment)
        return "".join(fragments)


def _failed() -> VerificationResult:
    return VerificationResult(source=ResultSource.ERROR, result=VERIFICATION_FAILED)
