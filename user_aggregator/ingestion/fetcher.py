"""
Concurrent source fetching.

One task per source URL runs under asyncio.gather. Each task returns its
own SourceResult, so no collection is shared between tasks; results are
merged in declaration order once every task has settled.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from user_aggregator.config.settings import get_settings
from user_aggregator.ingestion.http_client import (
    HTTPClient,
    HTTPClientError,
    InvalidPayloadError,
)
from user_aggregator.ingestion.schemas import SourceResult

logger = structlog.get_logger(__name__)


@dataclass
class FetchStats:
    """Statistics for a fetch run."""

    succeeded: int = 0
    failed: int = 0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_time


class UserFetcher:
    """
    Fetches raw JSON payloads from several sources in parallel.

    A failing source produces a SourceResult carrying the error and never
    cancels or delays its siblings beyond their own network time.

    Usage:
        fetcher = UserFetcher()
        results = await fetcher.fetch_all(["https://a/users", "https://b/users"])
        payloads = [r.payload for r in results if r.ok]
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
    ):
        """
        Initialize fetcher.

        Args:
            timeout: Per-request timeout in seconds (defaults to settings)
            user_agent: User-Agent header (defaults to settings)
        """
        settings = get_settings()
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._user_agent = user_agent or settings.user_agent
        self._stats = FetchStats()

    async def fetch_all(self, urls: Sequence[str]) -> list[SourceResult]:
        """
        Fetch every source concurrently and wait for all of them.

        Args:
            urls: Source URLs in declaration order

        Returns:
            One SourceResult per URL, in the same order as urls
        """
        self._stats = FetchStats()

        if not urls:
            logger.info("No sources configured, nothing to fetch")
            return []

        logger.info("Fetching sources", sources=len(urls))

        async with HTTPClient(
            timeout=self._timeout,
            user_agent=self._user_agent,
        ) as client:
            results = await asyncio.gather(
                *(self._fetch_source(client, url) for url in urls)
            )

        for result in results:
            if result.ok:
                self._stats.succeeded += 1
            else:
                self._stats.failed += 1

        logger.info(
            "Fetch completed",
            succeeded=self._stats.succeeded,
            failed=self._stats.failed,
            elapsed_seconds=round(self._stats.elapsed_seconds, 2),
        )
        return list(results)

    async def _fetch_source(self, client: HTTPClient, url: str) -> SourceResult:
        """Fetch a single source, converting every failure into a SourceResult."""
        try:
            payload = await client.get_json(url)
        except InvalidPayloadError as e:
            logger.warning(
                "Skipping source",
                source_url=url,
                reason=f"unusable payload: {e}",
            )
            return SourceResult(url=url, error=str(e))
        except HTTPClientError as e:
            logger.warning("Skipping source", source_url=url, reason=str(e))
            return SourceResult(url=url, error=str(e))
        except Exception as e:
            # One broken source must never take down the gather
            logger.error(
                "Unexpected error fetching source",
                source_url=url,
                reason=f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            return SourceResult(url=url, error=f"{type(e).__name__}: {e}")

        logger.debug("Fetched source", source_url=url)
        return SourceResult(url=url, payload=payload)

    @property
    def stats(self) -> FetchStats:
        """Get statistics of the most recent run."""
        return self._stats
