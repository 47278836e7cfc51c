"""
Aggregation service - fetch, normalize and write users from all sources.

Runs a single pass:
1. Fetch every source concurrently and wait for all of them
2. Normalize each successful payload, in source declaration order
3. Write the merged list to the requested file
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from user_aggregator.config.settings import get_settings
from user_aggregator.ingestion.fetcher import UserFetcher
from user_aggregator.ingestion.normalizer import UserNormalizer
from user_aggregator.ingestion.schemas import OutputFormat, User
from user_aggregator.observability.logging import bind_context, clear_context
from user_aggregator.output.writer import write_users

logger = structlog.get_logger(__name__)


@dataclass
class SourceSummary:
    """Per-source outcome of a run."""

    url: str
    accepted: int = 0
    skipped: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AggregationResult:
    """Outcome of one aggregation run."""

    users: list[User] = field(default_factory=list)
    sources: list[SourceSummary] = field(default_factory=list)
    output_path: Path | None = None

    @property
    def total_users(self) -> int:
        return len(self.users)

    @property
    def skipped(self) -> int:
        return sum(source.skipped for source in self.sources)

    @property
    def failed_sources(self) -> list[str]:
        return [source.url for source in self.sources if not source.ok]


class AggregationService:
    """
    Orchestrates one fetch-normalize-write pass over the configured sources.

    Usage:
        service = AggregationService()
        result = await service.run("/tmp/out", OutputFormat.CSV)
        print(result.total_users, result.output_path)
    """

    def __init__(
        self,
        source_urls: Sequence[str] | None = None,
        fetcher: UserFetcher | None = None,
        normalizer: UserNormalizer | None = None,
    ):
        """
        Initialize aggregation service.

        Args:
            source_urls: Sources to fetch (or use configured sources)
            fetcher: Fetcher instance (or create from config)
            normalizer: Normalizer instance (or create with defaults)
        """
        settings = get_settings()

        if source_urls is None:
            source_urls = settings.source_urls

        self._source_urls = list(source_urls)
        self._fetcher = fetcher or UserFetcher()
        self._normalizer = normalizer or UserNormalizer()

    @property
    def source_urls(self) -> list[str]:
        return list(self._source_urls)

    async def collect(self) -> AggregationResult:
        """
        Fetch and normalize all sources without writing anything.

        Returns:
            AggregationResult with users and per-source summaries
        """
        result = AggregationResult()

        fetched = await self._fetcher.fetch_all(self._source_urls)

        # Merge after the join, in declaration order
        for source in fetched:
            summary = SourceSummary(url=source.url, error=source.error)
            if source.ok:
                self._normalizer.reset_stats()
                users = self._normalizer.normalize(source.payload, source.url)
                summary.accepted = self._normalizer.stats.accepted
                summary.skipped = self._normalizer.stats.skipped
                result.users.extend(users)

                logger.info(
                    "Source normalized",
                    source_url=source.url,
                    accepted=summary.accepted,
                    skipped=summary.skipped,
                )
            else:
                logger.warning(
                    "Source failed",
                    source_url=source.url,
                    error=source.error,
                )
            result.sources.append(summary)

        return result

    async def run(self, directory: str | Path, fmt: OutputFormat) -> AggregationResult:
        """
        Run one full pass and write the output file.

        Args:
            directory: Existing output directory
            fmt: Output format

        Returns:
            AggregationResult with output_path set

        Raises:
            OutputWriteError: If the output file cannot be written
        """
        bind_context(run_id=uuid.uuid4().hex[:12])
        try:
            logger.info(
                "Starting aggregation",
                sources=len(self._source_urls),
                output_format=fmt.value,
            )

            result = await self.collect()
            result.output_path = write_users(result.users, directory, fmt)

            logger.info(
                "Aggregation completed",
                users=result.total_users,
                skipped=result.skipped,
                failed_sources=len(result.failed_sources),
                output_path=str(result.output_path),
            )
            return result
        finally:
            clear_context()
