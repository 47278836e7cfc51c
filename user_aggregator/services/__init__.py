"""Services layer - orchestration of fetching, normalization and output."""

from user_aggregator.services.aggregation_service import (
    AggregationResult,
    AggregationService,
    SourceSummary,
)

__all__ = ["AggregationResult", "AggregationService", "SourceSummary"]
