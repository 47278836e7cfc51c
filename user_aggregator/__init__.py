"""User aggregator - fetch, normalize and export user records from public APIs."""

__version__ = "0.1.0"
