"""Ledger aggregation and forecast package."""

from financas.queries.aggregator import LedgerAggregator
from financas.queries.forecast import ForecastEngine

__all__ = ["ForecastEngine", "LedgerAggregator"]
