"""Incident reconciliation and aggregation engine."""

__version__ = "0.4.0"
