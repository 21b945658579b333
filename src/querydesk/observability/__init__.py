"""
QueryDesk Observability Module.

Provides in-process metrics for remote operations and their failures.
"""

from querydesk.observability.metrics import MetricsStore, get_metrics_store

__all__ = ["MetricsStore", "get_metrics_store"]
