"""
Observability components for MembershipVC.

Provides Prometheus metrics for ledger operations.
"""

from .metrics import MetricsCollector

__all__ = ["MetricsCollector"]
