"""
Observability components for stakepool.

Provides Prometheus metrics. Logging uses the standard ``logging`` module
with one logger per module.
"""

from .metrics import PoolMetrics

__all__ = [
    "PoolMetrics",
]
