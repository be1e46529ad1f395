"""
Prometheus Metrics Integration.

Provides metrics collection and export for staking pools.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from stakepool.core.models import PoolState
from stakepool.events.bus import (
    EVENT_REWARD_ADDED,
    EVENT_REWARD_PAID,
    EVENT_STAKED,
    EVENT_WITHDRAWN,
    Event,
    EventBus,
)
from stakepool.fixed_point import from_units


class PoolMetrics:
    """Prometheus metrics for a staking pool.

    Exposes metrics:
    - stakepool_operations_total{operation="...", status="success|fail"}
    - stakepool_staked_units_total / stakepool_withdrawn_units_total
    - stakepool_rewards_paid_units_total / stakepool_rewards_funded_units_total
    - stakepool_total_staked, stakepool_reward_rate, stakepool_period_finish_seconds

    Amount metrics are exported in whole tokens rather than scaled units.

    Args:
        pool_id: Value of the ``pool`` label on every metric.
        prefix: Metric name prefix. Defaults to ``stakepool``.
        registry: Registry to register into. A private registry is created
            when omitted so several pools can coexist in one process.
    """

    def __init__(
        self,
        pool_id: str,
        prefix: str = "stakepool",
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.pool_id = pool_id
        self.registry = registry if registry is not None else CollectorRegistry()

        self.operations_total = Counter(
            f"{prefix}_operations_total",
            "Pool operations by outcome",
            ["pool", "operation", "status"],
            registry=self.registry,
        )
        self.staked_total = Counter(
            f"{prefix}_staked_units_total",
            "Tokens staked into the pool",
            ["pool"],
            registry=self.registry,
        )
        self.withdrawn_total = Counter(
            f"{prefix}_withdrawn_units_total",
            "Tokens withdrawn from the pool",
            ["pool"],
            registry=self.registry,
        )
        self.rewards_paid_total = Counter(
            f"{prefix}_rewards_paid_units_total",
            "Reward tokens paid to participants",
            ["pool"],
            registry=self.registry,
        )
        self.rewards_funded_total = Counter(
            f"{prefix}_rewards_funded_units_total",
            "Reward tokens funded by the distributor",
            ["pool"],
            registry=self.registry,
        )
        self.total_staked = Gauge(
            f"{prefix}_total_staked",
            "Current total staked supply",
            ["pool"],
            registry=self.registry,
        )
        self.reward_rate = Gauge(
            f"{prefix}_reward_rate",
            "Current reward emission per second",
            ["pool"],
            registry=self.registry,
        )
        self.period_finish = Gauge(
            f"{prefix}_period_finish_seconds",
            "Unix time at which the current reward period ends",
            ["pool"],
            registry=self.registry,
        )

    def attach(self, bus: EventBus) -> None:
        """Feed the amount counters from a pool's event bus."""
        bus.subscribe(EVENT_STAKED, self._on_staked)
        bus.subscribe(EVENT_WITHDRAWN, self._on_withdrawn)
        bus.subscribe(EVENT_REWARD_PAID, self._on_reward_paid)
        bus.subscribe(EVENT_REWARD_ADDED, self._on_reward_added)

    def record_operation(self, operation: str, success: bool) -> None:
        """Record the outcome of a public pool operation."""
        status = "success" if success else "fail"
        self.operations_total.labels(pool=self.pool_id, operation=operation, status=status).inc()

    def observe_pool(self, pool: PoolState) -> None:
        """Refresh the gauges from the pool record."""
        self.total_staked.labels(pool=self.pool_id).set(float(from_units(pool.total_staked)))
        self.reward_rate.labels(pool=self.pool_id).set(float(from_units(pool.reward_rate)))
        self.period_finish.labels(pool=self.pool_id).set(pool.period_finish)

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)

    def _amount(self, event: Event) -> float:
        return float(from_units(event.amount))

    def _on_staked(self, event: Event) -> None:
        self.staked_total.labels(pool=self.pool_id).inc(self._amount(event))

    def _on_withdrawn(self, event: Event) -> None:
        self.withdrawn_total.labels(pool=self.pool_id).inc(self._amount(event))

    def _on_reward_paid(self, event: Event) -> None:
        self.rewards_paid_total.labels(pool=self.pool_id).inc(self._amount(event))

    def _on_reward_added(self, event: Event) -> None:
        self.rewards_funded_total.labels(pool=self.pool_id).inc(self._amount(event))
