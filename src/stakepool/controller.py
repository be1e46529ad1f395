# Copyright (c) Stakepool Contributors. All rights reserved.
# Licensed under the MIT License.
"""
Pool Controller

Public entry point of a staking pool. Every operation follows the same
shape:

1. authorize and validate the call,
2. checkpoint accrual up to ``min(now, period_finish)``,
3. mutate the stake book or reward schedule,
4. move assets through the ledger adapters,
5. commit: emit buffered events and refresh metrics.

Any exception between steps 1 and 5 restores the pool record to its state
before the call and discards the buffered events.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Iterator, Optional

from stakepool.clock import Clock, SystemClock
from stakepool.config import PoolConfig
from stakepool.core import accrual, reward_ledger, schedule, stake_book
from stakepool.core.models import ParticipantAccount, PeriodState, PoolState
from stakepool.events.bus import (
    EVENT_PAUSE_CHANGED,
    EVENT_RECOVERED,
    EVENT_REWARD_ADDED,
    EVENT_REWARD_PAID,
    EVENT_REWARDS_DISTRIBUTION_UPDATED,
    EVENT_REWARDS_DURATION_UPDATED,
    EVENT_STAKED,
    EVENT_WITHDRAWN,
    Event,
    EventBus,
    InMemoryEventBus,
)
from stakepool.exceptions import AuthorizationError, PoolPaused, ValidationError
from stakepool.ledger.base import AssetLedger
from stakepool.ledger.permit import PermitSignature
from stakepool.observability.metrics import PoolMetrics

logger = logging.getLogger(__name__)


class PoolController:
    """Orchestrates the public operations of one staking pool.

    Args:
        pool: The pool record this controller owns.
        stake_ledger: Ledger of the asset participants deposit.
        reward_ledger: Ledger of the asset paid out as reward. May be the
            same object as ``stake_ledger``.
        pool_id: Identifier used as event source and metrics label.
        address: Holder the pool's assets are kept under. Defaults to ``pool_id``.
        clock: Time source. Defaults to wall-clock seconds.
        bus: Event bus receiving committed events.
        metrics: Optional Prometheus metrics sink.

    Example:
        >>> pool = PoolController.create(
        ...     owner="ops", rewards_distribution="treasury", rewards_duration=86400,
        ...     stake_ledger=lp_token, reward_ledger=gov_token,
        ... )
        >>> pool.stake("alice", to_units(10))
    """

    def __init__(
        self,
        pool: PoolState,
        stake_ledger: AssetLedger,
        reward_ledger: AssetLedger,
        *,
        pool_id: str = "pool",
        address: Optional[str] = None,
        clock: Optional[Clock] = None,
        bus: Optional[EventBus] = None,
        metrics: Optional[PoolMetrics] = None,
    ) -> None:
        self._pool = pool
        self._stake_ledger = stake_ledger
        self._reward_ledger = reward_ledger
        self.pool_id = pool_id
        self.address = address or pool_id
        self._clock = clock or SystemClock()
        self._bus = bus or InMemoryEventBus()
        self._metrics = metrics
        if metrics is not None:
            metrics.attach(self._bus)

        self._lock = threading.RLock()
        self._depth = 0
        self._pending: list[Event] = []
        self._sequence = 0

    @classmethod
    def create(
        cls,
        owner: str,
        rewards_distribution: str,
        rewards_duration: int,
        stake_ledger: AssetLedger,
        reward_ledger: AssetLedger,
        **kwargs: Any,
    ) -> "PoolController":
        """Create a controller around a fresh, unfunded pool."""
        schedule.validate_duration(rewards_duration)
        pool = PoolState(
            owner=owner,
            rewards_distribution=rewards_distribution,
            rewards_duration=rewards_duration,
        )
        return cls(pool, stake_ledger, reward_ledger, **kwargs)

    @classmethod
    def from_config(
        cls,
        config: PoolConfig,
        stake_ledger: AssetLedger,
        reward_ledger: AssetLedger,
        clock: Optional[Clock] = None,
        bus: Optional[EventBus] = None,
    ) -> "PoolController":
        """Create a controller from a :class:`PoolConfig`."""
        metrics = PoolMetrics(config.pool_id) if config.metrics_enabled else None
        return cls.create(
            owner=config.owner,
            rewards_distribution=config.rewards_distribution,
            rewards_duration=config.rewards_duration,
            stake_ledger=stake_ledger,
            reward_ledger=reward_ledger,
            pool_id=config.pool_id,
            address=config.address,
            clock=clock,
            bus=bus,
            metrics=metrics,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pool(self) -> PoolState:
        """The live pool record. Treat as read-only."""
        return self._pool

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def metrics(self) -> Optional[PoolMetrics]:
        return self._metrics

    @property
    def same_asset(self) -> bool:
        """True when stake and reward are kept on the same ledger."""
        return self._stake_ledger is self._reward_ledger

    @property
    def total_staked(self) -> int:
        return self._pool.total_staked

    @property
    def reward_rate(self) -> int:
        return self._pool.reward_rate

    @property
    def period_finish(self) -> int:
        return self._pool.period_finish

    @property
    def last_update_time(self) -> int:
        return self._pool.last_update_time

    @property
    def rewards_duration(self) -> int:
        return self._pool.rewards_duration

    @property
    def reward_per_token_stored(self) -> int:
        return self._pool.reward_per_token_stored

    @property
    def period_state(self) -> PeriodState:
        return schedule.period_state(self._pool, self._clock.now())

    def balance_of(self, participant: str) -> int:
        return stake_book.balance_of(self._pool, participant)

    def rewards(self, participant: str) -> int:
        return reward_ledger.rewards(self._pool, participant)

    def user_reward_per_token_paid(self, participant: str) -> int:
        return reward_ledger.user_reward_per_token_paid(self._pool, participant)

    def last_time_reward_applicable(self) -> int:
        return accrual.last_time_reward_applicable(self._pool, self._clock.now())

    def reward_per_token(self) -> int:
        return accrual.reward_per_token(self._pool, self._clock.now())

    def earned(self, participant: str) -> int:
        return accrual.earned(self._pool, self._pool.peek(participant), self._clock.now())

    def reward_for_duration(self) -> int:
        return schedule.reward_for_duration(self._pool)

    def snapshot(self) -> PoolState:
        """Return a deep copy of the pool record."""
        with self._lock:
            return self._pool.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Participant operations
    # ------------------------------------------------------------------

    def stake(self, caller: str, amount: int) -> None:
        """Stake *amount* using an allowance previously granted to the pool."""
        with self._operation("stake", caller):
            self._stake(caller, amount, now=self._clock.now())

    def stake_with_permit(
        self,
        caller: str,
        amount: int,
        deadline: int,
        signature: PermitSignature,
    ) -> None:
        """Stake *amount*, authorizing the transfer with a signed permit."""
        with self._operation("stake_with_permit", caller):
            self._stake(caller, amount, now=self._clock.now(), permit=(deadline, signature))

    def withdraw(self, caller: str, amount: int) -> None:
        """Withdraw *amount* of the caller's stake."""
        with self._operation("withdraw", caller):
            self._withdraw(caller, amount)

    def get_reward(self, caller: str) -> int:
        """Pay out the caller's accrued reward and return the amount paid."""
        with self._operation("get_reward", caller):
            return self._get_reward(caller)

    def exit(self, caller: str) -> int:
        """Withdraw the caller's full stake and claim their reward.

        Raises:
            ValidationError: If the caller has nothing staked.
        """
        with self._operation("exit", caller):
            self._withdraw(caller, self.balance_of(caller))
            return self._get_reward(caller)

    # ------------------------------------------------------------------
    # Distributor and owner operations
    # ------------------------------------------------------------------

    def notify_reward_amount(
        self,
        caller: str,
        reward: int,
        duration: Optional[int] = None,
        pull: bool = False,
    ) -> int:
        """Fund a reward period and return the resulting reward rate.

        Args:
            caller: Must be the pool's rewards distributor.
            reward: Reward to emit, in scaled units.
            duration: Period length in seconds. Defaults to ``rewards_duration``.
            pull: Pull *reward* from the caller through the reward ledger
                allowance instead of expecting it to be transferred already.

        Raises:
            AuthorizationError: If *caller* is not the distributor.
            SolvencyError: If the pool cannot cover ``rate * duration``.
        """
        with self._operation("notify_reward_amount", None):
            if caller != self._pool.rewards_distribution:
                raise AuthorizationError(f"Caller {caller} is not the rewards distributor")
            if duration is None:
                duration = self._pool.rewards_duration
            now = self._clock.now()

            available = self._reward_ledger.balance_of(self.address)
            if pull:
                available += reward
            if self.same_asset:
                available -= self._pool.total_staked
            rate = schedule.notify_reward_amount(
                self._pool, reward, duration, now, max(available, 0)
            )

            if pull and reward > 0:
                self._reward_ledger.transfer_from(self.address, caller, self.address, reward)
            self._emit(EVENT_REWARD_ADDED, amount=reward, duration=duration, rate=rate)
            return rate

    def set_rewards_duration(self, caller: str, duration: int) -> None:
        """Change the default reward period length after the current one ends."""
        with self._operation("set_rewards_duration", None):
            self._require_owner(caller)
            schedule.set_rewards_duration(self._pool, duration, self._clock.now())
            self._emit(EVENT_REWARDS_DURATION_UPDATED, duration=duration)

    def set_rewards_distribution(self, caller: str, distributor: str) -> None:
        """Hand the right to fund rewards to *distributor*."""
        with self._operation("set_rewards_distribution", None):
            self._require_owner(caller)
            if not distributor:
                raise ValidationError("Distributor must be a non-empty principal")
            self._pool.rewards_distribution = distributor
            self._emit(EVENT_REWARDS_DISTRIBUTION_UPDATED, distributor=distributor)

    def set_paused(self, caller: str, paused: bool) -> None:
        """Stop or resume accepting new stakes."""
        with self._operation("set_paused", None):
            self._require_owner(caller)
            if self._pool.paused == paused:
                return
            self._pool.paused = paused
            self._emit(EVENT_PAUSE_CHANGED, paused=paused)

    def recover_token(self, caller: str, ledger: AssetLedger, amount: int) -> None:
        """Send tokens accidentally sent to the pool back to the owner.

        The stake and reward assets cannot be recovered.
        """
        with self._operation("recover_token", None):
            self._require_owner(caller)
            if ledger.name in (self._stake_ledger.name, self._reward_ledger.name):
                raise ValidationError(f"Cannot recover the pool's own asset {ledger.name}")
            stake_book.require_positive(amount)
            ledger.transfer(self.address, self._pool.owner, amount)
            self._emit(EVENT_RECOVERED, token=ledger.name, amount=amount)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stake(
        self,
        caller: str,
        amount: int,
        now: int,
        permit: Optional[tuple[int, PermitSignature]] = None,
    ) -> None:
        stake_book.require_positive(amount)
        self._require_not_paused()
        accrual.checkpoint(self._pool, caller, now)
        if permit is None:
            self._stake_ledger.transfer_from(self.address, caller, self.address, amount)
        else:
            deadline, signature = permit
            self._stake_ledger.transfer_with_permit(
                caller, self.address, self.address, amount, deadline, signature, now
            )
        stake_book.credit(self._pool, caller, amount)
        self._emit(EVENT_STAKED, participant=caller, amount=amount)

    def _withdraw(self, caller: str, amount: int) -> None:
        stake_book.require_withdrawable(self._pool, caller, amount)
        accrual.checkpoint(self._pool, caller, self._clock.now())
        stake_book.debit(self._pool, caller, amount)
        self._stake_ledger.transfer(self.address, caller, amount)
        self._emit(EVENT_WITHDRAWN, participant=caller, amount=amount)

    def _get_reward(self, caller: str) -> int:
        known = self._pool.peek(caller) is not None
        accrual.checkpoint(self._pool, caller if known else None, self._clock.now())
        reward = reward_ledger.take_rewards(self._pool, caller)
        if reward == 0:
            return 0
        self._reward_ledger.transfer(self.address, caller, reward)
        self._emit(EVENT_REWARD_PAID, participant=caller, amount=reward)
        return reward

    def _require_not_paused(self) -> None:
        if self._pool.paused:
            raise PoolPaused("Pool is paused; staking is disabled")

    def _require_owner(self, caller: str) -> None:
        if caller != self._pool.owner:
            raise AuthorizationError(f"Caller {caller} is not the pool owner")

    def _emit(self, event_type: str, **payload: Any) -> None:
        self._pending.append(
            Event.pool_event(event_type, self.pool_id, timestamp=self._clock.now(), **payload)
        )

    @contextmanager
    def _operation(self, name: str, participant: Optional[str]) -> Iterator[None]:
        """Run one public call atomically.

        Nested calls (``exit`` composing ``withdraw`` and ``get_reward``)
        join the outermost call's snapshot and event buffer.
        """
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            saved_pool = self._pool.model_copy()
            saved_account: Optional[ParticipantAccount] = None
            had_account = False
            if participant is not None:
                existing = self._pool.peek(participant)
                had_account = existing is not None
                if existing is not None:
                    saved_account = existing.model_copy()

            self._depth = 1
            self._pending = []
            try:
                yield
            except Exception as exc:
                self._pool.restore(saved_pool)
                if participant is not None:
                    if had_account:
                        self._pool.accounts[participant] = saved_account
                    else:
                        self._pool.accounts.pop(participant, None)
                self._pending = []
                logger.warning("%s rejected (%s): %s", name, type(exc).__name__, exc)
                if self._metrics is not None:
                    self._metrics.record_operation(name, success=False)
                raise
            finally:
                self._depth = 0

            events = []
            for event in self._pending:
                self._sequence += 1
                events.append(replace(event, sequence=self._sequence))
            self._pending = []
            logger.info("%s committed for %s (%d events)", name, participant or "-", len(events))
            if self._metrics is not None:
                self._metrics.record_operation(name, success=True)
                self._metrics.observe_pool(self._pool)
            try:
                self._bus.publish(events)
            except Exception:
                logger.exception("Event delivery failed after %s committed", name)
