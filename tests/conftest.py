"""Shared fixtures for stakepool tests."""

import pytest

from stakepool import InMemoryLedger, ManualClock, PoolController, to_units
from stakepool.events import Event, InMemoryEventBus

START = 1_700_000_000
DAY = 24 * 3600
REWARDS_DURATION = 60 * DAY

OWNER = "owner"
DISTRIBUTOR = "distributor"


class PoolHarness:
    """Bundles a pool with its ledgers, clock, and recorded events."""

    def __init__(self, same_asset: bool = False) -> None:
        self.clock = ManualClock(START)
        self.stake_token = InMemoryLedger("LP")
        self.reward_token = self.stake_token if same_asset else InMemoryLedger("RWD")
        self.bus = InMemoryEventBus()
        self.events: list[Event] = []
        self.bus.subscribe("*", self.events.append)
        self.pool = PoolController.create(
            owner=OWNER,
            rewards_distribution=DISTRIBUTOR,
            rewards_duration=REWARDS_DURATION,
            stake_ledger=self.stake_token,
            reward_ledger=self.reward_token,
            pool_id="test-pool",
            clock=self.clock,
            bus=self.bus,
        )

    def stake(self, who: str, amount: int) -> None:
        self.stake_token.mint(who, amount)
        self.stake_token.approve(who, self.pool.address, amount)
        self.pool.stake(who, amount)

    def fund(self, reward: int, duration: int | None = None) -> int:
        """Send *reward* to the pool and notify it, returning the new rate."""
        self.reward_token.mint(DISTRIBUTOR, reward)
        self.reward_token.transfer(DISTRIBUTOR, self.pool.address, reward)
        return self.pool.notify_reward_amount(DISTRIBUTOR, reward, duration)

    def event_types(self) -> list[str]:
        return [e.event_type for e in self.events]


@pytest.fixture
def harness():
    return PoolHarness()


@pytest.fixture
def same_asset_harness():
    return PoolHarness(same_asset=True)


@pytest.fixture
def reward():
    return to_units(100)
