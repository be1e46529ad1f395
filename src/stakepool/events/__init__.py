"""Event bus for staking pool notifications."""

from .bus import (
    ALL_EVENT_TYPES,
    EVENT_FIELDS,
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
    EventHandler,
    InMemoryEventBus,
    Subscription,
)

__all__ = [
    "Event",
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "Subscription",
    "EVENT_STAKED",
    "EVENT_WITHDRAWN",
    "EVENT_REWARD_PAID",
    "EVENT_REWARD_ADDED",
    "EVENT_REWARDS_DURATION_UPDATED",
    "EVENT_REWARDS_DISTRIBUTION_UPDATED",
    "EVENT_PAUSE_CHANGED",
    "EVENT_RECOVERED",
    "ALL_EVENT_TYPES",
    "EVENT_FIELDS",
]
