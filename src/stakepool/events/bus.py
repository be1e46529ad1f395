"""
Pool event delivery.

A controller records events while an operation runs and publishes them
only once the operation has committed. Each committed event carries a
per-pool sequence number, so subscribers can detect gaps and order
events from several pools.

Delivery is best-effort. The state change behind an event has already
happened when a handler runs, so a failing handler is logged and the
remaining handlers and events are still delivered.
"""

from __future__ import annotations

import fnmatch
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


# Standard event types
EVENT_STAKED = "stake.staked"
EVENT_WITHDRAWN = "stake.withdrawn"
EVENT_REWARD_PAID = "reward.paid"
EVENT_REWARD_ADDED = "reward.added"
EVENT_REWARDS_DURATION_UPDATED = "reward.duration_updated"
EVENT_REWARDS_DISTRIBUTION_UPDATED = "reward.distribution_updated"
EVENT_PAUSE_CHANGED = "pool.pause_changed"
EVENT_RECOVERED = "pool.recovered"

# Payload keys each event type carries
EVENT_FIELDS: dict[str, tuple[str, ...]] = {
    EVENT_STAKED: ("participant", "amount"),
    EVENT_WITHDRAWN: ("participant", "amount"),
    EVENT_REWARD_PAID: ("participant", "amount"),
    EVENT_REWARD_ADDED: ("amount", "duration", "rate"),
    EVENT_REWARDS_DURATION_UPDATED: ("duration",),
    EVENT_REWARDS_DISTRIBUTION_UPDATED: ("distributor",),
    EVENT_PAUSE_CHANGED: ("paused",),
    EVENT_RECOVERED: ("token", "amount"),
}

ALL_EVENT_TYPES = list(EVENT_FIELDS)


@dataclass(frozen=True)
class Event:
    """A committed change to a staking pool.

    Attributes:
        event_type: One of the ``EVENT_*`` constants.
        source: Identifier of the pool that produced the event.
        payload: Event fields, keyed as listed in ``EVENT_FIELDS``.
        timestamp: Pool clock time of the operation, in seconds.
        sequence: Position among the pool's committed events, starting at 1.
            Zero until the event is committed.
    """

    event_type: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0
    sequence: int = 0

    @classmethod
    def pool_event(cls, event_type: str, source: str, timestamp: int = 0, **payload: Any) -> "Event":
        """Build an event, checking the payload against ``EVENT_FIELDS``."""
        expected = EVENT_FIELDS.get(event_type)
        if expected is None:
            raise ValueError(f"Unknown pool event type {event_type!r}")
        if set(payload) != set(expected):
            raise ValueError(
                f"{event_type} expects fields {sorted(expected)}, got {sorted(payload)}"
            )
        return cls(event_type=event_type, source=source, payload=payload, timestamp=timestamp)

    @property
    def event_id(self) -> str:
        return f"{self.source}-{self.sequence}"

    @property
    def participant(self) -> Optional[str]:
        return self.payload.get("participant")

    @property
    def amount(self) -> int:
        """Token amount moved by the event, or 0 if it moves none."""
        return self.payload.get("amount", 0)


EventHandler = Callable[[Event], Any]


@dataclass
class Subscription:
    """A handler registered for event types matching a glob pattern."""

    pattern: str
    handler: EventHandler

    def matches(self, event_type: str) -> bool:
        return fnmatch.fnmatchcase(event_type, self.pattern)


class EventBus(ABC):
    """Abstract base class for event bus implementations."""

    @abstractmethod
    def emit(self, event: Event) -> None:
        """Deliver one event to all matching subscribers."""

    def publish(self, events: Iterable[Event]) -> None:
        """Deliver the events of one committed operation, in order."""
        for event in events:
            self.emit(event)

    @abstractmethod
    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        """Subscribe a handler to events matching a glob-style pattern.

        Args:
            pattern: Glob-style pattern (e.g., ``reward.*``, ``*``).
            handler: Callable invoked with the matching Event.

        Raises:
            ValueError: If the pattern matches no pool event type.
        """

    @abstractmethod
    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a handler from all subscriptions."""


class InMemoryEventBus(EventBus):
    """Synchronous in-process bus that isolates failing handlers.

    Attributes:
        delivery_failures: Number of handler calls that raised.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self.delivery_failures = 0

    def emit(self, event: Event) -> None:
        for sub in list(self._subscriptions):
            if not sub.matches(event.event_type):
                continue
            try:
                sub.handler(event)
            except Exception:
                self.delivery_failures += 1
                logger.exception(
                    "Handler %r failed on %s (%s)", sub.handler, event.event_type, event.event_id
                )

    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        if not any(fnmatch.fnmatchcase(t, pattern) for t in ALL_EVENT_TYPES):
            raise ValueError(f"Pattern {pattern!r} matches no pool event type")
        sub = Subscription(pattern=pattern, handler=handler)
        self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, handler: EventHandler) -> None:
        # bound methods compare equal but are not identical
        self._subscriptions = [s for s in self._subscriptions if s.handler != handler]
