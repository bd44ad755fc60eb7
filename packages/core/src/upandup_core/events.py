"""Domain events published by the ledger after each committed mutation.

Example usage:
    bus = EventBus()
    bus.subscribe(TrustScoreUpdated, refresh_dashboard)

    # The ledger publishes after the store write succeeded
    await bus.publish(TrustScoreUpdated(worker_id="w-1", score=69, version=2))
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Coroutine, Generic, TypeVar
from uuid import uuid4

import structlog

from upandup_core.models import utcnow

logger = structlog.get_logger()

E = TypeVar("E", bound="Event")

EventHandler = Callable[[E], Coroutine[Any, Any, None]]


class EventPriority(int, Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 50
    HIGH = 100


@dataclass
class Event(ABC):
    """Base class for all events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    @property
    @abstractmethod
    def event_type(self) -> str:
        """Return the event type identifier."""
        pass


@dataclass
class CredentialIssued(Event):
    """The issuance gateway accepted a credential and returned its VC URL."""

    worker_id: str = ""
    credential_id: str = ""
    vc_url: str = ""

    @property
    def event_type(self) -> str:
        return "credential.issued"


@dataclass
class CredentialStatusChanged(Event):
    worker_id: str = ""
    credential_id: str = ""
    previous_status: str = ""
    status: str = ""
    reason: str | None = None

    @property
    def event_type(self) -> str:
        return "credential.status_changed"


@dataclass
class WorkerDIDCreated(Event):
    worker_id: str = ""
    did: str = ""
    anchor_status: str = ""

    @property
    def event_type(self) -> str:
        return "worker.did_created"


@dataclass
class WorkerStatusChanged(Event):
    worker_id: str = ""
    previous_status: str = ""
    status: str = ""

    @property
    def event_type(self) -> str:
        return "worker.status_changed"


@dataclass
class TrustScoreUpdated(Event):
    worker_id: str = ""
    score: int = 0
    version: int = 0
    factors: dict[str, float] = field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return "trust_score.updated"


@dataclass
class Subscription(Generic[E]):
    """Represents a subscription to an event type."""

    handler: EventHandler
    priority: EventPriority = EventPriority.NORMAL
    filter_fn: Callable[[E], bool] | None = None

    def matches(self, event: E) -> bool:
        if self.filter_fn is None:
            return True
        return self.filter_fn(event)


class EventBus:
    """
    Publishes ledger events to async subscribers.

    Handlers run in priority order (higher first). A failing handler is
    logged and reported back to the publisher; it never affects the
    other handlers or the ledger state that was already committed.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[type[Event], list[Subscription]] = defaultdict(list)

    def subscribe(
        self,
        event_type: type[E],
        handler: EventHandler,
        priority: EventPriority = EventPriority.NORMAL,
        filter_fn: Callable[[E], bool] | None = None,
    ) -> Callable[[], None]:
        """
        Subscribe a handler to an event type.

        Returns:
            Unsubscribe function
        """
        subscription = Subscription(handler=handler, priority=priority, filter_fn=filter_fn)
        self._subscriptions[event_type].append(subscription)
        self._subscriptions[event_type].sort(key=lambda s: s.priority.value, reverse=True)

        logger.debug(
            "Event handler subscribed",
            event_type=event_type.__name__,
            priority=priority.name,
        )

        def unsubscribe() -> None:
            self._subscriptions[event_type].remove(subscription)

        return unsubscribe

    async def publish(self, event: Event) -> list[Exception]:
        """
        Publish an event to all subscribed handlers.

        Returns:
            List of exceptions from failed handlers (empty if all succeeded)
        """
        subscriptions = self._subscriptions.get(type(event), [])
        if not subscriptions:
            return []

        logger.debug("Publishing event", event_type=event.event_type, event_id=event.event_id)

        errors: list[Exception] = []
        for subscription in list(subscriptions):
            if not subscription.matches(event):
                continue
            try:
                await subscription.handler(event)
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    event_type=event.event_type,
                    event_id=event.event_id,
                    error=str(e),
                )
                errors.append(e)

        return errors

    def clear(self) -> None:
        """Clear all subscriptions."""
        self._subscriptions.clear()
