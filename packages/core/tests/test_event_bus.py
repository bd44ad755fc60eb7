"""Tests for the ledger event bus."""

import pytest

from upandup_core.events import (
    CredentialIssued,
    EventBus,
    EventPriority,
    TrustScoreUpdated,
    WorkerStatusChanged,
)


class TestEvents:
    def test_event_types(self):
        assert CredentialIssued().event_type == "credential.issued"
        assert TrustScoreUpdated().event_type == "trust_score.updated"
        assert WorkerStatusChanged().event_type == "worker.status_changed"

    def test_unique_ids(self):
        assert CredentialIssued().event_id != CredentialIssued().event_id


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_publish_to_subscriber(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(TrustScoreUpdated, handler)
        event = TrustScoreUpdated(worker_id="w-1", score=69, version=1)
        errors = await bus.publish(event)

        assert errors == []
        assert received == [event]

    @pytest.mark.asyncio
    async def test_only_matching_type(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(CredentialIssued, handler)
        await bus.publish(TrustScoreUpdated(worker_id="w-1"))

        assert received == []

    @pytest.mark.asyncio
    async def test_priority_order(self):
        bus = EventBus()
        order = []

        async def low(event):
            order.append("low")

        async def high(event):
            order.append("high")

        bus.subscribe(WorkerStatusChanged, low, priority=EventPriority.LOW)
        bus.subscribe(WorkerStatusChanged, high, priority=EventPriority.HIGH)
        await bus.publish(WorkerStatusChanged(worker_id="w-1"))

        assert order == ["high", "low"]

    @pytest.mark.asyncio
    async def test_filter(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event.worker_id)

        bus.subscribe(TrustScoreUpdated, handler, filter_fn=lambda e: e.score >= 80)
        await bus.publish(TrustScoreUpdated(worker_id="w-1", score=40))
        await bus.publish(TrustScoreUpdated(worker_id="w-2", score=85))

        assert received == ["w-2"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        unsubscribe = bus.subscribe(CredentialIssued, handler)
        unsubscribe()
        await bus.publish(CredentialIssued(worker_id="w-1"))

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self):
        bus = EventBus()
        received = []

        async def broken(event):
            raise RuntimeError("notification service down")

        async def handler(event):
            received.append(event)

        bus.subscribe(CredentialIssued, broken, priority=EventPriority.HIGH)
        bus.subscribe(CredentialIssued, handler)
        errors = await bus.publish(CredentialIssued(worker_id="w-1"))

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_clear(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(CredentialIssued, handler)
        bus.clear()
        await bus.publish(CredentialIssued())

        assert received == []
