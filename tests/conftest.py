"""
Shared test fixtures: an in-memory queue and a controllable clock.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from registry_poll.exceptions import QueueDetailError, QueueError
from registry_poll.models import MessageDetail, MessageEnvelope
from registry_poll.queue.base import RegistryQueueClient


def utc(*args) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def envelope(
    id,
    raw_type="Transfer",
    when: Optional[datetime] = None,
    text="Transfer completed",
    domain="example.com",
    approx: Optional[datetime] = None,
) -> MessageEnvelope:
    """Envelope whose detail_ref is the authoritative timestamp (None = detail fails)."""
    return MessageEnvelope(
        id=id,
        raw_type=raw_type,
        raw_text=text,
        domain_names=(domain,) if domain else (),
        detail_ref=when,
        approx_timestamp=approx,
    )


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeQueue(RegistryQueueClient):
    """
    In-memory upstream queue.

    fetch_next() serves the oldest message that is neither acked nor had a
    failed ack; the reported size counts every message not yet acked.
    """

    name = "fake"

    def __init__(self, messages=(), fail_ack=(), fail_fetch_at=None, clock=None, fetch_cost=0.0):
        self.messages = list(messages)
        self.fail_ack = set(fail_ack)
        self.fail_fetch_at = fail_fetch_at
        self.clock = clock
        self.fetch_cost = fetch_cost

        self.fetch_calls = 0
        self.ack_attempts = []
        self.acked = []
        self.detail_calls = []
        self._skipped = set()

    def fetch_next(self):
        self.fetch_calls += 1
        if self.clock is not None:
            self.clock.advance(self.fetch_cost)
        if self.fail_fetch_at is not None and self.fetch_calls >= self.fail_fetch_at:
            raise QueueError("upstream unreachable")

        for message in self.messages:
            if message.id not in self._skipped:
                return message, len(self.messages)
        return None, len(self.messages)

    def ack(self, message_id):
        self.ack_attempts.append(message_id)
        if message_id in self.fail_ack:
            self._skipped.add(message_id)
            raise QueueError(f"ack failed for {message_id}")
        self.acked.append(message_id)
        self.messages = [m for m in self.messages if m.id != message_id]

    def fetch_detail(self, ref):
        self.detail_calls.append(ref)
        if ref is None:
            raise QueueDetailError(ref, "order not found")
        return MessageDetail(timestamp=ref)


class EndlessQueue(RegistryQueueClient):
    """Queue that never empties; every fetch costs ``fetch_cost`` seconds."""

    name = "endless"

    def __init__(self, clock, raw_type="Update", backlog=5000, fetch_cost=1.0):
        self.clock = clock
        self.raw_type = raw_type
        self.backlog = backlog
        self.fetch_cost = fetch_cost
        self.fetch_calls = 0
        self.acked = []

    def fetch_next(self):
        self.fetch_calls += 1
        self.clock.advance(self.fetch_cost)
        return envelope(f"m{self.fetch_calls}", self.raw_type, utc(2024, 1, 1)), self.backlog

    def ack(self, message_id):
        self.acked.append(message_id)

    def fetch_detail(self, ref):
        return MessageDetail(timestamp=ref)


@pytest.fixture
def clock():
    return FakeClock()
