"""
Poll Loop

Drains a vendor message queue within a fixed wall-clock budget:
fetch -> ack -> classify -> detail -> recency filter -> accumulate.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional

from registry_poll.classifier import NOT_APPLICABLE, MessageClassifier
from registry_poll.models import DomainNotification, PollResult, to_utc
from registry_poll.queue.base import RegistryQueueClient
from registry_poll.recency import RecencyFilter

logger = logging.getLogger("regpoll.poller")

# Seconds
TIME_BUDGET = 60


class PollLoop:
    """
    Bounded-time drain of one vendor queue.

    The loop stops when ``limit`` notifications have been collected, the
    queue reports empty, or the time budget is spent. The budget is checked
    only at the top of each iteration, so one slow queue call can overshoot
    it.

    Messages are acknowledged before they are classified. An irrelevant or
    too-old message is therefore consumed and dropped, and a message whose
    detail cannot be fetched after its ack is lost. A message whose ack
    fails stays queued for a later poll.

    No cursor is kept between calls. Callers persist the newest
    ``created_at`` they have processed and pass it back as ``since``;
    a notification exactly at the cutoff is returned again.

    Example:
        loop = PollLoop(queue, MessageClassifier(ASCIO_TYPES))
        result = loop.poll(limit=100, since=last_seen)
    """

    def __init__(
        self,
        queue_client: RegistryQueueClient,
        classifier: MessageClassifier,
        time_budget: float = TIME_BUDGET,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize poll loop.

        Args:
            queue_client: Vendor queue to drain
            classifier: Vendor type classifier
            time_budget: Wall-clock budget in seconds
            clock: Monotonic clock returning seconds
        """
        self.queue_client = queue_client
        self.classifier = classifier
        self.time_budget = time_budget
        self.clock = clock

    def poll(self, limit: int, since: Optional[datetime] = None) -> PollResult:
        """
        Collect up to ``limit`` notifications.

        Args:
            limit: Maximum notifications to return (positive)
            since: Drop notifications created before this time

        Returns:
            PollResult with notifications in queue order

        Raises:
            ValueError: If limit is not a positive integer
            RegistryPollError: If reading the queue fails
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")

        recent = RecencyFilter(since)
        notifications: List[DomainNotification] = []
        count_remaining = 0
        seen = 0
        stop_reason = "limit"

        start_time = self.clock()

        while len(notifications) < limit:
            if self.clock() - start_time >= self.time_budget:
                stop_reason = "time budget"
                break

            envelope, count_remaining = self.queue_client.fetch_next()

            if count_remaining == 0:
                stop_reason = "queue empty"
                break

            seen += 1

            if envelope is None or envelope.id is None:
                logger.warning("Skipping queue entry without message id")
                continue

            try:
                self.queue_client.ack(envelope.id)
            except Exception as e:
                logger.warning(f"Ack failed for message {envelope.id}, leaving it queued: {e}")
                continue

            notification_type = self.classifier.classify(envelope.raw_type)
            if notification_type is NOT_APPLICABLE:
                logger.debug(f"Message {envelope.id} type {envelope.raw_type!r} not applicable")
                continue

            timestamp = envelope.approx_timestamp
            try:
                detail = self.queue_client.fetch_detail(envelope.detail_ref)
                timestamp = detail.timestamp
            except Exception as e:
                logger.warning(f"Dropping message {envelope.id}, no detail: {e}")
                continue

            if not recent(timestamp):
                logger.debug(f"Message {envelope.id} at {timestamp} is older than {since}")
                continue

            notifications.append(
                DomainNotification.from_envelope(envelope, notification_type, to_utc(timestamp))
            )
            logger.debug(f"Message {envelope.id} -> {notification_type.value}")

        logger.info(
            f"Poll finished ({stop_reason}): {len(notifications)} notifications "
            f"from {seen} messages, {count_remaining} remaining, "
            f"{self.clock() - start_time:.1f}s"
        )

        return PollResult(notifications=tuple(notifications), count_remaining=count_remaining)


def poll(
    queue_client: RegistryQueueClient,
    classifier: MessageClassifier,
    limit: int,
    since: Optional[datetime] = None,
    time_budget: float = TIME_BUDGET,
) -> PollResult:
    """Run a single PollLoop invocation. See PollLoop.poll."""
    return PollLoop(queue_client, classifier, time_budget=time_budget).poll(limit, since)
