"""
Registry Queue Client Interface

The only collaborator the poll loop depends on. One implementation exists
per vendor wire protocol; the loop never sees the protocol in use.
"""

import abc
from typing import Any, Optional, Tuple

from registry_poll.models import MessageDetail, MessageEnvelope


class RegistryQueueClient(abc.ABC):
    """
    Abstract vendor message queue.

    Concrete clients own any authenticated session behind the queue and
    expose it as a scoped resource:

        with EPPQueueClient(epp_client, "registrar1", "secret") as queue:
            result = PollLoop(queue, classifier).poll(limit=50)

    Whether concurrent consumers of one account's queue are safe is up to
    the upstream registry, not this interface.
    """

    name = "base"

    @abc.abstractmethod
    def fetch_next(self) -> Tuple[Optional[MessageEnvelope], int]:
        """
        Fetch the oldest pending message without removing it.

        Returns:
            Tuple of (envelope, queue size). Queue size 0 means the queue
            is empty and the envelope is None.

        Raises:
            RegistryPollError: If the queue cannot be read
        """

    @abc.abstractmethod
    def ack(self, message_id: str) -> None:
        """
        Acknowledge (dequeue) a message.

        Raises:
            RegistryPollError: On transport or protocol failure
        """

    @abc.abstractmethod
    def fetch_detail(self, ref: Any) -> MessageDetail:
        """
        Fetch extended detail, chiefly the authoritative event timestamp.

        Args:
            ref: The envelope's detail_ref

        Raises:
            QueueDetailError: If the detail cannot be retrieved
        """

    def connect(self) -> None:
        """Open the vendor session. No-op for sessionless clients."""

    def close(self) -> None:
        """Close the vendor session. No-op for sessionless clients."""

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
