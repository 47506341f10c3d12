"""
Netim Queue Client

Presents Netim's pending-operations list (queryOpePending) as a queue.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional, Set, Tuple

from dateutil import parser as date_parser

from registry_poll.exceptions import QueueDetailError, QueueError
from registry_poll.models import MessageDetail, MessageEnvelope, to_utc
from registry_poll.queue.base import RegistryQueueClient

logger = logging.getLogger("regpoll.queue.netim")


def _field(operation: Any, name: str, default=None):
    """Read a field from a dict or an attribute-style API object."""
    if isinstance(operation, dict):
        return operation.get(name, default)
    return getattr(operation, name, default)


class NetimQueueClient(RegistryQueueClient):
    """
    Netim pending operations.

    ``api`` is any object with ``query_ope_pending() -> list`` returning
    operations with ``id_ope``, ``code_ope``, ``data_ope`` (the domain) and
    ``date_ope``.

    Netim has no acknowledgement call, so the list is fetched once and
    served one entry at a time; ack() only records the id so a later
    refetch in the same session skips it. The reported queue size counts
    the current entry and everything after it.
    """

    name = "netim"

    def __init__(self, api):
        self.api = api
        self._pending: List[Any] = []
        self._position = 0
        self._consumed: Set[str] = set()

    def _refresh(self) -> None:
        operations = self.api.query_ope_pending()
        if operations is None:
            operations = []
        if not isinstance(operations, (list, tuple)):
            raise QueueError(f"Unexpected queryOpePending result: {operations!r}")

        self._pending = [
            op for op in operations
            if str(_field(op, "id_ope")) not in self._consumed
        ]
        self._position = 0
        logger.debug(f"Fetched {len(self._pending)} pending operations")

    def fetch_next(self) -> Tuple[Optional[MessageEnvelope], int]:
        if self._position >= len(self._pending):
            self._refresh()

        remaining = len(self._pending) - self._position
        if remaining <= 0:
            return None, 0

        operation = self._pending[self._position]
        self._position += 1

        op_id = _field(operation, "id_ope")
        domain = _field(operation, "data_ope")
        code = _field(operation, "code_ope") or ""

        envelope = MessageEnvelope(
            id=str(op_id) if op_id is not None else None,
            raw_type=code,
            raw_text=code,
            domain_names=(domain,) if domain else (),
            detail_ref=operation,
            extra={"operation": dict(operation) if isinstance(operation, dict) else vars(operation)},
        )
        return envelope, remaining

    def ack(self, message_id: str) -> None:
        self._consumed.add(str(message_id))

    def fetch_detail(self, ref: Any) -> MessageDetail:
        value = _field(ref, "date_ope")
        if not value:
            raise QueueDetailError(_field(ref, "id_ope"), "operation has no date")

        try:
            timestamp = value if isinstance(value, datetime) else date_parser.parse(str(value))
        except (ValueError, OverflowError) as e:
            raise QueueDetailError(_field(ref, "id_ope"), f"invalid date {value!r}: {e}")

        return MessageDetail(timestamp=to_utc(timestamp))

    def close(self) -> None:
        """Forget the cached list; consumed ids only live for one session."""
        self._pending = []
        self._position = 0
        self._consumed.clear()
