"""
Ascio Queue Client

Adapts the Ascio order-message queue (pollQueue, ackQueueMessage,
getMessages) to the RegistryQueueClient interface. The SOAP transport is
supplied by the caller.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from dateutil import parser as date_parser

from registry_poll.exceptions import QueueDetailError, QueueError
from registry_poll.models import MessageDetail, MessageEnvelope, to_utc
from registry_poll.queue.base import RegistryQueueClient

logger = logging.getLogger("regpoll.queue.ascio")


class AscioQueueClient(RegistryQueueClient):
    """
    Ascio partner message queue.

    ``api`` is any object with
    ``make_request(action: str, params: dict, result_key: str) -> dict``
    that raises on SOAP faults or error results.

    Envelopes carry no usable date; the order's creation time is looked up
    with getMessages, so a message whose order cannot be found is dropped
    by the poll loop.
    """

    name = "ascio"

    def __init__(self, api, message_type: str = "MessageToPartner", object_type: str = "DomainType"):
        """
        Args:
            api: SOAP transport
            message_type: Queue message type to poll
            object_type: Object type filter, keeps non-domain traffic out
        """
        self.api = api
        self.message_type = message_type
        self.object_type = object_type

    def fetch_next(self) -> Tuple[Optional[MessageEnvelope], int]:
        response = self.api.make_request(
            "pollQueue",
            {"MessageType": self.message_type, "ObjectType": self.object_type},
            "PollQueueResult",
        )
        if not isinstance(response, dict):
            raise QueueError(f"Unexpected pollQueue result: {response!r}")

        count = int(response.get("TotalCount") or 0)
        if count == 0:
            return None, 0

        message: Dict[str, Any] = response.get("Message") or {}
        domain = message.get("ObjectName")
        msg_id = message.get("Id")

        envelope = MessageEnvelope(
            id=str(msg_id) if msg_id not in (None, "", 0) else None,  # unackable
            raw_type=message.get("OrderType") or "",
            raw_text=message.get("Message") or "",
            domain_names=(domain,) if domain else (),
            detail_ref=message.get("OrderId"),
            extra={"response": json.dumps(message, default=str)},
        )
        return envelope, count

    def ack(self, message_id: str) -> None:
        self.api.make_request("ackQueueMessage", {"MessageId": message_id}, "AckQueueMessageResult")

    def fetch_detail(self, ref: Any) -> MessageDetail:
        if not ref:
            raise QueueDetailError(ref, "message has no order id")

        order = self.api.make_request("getMessages", {"OrderId": ref}, "GetMessagesResult")

        try:
            messages = order["Messages"]["Message"]
            first = messages[0] if isinstance(messages, list) else messages
            created = first["Created"]
        except (KeyError, IndexError, TypeError):
            raise QueueDetailError(ref, "order has no messages")

        try:
            timestamp = created if isinstance(created, datetime) else date_parser.parse(str(created))
        except (ValueError, OverflowError) as e:
            raise QueueDetailError(ref, f"invalid date {created!r}: {e}")

        return MessageDetail(timestamp=to_utc(timestamp), data={"order_id": ref})
