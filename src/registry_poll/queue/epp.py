"""
EPP Queue Client

Adapts the EPP <poll> command (RFC 5730 section 2.9.2.3) to the
RegistryQueueClient interface.
"""

import logging
from typing import Optional, Tuple

from registry_poll.client import EPPClient
from registry_poll.exceptions import QueueDetailError
from registry_poll.models import MessageDetail, MessageEnvelope, PollMessage
from registry_poll.queue.base import RegistryQueueClient

logger = logging.getLogger("regpoll.queue.epp")


class EPPQueueClient(RegistryQueueClient):
    """
    Message queue of an EPP registry session.

    The raw type of each envelope is derived from the poll response's
    resData element ("transfer" for domain:trnData, "message" when there is
    none), see registry_poll.xml_parser.POLL_DATA_TYPES.

    EPP carries the event date on the message itself, so fetch_detail()
    makes no network call: it returns the queue date, falling back to the
    transfer request date.
    """

    name = "epp"

    def __init__(self, client: EPPClient, client_id: str = None, password: str = None):
        """
        Initialize EPP queue client.

        Args:
            client: EPP client (connected or not)
            client_id: Registrar ID; when given, connect() also logs in
            password: Registrar password
        """
        self.client = client
        self.client_id = client_id
        self.password = password

    def connect(self) -> None:
        """Connect and log in unless the client already has a session."""
        if not self.client.is_connected:
            self.client.connect()
        if self.client_id and not self.client.is_logged_in:
            self.client.login(self.client_id, self.password)

    def close(self) -> None:
        """Log out and disconnect."""
        self.client.disconnect()

    def fetch_next(self) -> Tuple[Optional[MessageEnvelope], int]:
        response, message = self.client.poll_request()

        if message is None or message.count == 0:
            logger.debug(f"Queue empty ({response.code})")
            return None, 0

        envelope = MessageEnvelope(
            id=message.id or None,
            raw_type=message.msg_type,
            raw_text=message.message,
            domain_names=(message.domain,) if message.domain else (),
            detail_ref=message,
            approx_timestamp=message.qdate,
            extra={"xml": message.raw_xml},
        )
        return envelope, message.count

    def ack(self, message_id: str) -> None:
        self.client.poll_ack(message_id)

    def fetch_detail(self, ref: PollMessage) -> MessageDetail:
        if not isinstance(ref, PollMessage):
            raise QueueDetailError(ref, "not an EPP poll message")

        timestamp = ref.qdate
        if timestamp is None and ref.transfer is not None:
            timestamp = ref.transfer.re_date
        if timestamp is None:
            raise QueueDetailError(ref.id, "message has no date")

        data = {"msg_type": ref.msg_type}
        if ref.transfer is not None:
            data["tr_status"] = ref.transfer.tr_status
            data["re_id"] = ref.transfer.re_id
            data["ac_id"] = ref.transfer.ac_id
        return MessageDetail(timestamp=timestamp, data=data)
