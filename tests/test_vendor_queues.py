"""
Tests for the Ascio and Netim queue adapters.
"""

from datetime import datetime, timezone

import pytest

from registry_poll.exceptions import QueueDetailError, QueueError
from registry_poll.models import NotificationType
from registry_poll.poller import PollLoop
from registry_poll.queue import AscioQueueClient, NetimQueueClient
from registry_poll.vendors import get_classifier

from conftest import utc


class FakeAscioApi:
    """Ascio SOAP transport backed by a list of queue messages and orders."""

    def __init__(self, messages, orders=None):
        self.messages = list(messages)
        self.orders = orders or {}
        self.calls = []

    def make_request(self, action, params, result_key):
        self.calls.append((action, params, result_key))

        if action == "pollQueue":
            if not self.messages:
                return {"TotalCount": 0}
            return {"TotalCount": len(self.messages), "Message": self.messages[0]}

        if action == "ackQueueMessage":
            self.messages = [m for m in self.messages if m["Id"] != params["MessageId"]]
            return {"ResultCode": 200}

        if action == "getMessages":
            created = self.orders.get(params["OrderId"])
            if created is None:
                return {"Messages": {}}
            return {"Messages": {"Message": [{"Created": created}]}}

        raise AssertionError(f"unexpected action {action}")


def ascio_message(id, order_type, order_id, domain="example.com"):
    return {
        "Id": id,
        "OrderType": order_type,
        "OrderId": order_id,
        "ObjectName": domain,
        "Message": f"{order_type} completed",
    }


class TestAscioQueueClient:
    """Tests for the Ascio adapter."""

    def test_fetch_next(self):
        """pollQueue result maps onto an envelope."""
        api = FakeAscioApi([ascio_message("m1", "TransferAway", "o1")])
        queue = AscioQueueClient(api)

        envelope, count = queue.fetch_next()

        assert count == 1
        assert envelope.id == "m1"
        assert envelope.raw_type == "TransferAway"
        assert envelope.detail_ref == "o1"
        assert envelope.domain_names == ("example.com",)
        assert envelope.approx_timestamp is None
        assert api.calls[0][1] == {"MessageType": "MessageToPartner", "ObjectType": "DomainType"}

    def test_fetch_next_empty(self):
        """A zero TotalCount is an empty queue."""
        assert AscioQueueClient(FakeAscioApi([])).fetch_next() == (None, 0)

    def test_unexpected_poll_result(self):
        """Non-mapping results are a queue error."""
        class BrokenApi:
            def make_request(self, action, params, result_key):
                return "error"

        with pytest.raises(QueueError):
            AscioQueueClient(BrokenApi()).fetch_next()

    def test_ack(self):
        """ack() calls ackQueueMessage with the message id."""
        api = FakeAscioApi([ascio_message("m1", "Renew", "o1")])

        AscioQueueClient(api).ack("m1")

        assert api.calls[-1][:2] == ("ackQueueMessage", {"MessageId": "m1"})
        assert api.messages == []

    def test_fetch_detail_string_date(self):
        """Created strings are parsed and normalised to UTC."""
        api = FakeAscioApi([], {"o1": "2024-05-01T12:00:00+02:00"})

        detail = AscioQueueClient(api).fetch_detail("o1")

        assert detail.timestamp == utc(2024, 5, 1, 10, 0)
        assert detail.data == {"order_id": "o1"}

    def test_fetch_detail_datetime(self):
        """Created values already decoded by the transport pass through."""
        api = FakeAscioApi([], {"o1": datetime(2024, 5, 1, 12, 0)})

        detail = AscioQueueClient(api).fetch_detail("o1")

        assert detail.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("ref", ["missing", None, ""])
    def test_fetch_detail_unknown_order(self, ref):
        """Missing orders raise QueueDetailError."""
        with pytest.raises(QueueDetailError):
            AscioQueueClient(FakeAscioApi([])).fetch_detail(ref)

    def test_fetch_detail_bad_date(self):
        """Unparseable Created values raise QueueDetailError."""
        api = FakeAscioApi([], {"o1": "sometime"})

        with pytest.raises(QueueDetailError):
            AscioQueueClient(api).fetch_detail("o1")

    @pytest.mark.parametrize("msg_id", ["", None, 0])
    def test_message_without_id(self, msg_id):
        """Entries with an empty Id are skipped and never acked."""
        class OneShotApi(FakeAscioApi):
            def make_request(self, action, params, result_key):
                response = super().make_request(action, params, result_key)
                if action == "pollQueue":
                    self.messages = []
                return response

        api = OneShotApi([ascio_message(msg_id, "Transfer", "o1")], {"o1": "2024-05-01T00:00:00Z"})
        queue = AscioQueueClient(api)

        envelope, _ = queue.fetch_next()
        assert envelope.id is None

        api.messages = [ascio_message(msg_id, "Transfer", "o1")]
        result = PollLoop(queue, get_classifier("ascio")).poll(10)

        assert result.notifications == ()
        assert result.count_remaining == 0
        assert not any(action == "ackQueueMessage" for action, _, _ in api.calls)
        assert not any(action == "getMessages" for action, _, _ in api.calls)

    def test_poll_loop(self):
        """Full drain: an unknown order is dropped after ack, Update is not applicable."""
        api = FakeAscioApi(
            [
                ascio_message("m1", "Transfer", "o1", "in.example"),
                ascio_message("m2", "Update", "o2"),
                ascio_message("m3", "Delete", "o-gone"),
                ascio_message("m4", "Renew", "o4", "renewed.example"),
            ],
            {"o1": "2024-05-01T00:00:00Z", "o2": "2024-05-01T00:00:00Z", "o4": "2024-05-02T00:00:00Z"},
        )

        result = PollLoop(AscioQueueClient(api), get_classifier("ascio")).poll(10)

        assert [(n.id, n.type) for n in result.notifications] == [
            ("m1", NotificationType.TRANSFER_IN),
            ("m4", NotificationType.RENEWED),
        ]
        assert result.notifications[1].domains == ("renewed.example",)
        assert result.count_remaining == 0
        assert api.messages == []
        detail_orders = [params["OrderId"] for action, params, _ in api.calls if action == "getMessages"]
        assert detail_orders == ["o1", "o-gone", "o4"]


def netim_op(id, code, domain="example.com", date="2024-05-01 10:00:00"):
    return {"id_ope": id, "code_ope": code, "data_ope": domain, "date_ope": date}


class FakeNetimApi:
    """Netim API returning a fixed pending list."""

    def __init__(self, operations):
        self.operations = operations
        self.calls = 0

    def query_ope_pending(self):
        self.calls += 1
        return self.operations


class TestNetimQueueClient:
    """Tests for the Netim adapter."""

    def test_serves_list_in_order(self):
        """Entries are served one at a time with the remaining count."""
        api = FakeNetimApi([netim_op(1, "domainRenew"), netim_op(2, "domainDelete")])
        queue = NetimQueueClient(api)

        first, count = queue.fetch_next()
        assert (first.id, first.raw_type, count) == ("1", "domainRenew", 2)
        second, count = queue.fetch_next()
        assert (second.id, count) == ("2", 1)
        assert api.calls == 1

    def test_consumed_ids_skipped_on_refetch(self):
        """Acked ids are not served again when the list is refetched."""
        api = FakeNetimApi([netim_op(1, "domainRenew"), netim_op(2, "domainDelete")])
        queue = NetimQueueClient(api)

        queue.fetch_next()
        queue.ack("1")
        queue.fetch_next()
        queue.ack("2")

        assert queue.fetch_next() == (None, 0)
        assert api.calls == 2

    def test_close_forgets_state(self):
        """close() resets the consumed set."""
        api = FakeNetimApi([netim_op(1, "domainRenew")])
        queue = NetimQueueClient(api)
        queue.fetch_next()
        queue.ack("1")

        queue.close()
        envelope, _ = queue.fetch_next()

        assert envelope.id == "1"

    def test_unexpected_result(self):
        """A non-list result is a queue error."""
        with pytest.raises(QueueError):
            NetimQueueClient(FakeNetimApi("error")).fetch_next()

    def test_attribute_style_operations(self):
        """Operations may be objects instead of dicts."""
        class Operation:
            def __init__(self):
                self.id_ope = 7
                self.code_ope = "domainTransferIn"
                self.data_ope = "moved.example"
                self.date_ope = "2024-05-01T08:00:00Z"

        queue = NetimQueueClient(FakeNetimApi([Operation()]))
        envelope, _ = queue.fetch_next()

        assert envelope.domain_names == ("moved.example",)
        assert queue.fetch_detail(envelope.detail_ref).timestamp == utc(2024, 5, 1, 8, 0)

    def test_fetch_detail_missing_date(self):
        """Operations without a date fail detail lookup."""
        with pytest.raises(QueueDetailError):
            NetimQueueClient(FakeNetimApi([])).fetch_detail(netim_op(1, "domainRenew", date=None))

    def test_poll_loop_with_since(self):
        """Older operations are acked but filtered out."""
        api = FakeNetimApi([
            netim_op(1, "domainDelete", "gone.example", "2024-04-30 23:59:59"),
            netim_op(2, "contactUpdate"),
            netim_op(3, "domainTransferIn", "new.example", "2024-05-01 00:00:00"),
        ])
        queue = NetimQueueClient(api)

        result = PollLoop(queue, get_classifier("netim")).poll(10, since=utc(2024, 5, 1))

        assert [n.id for n in result.notifications] == ["3"]
        assert result.notifications[0].type is NotificationType.TRANSFER_IN
        assert result.count_remaining == 0
