"""
Registry Poll

Drains vendor-hosted registry message queues into canonical domain
lifecycle notifications (transfer in/out, renewal, deletion) within a
bounded wall-clock budget.
"""

__version__ = "1.0.0"

from registry_poll.poller import PollLoop, TIME_BUDGET, poll
from registry_poll.classifier import (
    ASCIO_TYPES,
    EPP_TYPES,
    NETIM_TYPES,
    NOT_APPLICABLE,
    MessageClassifier,
)
from registry_poll.recency import RecencyFilter, keep
from registry_poll.client import EPPClient
from registry_poll.queue import (
    AscioQueueClient,
    EPPQueueClient,
    NetimQueueClient,
    RegistryQueueClient,
)
from registry_poll.vendors import VENDORS, get_classifier, get_vendor
from registry_poll.models import (
    DomainNotification,
    MessageDetail,
    MessageEnvelope,
    NotificationType,
    PollMessage,
    PollResult,
)
from registry_poll.exceptions import (
    RegistryPollError,
    ConfigurationError,
    QueueError,
    QueueDetailError,
    EPPError,
    EPPConnectionError,
    EPPAuthenticationError,
    EPPCommandError,
)

__all__ = [
    # Poll loop
    "PollLoop",
    "TIME_BUDGET",
    "poll",
    # Classification
    "MessageClassifier",
    "NOT_APPLICABLE",
    "EPP_TYPES",
    "ASCIO_TYPES",
    "NETIM_TYPES",
    "RecencyFilter",
    "keep",
    # Queue clients
    "RegistryQueueClient",
    "EPPQueueClient",
    "AscioQueueClient",
    "NetimQueueClient",
    "EPPClient",
    # Vendors
    "VENDORS",
    "get_vendor",
    "get_classifier",
    # Models
    "DomainNotification",
    "MessageDetail",
    "MessageEnvelope",
    "NotificationType",
    "PollMessage",
    "PollResult",
    # Exceptions
    "RegistryPollError",
    "ConfigurationError",
    "QueueError",
    "QueueDetailError",
    "EPPError",
    "EPPConnectionError",
    "EPPAuthenticationError",
    "EPPCommandError",
]
