"""
Vendor queue clients.
"""

from registry_poll.queue.base import RegistryQueueClient
from registry_poll.queue.epp import EPPQueueClient
from registry_poll.queue.ascio import AscioQueueClient
from registry_poll.queue.netim import NetimQueueClient

__all__ = [
    "RegistryQueueClient",
    "EPPQueueClient",
    "AscioQueueClient",
    "NetimQueueClient",
]
