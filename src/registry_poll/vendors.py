"""
Vendor Registry

Pairs each supported vendor with its queue client class and type table,
so one PollLoop serves every vendor.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Type

from registry_poll.classifier import ASCIO_TYPES, EPP_TYPES, NETIM_TYPES, MessageClassifier
from registry_poll.exceptions import ConfigurationError
from registry_poll.models import NotificationType
from registry_poll.queue import AscioQueueClient, EPPQueueClient, NetimQueueClient, RegistryQueueClient


@dataclass(frozen=True)
class Vendor:
    """Supported vendor."""
    name: str
    queue_client: Type[RegistryQueueClient]
    types: Mapping[str, NotificationType]
    description: str = ""


VENDORS: Dict[str, Vendor] = {
    vendor.name: vendor
    for vendor in (
        Vendor("epp", EPPQueueClient, EPP_TYPES, "Generic EPP registry (RFC 5730 poll)"),
        Vendor("ascio", AscioQueueClient, ASCIO_TYPES, "Ascio order message queue"),
        Vendor("netim", NetimQueueClient, NETIM_TYPES, "Netim pending operations"),
    )
}


def get_vendor(name: str) -> Vendor:
    """
    Look up a vendor by name (case-insensitive).

    Raises:
        ConfigurationError: If the vendor is unknown
    """
    vendor = VENDORS.get((name or "").lower())
    if vendor is None:
        known = ", ".join(sorted(VENDORS))
        raise ConfigurationError(f"Unknown vendor '{name}' (known: {known})")
    return vendor


def get_classifier(name: str) -> MessageClassifier:
    """Build the classifier for a vendor."""
    return MessageClassifier(get_vendor(name).types)
