"""
Message Classifier

Maps vendor-specific queue message types onto the canonical
NotificationType enumeration. Anything unmapped is NOT_APPLICABLE.
"""

from typing import Mapping, Optional

from registry_poll.models import NotificationType

# Returned for raw types with no canonical counterpart
NOT_APPLICABLE = None


# =============================================================================
# Vendor Tables
# =============================================================================

# EPP types are derived from the poll resData element by the EPP queue client
EPP_TYPES = {
    "transfer": NotificationType.TRANSFER_IN,
}

ASCIO_TYPES = {
    "Transfer": NotificationType.TRANSFER_IN,
    "Register": NotificationType.TRANSFER_IN,
    "TransferAway": NotificationType.TRANSFER_OUT,
    "Delete": NotificationType.DELETED,
    "Renew": NotificationType.RENEWED,
}

NETIM_TYPES = {
    "domainTransferIn": NotificationType.TRANSFER_IN,
    "domainRenew": NotificationType.RENEWED,
    "domainDelete": NotificationType.DELETED,
}


class MessageClassifier:
    """
    Lookup-table classifier for one vendor's message types.

    classify() is total: unknown, empty or non-string codes map to
    NOT_APPLICABLE and it never raises.

    Example:
        classifier = MessageClassifier(ASCIO_TYPES)
        classifier.classify("TransferAway")  # NotificationType.TRANSFER_OUT
        classifier.classify("Update")        # None
    """

    def __init__(self, table: Mapping[str, NotificationType], case_sensitive: bool = False):
        """
        Initialize classifier.

        Args:
            table: Raw type code -> canonical type
            case_sensitive: Whether raw codes must match the table's case
        """
        self.case_sensitive = case_sensitive
        self._table = {
            self._key(code): NotificationType(value)
            for code, value in table.items()
        }

    def _key(self, raw_type) -> str:
        key = str(raw_type).strip()
        return key if self.case_sensitive else key.lower()

    def classify(self, raw_type) -> Optional[NotificationType]:
        """
        Classify a raw message type.

        Args:
            raw_type: Vendor type string or code

        Returns:
            Canonical NotificationType, or NOT_APPLICABLE
        """
        if raw_type is None:
            return NOT_APPLICABLE
        return self._table.get(self._key(raw_type), NOT_APPLICABLE)

    def __call__(self, raw_type) -> Optional[NotificationType]:
        return self.classify(raw_type)

    def __repr__(self):
        return f"MessageClassifier({len(self._table)} types)"
