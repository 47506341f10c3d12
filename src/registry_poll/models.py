"""
Registry Poll Models

Data classes for queue envelopes, notifications and poll results, plus the
EPP wire models the EPP queue client parses into.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise a datetime to timezone-aware UTC. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Notification Models
# =============================================================================

class NotificationType(str, Enum):
    """Canonical domain lifecycle event kinds."""
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    RENEWED = "renewed"
    DELETED = "deleted"


DEFAULT_MESSAGE = "Domain Notification"


@dataclass(frozen=True)
class MessageEnvelope:
    """One raw, unclassified queue entry.

    The envelope is built fresh by each fetch and never mutated.
    ``detail_ref`` is opaque to the poll loop and only passed back to the
    queue client's ``fetch_detail``.
    """
    id: Optional[str]
    raw_type: str
    raw_text: str = ""
    domain_names: Tuple[str, ...] = ()
    detail_ref: Any = None
    approx_timestamp: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class MessageDetail:
    """Extended message detail holding the authoritative event timestamp."""
    timestamp: datetime
    data: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class DomainNotification:
    """Classified domain lifecycle notification."""
    id: str
    type: NotificationType
    message: str
    domains: Tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_envelope(
        cls,
        envelope: MessageEnvelope,
        type: NotificationType,
        created_at: datetime,
    ) -> "DomainNotification":
        """Build a notification from a classified envelope."""
        return cls(
            id=envelope.id,
            type=type,
            message=envelope.raw_text or DEFAULT_MESSAGE,
            domains=tuple(envelope.domain_names),
            created_at=created_at,
            extra=dict(envelope.extra),
        )


@dataclass(frozen=True)
class PollResult:
    """Result of one poll invocation."""
    notifications: Tuple[DomainNotification, ...] = ()
    count_remaining: int = 0


# =============================================================================
# EPP Response Models
# =============================================================================

@dataclass
class Greeting:
    """EPP server greeting."""
    server_id: str
    server_date: datetime
    version: List[str] = field(default_factory=list)
    lang: List[str] = field(default_factory=list)
    obj_uris: List[str] = field(default_factory=list)
    ext_uris: List[str] = field(default_factory=list)


@dataclass
class EPPResponse:
    """Generic EPP response."""
    code: int
    message: str
    cl_trid: Optional[str] = None
    sv_trid: Optional[str] = None
    data: Any = None
    raw_xml: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if response indicates success."""
        return 1000 <= self.code < 2000


@dataclass
class TransferData:
    """Domain transfer data carried in a poll message (domain:trnData)."""
    name: str
    tr_status: str
    re_id: str = ""  # Requesting registrar
    re_date: Optional[datetime] = None
    ac_id: str = ""  # Acting registrar
    ac_date: Optional[datetime] = None


@dataclass
class PollMessage:
    """EPP poll message (msgQ plus any object data)."""
    id: str
    count: int
    qdate: Optional[datetime]
    message: str
    msg_type: str = "message"
    domain: Optional[str] = None
    transfer: Optional[TransferData] = None
    raw_xml: Optional[str] = None
