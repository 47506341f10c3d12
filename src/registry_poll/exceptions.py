"""
Registry Poll Exceptions

Custom exception hierarchy for queue polling and the EPP wire client.
"""


class RegistryPollError(Exception):
    """Base registry poll exception."""

    def __init__(self, message: str, code: int = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(RegistryPollError):
    """Invalid or incomplete configuration."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)


# =============================================================================
# Queue Errors
# =============================================================================

class QueueError(RegistryPollError):
    """Reading the upstream message queue failed."""

    def __init__(self, message: str = "Queue read failed", code: int = None):
        super().__init__(message, code)


class QueueDetailError(QueueError):
    """Extended message detail could not be retrieved."""

    def __init__(self, ref, reason: str = None):
        message = f"No detail available for {ref!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.ref = ref


# =============================================================================
# EPP Errors
# =============================================================================

class EPPError(RegistryPollError):
    """Base EPP exception."""


class EPPConnectionError(EPPError):
    """Connection to EPP server failed."""

    def __init__(self, message: str = "Connection failed"):
        super().__init__(message)


class EPPFrameError(EPPError):
    """EPP frame encoding/decoding error."""

    def __init__(self, message: str = "Frame error"):
        super().__init__(message)


class EPPXMLError(EPPError):
    """XML parsing or building error."""

    def __init__(self, message: str = "XML error"):
        super().__init__(message)


class EPPAuthenticationError(EPPError):
    """Authentication failed (2200)."""

    def __init__(self, message: str = "Authentication error", code: int = 2200):
        super().__init__(message, code=code)


class EPPCommandError(EPPError):
    """Command execution failed."""

    def __init__(self, message: str, code: int, reason: str = None):
        super().__init__(message, code)
        self.reason = reason

    def __str__(self):
        base = f"[{self.code}] {self.message}"
        if self.reason:
            base += f" - {self.reason}"
        return base


def raise_for_code(code: int, message: str, reason: str = None):
    """Raise appropriate exception for EPP response code."""
    if code < 2000:
        return  # Success codes

    if code in (2200, 2201, 2202):
        raise EPPAuthenticationError(message, code)

    raise EPPCommandError(message, code, reason)
