"""
EPP Client

EPP session client: greeting, login/logout and the poll command.
"""

import logging
from typing import Optional, Tuple

from registry_poll.connection import EPPConnection
from registry_poll.exceptions import EPPConnectionError, raise_for_code
from registry_poll.models import EPPResponse, Greeting, PollMessage
from registry_poll.xml_builder import XMLBuilder
from registry_poll.xml_parser import XMLParser

logger = logging.getLogger("regpoll.client")

# Command completed successfully; no messages
CODE_NO_MESSAGES = 1300


class EPPClient:
    """
    EPP session client.

    Example:
        client = EPPClient(
            host="epp.registry.example",
            cert_file="client.crt",
            key_file="client.key",
        )

        with client:
            client.login("registrar1", "password123")
            response, message = client.poll_request()
            if message:
                client.poll_ack(message.id)
    """

    def __init__(
        self,
        host: str,
        port: int = 700,
        cert_file: str = None,
        key_file: str = None,
        ca_file: str = None,
        timeout: int = 30,
        verify_server: bool = True,
        connection: EPPConnection = None,
    ):
        """
        Initialize EPP client.

        Args:
            host: EPP server hostname
            port: EPP server port (default: 700)
            cert_file: Path to client certificate (PEM)
            key_file: Path to client private key (PEM)
            ca_file: Path to CA certificate(s) (PEM)
            timeout: Connection timeout in seconds
            verify_server: Whether to verify server certificate
            connection: Pre-built connection, overrides the options above
        """
        self._connection = connection or EPPConnection(
            host=host,
            port=port,
            cert_file=cert_file,
            key_file=key_file,
            ca_file=ca_file,
            timeout=timeout,
            verify_server=verify_server,
        )

        self._greeting: Optional[Greeting] = None
        self._logged_in = False
        self._cl_trid_counter = 0

    @property
    def is_connected(self) -> bool:
        """Check if connected to server."""
        return self._connection.is_connected

    @property
    def is_logged_in(self) -> bool:
        """Check if logged in."""
        return self._logged_in

    @property
    def greeting(self) -> Optional[Greeting]:
        """Server greeting received on connect."""
        return self._greeting

    def _generate_cl_trid(self) -> str:
        """Generate unique client transaction ID."""
        self._cl_trid_counter += 1
        return f"POLL-{self._cl_trid_counter:06d}"

    def _send_command(self, xml: bytes) -> bytes:
        if not self.is_connected:
            raise EPPConnectionError("Not connected to server")
        return self._connection.send_and_receive(xml)

    def _check_response(self, response: EPPResponse) -> EPPResponse:
        """Raise for error result codes, pass successful responses through."""
        raise_for_code(response.code, response.message)
        return response

    # =========================================================================
    # Connection Management
    # =========================================================================

    def connect(self) -> Greeting:
        """
        Connect and read the server greeting.

        Raises:
            EPPConnectionError: If connection fails
        """
        self._connection.connect()
        self._greeting = XMLParser.parse_greeting(self._connection.receive())
        logger.info(f"Connected to {self._greeting.server_id}")
        return self._greeting

    def disconnect(self) -> None:
        """Logout if needed and disconnect."""
        if self._logged_in:
            try:
                self.logout()
            except Exception as e:
                logger.warning(f"Logout failed during disconnect: {e}")

        self._connection.disconnect()
        self._greeting = None
        self._logged_in = False

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        return False

    # =========================================================================
    # Session Commands
    # =========================================================================

    def hello(self) -> Greeting:
        """Send hello and return the fresh greeting."""
        return XMLParser.parse_greeting(self._send_command(XMLBuilder.build_hello()))

    def login(self, client_id: str, password: str, lang: str = "en") -> EPPResponse:
        """
        Login to EPP server.

        Object and extension URIs are taken from the greeting when present.

        Raises:
            EPPAuthenticationError: If login fails
        """
        obj_uris = self._greeting.obj_uris if self._greeting and self._greeting.obj_uris else None
        ext_uris = self._greeting.ext_uris if self._greeting else None

        xml = XMLBuilder.build_login(
            client_id=client_id,
            password=password,
            lang=lang,
            obj_uris=obj_uris,
            ext_uris=ext_uris,
            cl_trid=self._generate_cl_trid(),
        )
        response = self._check_response(XMLParser.parse_response(self._send_command(xml)))

        self._logged_in = True
        logger.info(f"Logged in as {client_id}")
        return response

    def logout(self) -> EPPResponse:
        """Logout from EPP server."""
        xml = XMLBuilder.build_logout(cl_trid=self._generate_cl_trid())
        response = XMLParser.parse_response(self._send_command(xml))

        self._logged_in = False
        logger.info("Logged out")
        return response

    # =========================================================================
    # Poll Commands
    # =========================================================================

    def poll_request(self) -> Tuple[EPPResponse, Optional[PollMessage]]:
        """
        Request the oldest queued message.

        Returns:
            Tuple of (EPPResponse, PollMessage or None if queue is empty)

        Raises:
            EPPCommandError: If command fails
        """
        xml = XMLBuilder.build_poll_request(cl_trid=self._generate_cl_trid())
        response_xml = self._send_command(xml)
        response = XMLParser.parse_response(response_xml)

        if response.code == CODE_NO_MESSAGES:
            return response, None

        self._check_response(response)
        return response, XMLParser.parse_poll_message(response_xml)

    def poll_ack(self, msg_id: str) -> EPPResponse:
        """
        Acknowledge (dequeue) a message.

        Raises:
            EPPCommandError: If command fails
        """
        xml = XMLBuilder.build_poll_ack(msg_id=msg_id, cl_trid=self._generate_cl_trid())
        response = XMLParser.parse_response(self._send_command(xml))
        return self._check_response(response)
