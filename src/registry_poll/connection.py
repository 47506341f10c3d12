"""
EPP Connection

TLS transport to an EPP registry with client certificate authentication.
"""

import logging
import socket
import ssl
from typing import Optional

from registry_poll.exceptions import EPPConnectionError
from registry_poll.framing import FrameReader, FrameWriter

logger = logging.getLogger("regpoll.connection")


class EPPConnection:
    """
    Framed TLS 1.2+ connection to an EPP server.

    One connection carries one EPP session; the session itself (login,
    logout) is handled by EPPClient.
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
    ):
        """
        Initialize EPP connection.

        Args:
            host: EPP server hostname
            port: EPP server port (default: 700)
            cert_file: Path to client certificate (PEM)
            key_file: Path to client private key (PEM)
            ca_file: Path to CA certificate(s) (PEM)
            timeout: Socket timeout in seconds, also bounds each poll call
            verify_server: Whether to verify server certificate
        """
        self.host = host
        self.port = port
        self.cert_file = cert_file
        self.key_file = key_file
        self.ca_file = ca_file
        self.timeout = timeout
        self.verify_server = verify_server

        self._ssl_socket: Optional[ssl.SSLSocket] = None
        self._frame_reader: Optional[FrameReader] = None
        self._frame_writer: Optional[FrameWriter] = None

    @property
    def is_connected(self) -> bool:
        """Check if connected to server."""
        return self._ssl_socket is not None

    def connect(self) -> None:
        """
        Open the TLS connection.

        Raises:
            EPPConnectionError: If connection fails
        """
        if self.is_connected:
            raise EPPConnectionError("Already connected")

        context = self._create_ssl_context()
        raw_socket = None
        try:
            logger.debug(f"Connecting to {self.host}:{self.port}")
            raw_socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self._ssl_socket = context.wrap_socket(raw_socket, server_hostname=self.host)
        except ssl.SSLError as e:
            self._close_socket(raw_socket)
            raise EPPConnectionError(f"TLS error: {e}")
        except socket.timeout:
            self._close_socket(raw_socket)
            raise EPPConnectionError(f"Connection timeout to {self.host}:{self.port}")
        except OSError as e:
            self._close_socket(raw_socket)
            raise EPPConnectionError(f"Socket error: {e}")

        self._frame_reader = FrameReader(self._ssl_socket.recv)
        self._frame_writer = FrameWriter(self._ssl_socket.send)

        cipher = self._ssl_socket.cipher()
        logger.info(f"Connected to {self.host}:{self.port}")
        if cipher:
            logger.debug(f"TLS cipher: {cipher[0]}, version: {cipher[1]}")

    def disconnect(self) -> None:
        """Close connection to EPP server."""
        if not self.is_connected:
            return

        self._frame_reader = None
        self._frame_writer = None
        try:
            self._ssl_socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # peer already gone
        self._close_socket(self._ssl_socket)
        self._ssl_socket = None
        logger.info(f"Disconnected from {self.host}:{self.port}")

    def send(self, data: bytes) -> None:
        """
        Send one EPP frame.

        Raises:
            EPPConnectionError: If send fails
        """
        if not self.is_connected:
            raise EPPConnectionError("Not connected")

        try:
            self._frame_writer.write_frame(data)
        except OSError as e:
            raise EPPConnectionError(f"Send failed: {e}")
        logger.debug(f"Sent {len(data)} bytes")

    def receive(self) -> bytes:
        """
        Receive one EPP frame.

        Raises:
            EPPConnectionError: If receive fails
        """
        if not self.is_connected:
            raise EPPConnectionError("Not connected")

        try:
            data = self._frame_reader.read_frame()
        except socket.timeout:
            raise EPPConnectionError("Read timeout")
        except OSError as e:
            raise EPPConnectionError(f"Receive failed: {e}")
        logger.debug(f"Received {len(data)} bytes")
        return data

    def send_and_receive(self, data: bytes) -> bytes:
        """Send a command and return the response frame."""
        self.send(data)
        return self.receive()

    def _create_ssl_context(self) -> ssl.SSLContext:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.minimum_version = ssl.TLSVersion.TLSv1_2

        if self.verify_server:
            context.verify_mode = ssl.CERT_REQUIRED
            context.check_hostname = True
        else:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        else:
            context.load_default_certs()

        if self.cert_file:
            # key_file None means cert and key share one PEM
            context.load_cert_chain(certfile=self.cert_file, keyfile=self.key_file)

        return context

    @staticmethod
    def _close_socket(sock) -> None:
        if sock is None:
            return
        try:
            sock.close()
        except OSError:
            pass

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        return False
