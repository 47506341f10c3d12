"""
EPP Framing

RFC 5734 data units: every EPP message on the wire is preceded by a
4-byte big-endian length that counts the header itself.
"""

import struct

from registry_poll.exceptions import EPPFrameError

HEADER_SIZE = 4

# 10MB; poll responses are small, this only guards against garbage headers
MAX_FRAME_SIZE = 10 * 1024 * 1024


def encode_frame(data: bytes) -> bytes:
    """
    Prefix a payload with its total frame length.

    Raises:
        EPPFrameError: If the frame would exceed MAX_FRAME_SIZE
    """
    total_length = len(data) + HEADER_SIZE
    if total_length > MAX_FRAME_SIZE:
        raise EPPFrameError(f"Frame too large: {total_length} bytes (max {MAX_FRAME_SIZE})")
    return struct.pack("!I", total_length) + data


def decode_frame_header(header: bytes) -> int:
    """
    Decode a frame header into the total frame length.

    Raises:
        EPPFrameError: If the header is malformed or out of range
    """
    if len(header) != HEADER_SIZE:
        raise EPPFrameError(f"Invalid header length: {len(header)} (expected {HEADER_SIZE})")

    length = struct.unpack("!I", header)[0]
    if length < HEADER_SIZE:
        raise EPPFrameError(f"Frame length too small: {length}")
    if length > MAX_FRAME_SIZE:
        raise EPPFrameError(f"Frame length too large: {length}")
    return length


class FrameReader:
    """Reassembles frames from a stream of partial reads."""

    def __init__(self, read_func):
        """
        Args:
            read_func: Function that reads up to n bytes, b"" on EOF
        """
        self.read_func = read_func
        self.buffer = b""

    def _fill(self, size: int, error: str) -> None:
        while len(self.buffer) < size:
            chunk = self.read_func(4096)
            if not chunk:
                raise EPPFrameError(error)
            self.buffer += chunk

    def read_frame(self) -> bytes:
        """Read the next complete frame payload."""
        self._fill(HEADER_SIZE, "Connection closed with partial header" if self.buffer else "Connection closed")
        total_length = decode_frame_header(self.buffer[:HEADER_SIZE])
        self._fill(total_length, "Connection closed with partial frame")

        payload = self.buffer[HEADER_SIZE:total_length]
        self.buffer = self.buffer[total_length:]
        return payload


class FrameWriter:
    """Writes whole frames through a send function that may write partially."""

    def __init__(self, write_func):
        self.write_func = write_func

    def write_frame(self, data: bytes) -> int:
        """Write one frame; returns bytes written including the header."""
        frame = encode_frame(data)
        total_written = 0

        while total_written < len(frame):
            written = self.write_func(frame[total_written:])
            if written is None or written <= 0:
                raise EPPFrameError("Failed to write frame")
            total_written += written

        return total_written
