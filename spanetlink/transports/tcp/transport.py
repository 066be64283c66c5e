from __future__ import annotations

import logging
import socket
import time
from typing import TYPE_CHECKING, Optional

from spanetlink.parsing.rf import AttributeMapping, DecodeError, SpaAttributes, build_spa_attributes, parse
from spanetlink.parsing.rf.frame import ends_on_row_boundary, is_frame_complete
from spanetlink.transports.base import (
    ConnectFailedError,
    ConnectionState,
    DecodeFailedError,
    DeviceError,
    DeviceIOError,
    DeviceTimeoutError,
    DeviceTransport,
    HandshakeFailedError,
    NotConnectedError,
)

if TYPE_CHECKING:
    from spanetlink.domain.socket import SocketDescriptor

logger = logging.getLogger(__name__)

HANDSHAKE_REPLY = b"Successfully connected"
STATUS_REQUEST = b"RF\n"

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_IO_TIMEOUT = 5.0
DEFAULT_IDLE_GRACE = 0.5
DEFAULT_MAX_FRAME_BYTES = 64 * 1024
RECV_CHUNK_SIZE = 4096


def build_handshake(socket_id: int, member_id: int) -> bytes:
    return f"<connect--{socket_id}--{member_id}>".encode("ascii")


class DeviceSession(DeviceTransport):
    """
    A TCP session with one spa controller.

    ``connect`` moves the session from ``DISCONNECTED`` through ``HANDSHAKING``
    to ``READY``; ``poll`` exchanges one status request. Any failure closes
    the socket and leaves the session ``DISCONNECTED``. The session never
    reconnects by itself, callers decide when to call ``connect`` again.

    Only one thread may use a session at a time, except for ``close`` which
    may be called from another thread to abort a blocking call.
    """

    def __init__(
        self,
        descriptor: Optional["SocketDescriptor"] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        io_timeout: float = DEFAULT_IO_TIMEOUT,
        idle_grace: float = DEFAULT_IDLE_GRACE,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
        mapping: Optional[AttributeMapping] = None,
    ) -> None:
        self.descriptor = descriptor
        self.connect_timeout = connect_timeout
        self.io_timeout = io_timeout
        self.idle_grace = idle_grace
        self.max_frame_bytes = max_frame_bytes
        self.mapping = mapping
        self.state = ConnectionState.DISCONNECTED
        self._sock: Optional[socket.socket] = None

    def __enter__(self) -> "DeviceSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        name = self.descriptor.name if self.descriptor else None
        return f"{self.__class__.__name__}(spa={name!r}, state={self.state.value})"

    # ---- lifecycle ----
    def connect(self, descriptor: Optional["SocketDescriptor"] = None) -> None:
        """
        Open the TCP socket and perform the controller handshake.

        A session that is still open is closed first.

        Args:
            descriptor: Spa to connect to. Defaults to the one given at construction.

        Raises:
            ValueError: If no descriptor is known.
            ConnectFailedError: If the address is invalid or the TCP connect fails.
            HandshakeFailedError: If the spa does not acknowledge the handshake, or
                the session is closed while waiting for it.
        """
        if descriptor is not None:
            self.descriptor = descriptor
        if self.descriptor is None:
            raise ValueError("connect() needs a socket descriptor")
        if self._sock is not None:
            self.close()

        try:
            host, port = self.descriptor.address
        except ValueError as exc:
            raise ConnectFailedError(f"Invalid spa address {self.descriptor.host!r}: {exc}") from exc

        try:
            sock = socket.create_connection((host, port), timeout=self.connect_timeout)
        except OSError as exc:
            raise ConnectFailedError(f"Could not connect to spa at {host}:{port}: {exc}") from exc
        logger.info("Opened TCP socket to spa %r at %s:%s", self.descriptor.name, host, port)

        self._sock = sock
        self.state = ConnectionState.HANDSHAKING
        try:
            sock.settimeout(self.io_timeout)
            sock.sendall(build_handshake(self.descriptor.socket_id, self.descriptor.member_id))
            reply = self._recv_exactly(sock, len(HANDSHAKE_REPLY))
        except OSError as exc:
            self._fault("handshake", exc)
            raise HandshakeFailedError(f"Failed to handshake with spa: {exc}") from exc

        if self._sock is not sock:
            raise HandshakeFailedError("Session was closed during the handshake")

        if reply != HANDSHAKE_REPLY:
            self._fault("handshake", reply)
            raise HandshakeFailedError(f"Failed to handshake with spa, got {reply!r}")

        # A ready session carries no deadline; each poll sets its own.
        sock.settimeout(None)
        self.state = ConnectionState.READY
        logger.debug("Handshake with spa %r complete", self.descriptor.name)

    def close(self) -> None:
        sock, self._sock = self._sock, None
        self.state = ConnectionState.DISCONNECTED
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            sock.close()
        except OSError as exc:
            logger.debug("Error closing spa socket: %s", exc)

    # ---- requests ----
    def poll_raw(self, timeout: float | None = None) -> bytes:
        """
        Send a status request and return the raw frame bytes.

        Args:
            timeout: Deadline for the whole exchange in seconds. Defaults to ``io_timeout``.

        Raises:
            NotConnectedError: If the session is not ``READY``. No I/O is attempted.
            DeviceIOError: If the socket fails, the spa hangs up or the session is closed.
            DeviceTimeoutError: If no complete row arrives before the deadline.
            DecodeFailedError: If the reply exceeds ``max_frame_bytes``.
        """
        sock = self._sock
        if self.state is not ConnectionState.READY or sock is None:
            raise NotConnectedError(f"Cannot poll a session in state {self.state.value}")

        deadline = time.monotonic() + (self.io_timeout if timeout is None else timeout)
        try:
            sock.settimeout(max(deadline - time.monotonic(), 0.001))
            sock.sendall(STATUS_REQUEST)
            data = self._read_frame(sock, deadline)
            if self._sock is not sock:
                raise DeviceIOError("Session was closed during the poll")
            sock.settimeout(None)
        except DeviceError as exc:
            self._fault("poll", exc)
            raise
        except socket.timeout as exc:
            self._fault("poll", exc)
            raise DeviceTimeoutError(f"Spa did not answer within the deadline: {exc}") from exc
        except OSError as exc:
            self._fault("poll", exc)
            raise DeviceIOError(f"Failed to exchange data with spa: {exc}") from exc
        return data

    def poll(self, timeout: float | None = None) -> SpaAttributes:
        """
        Request and decode one status frame.

        Returns:
            A fresh ``SpaAttributes`` built with the session mapping.

        Raises:
            DecodeFailedError: If the reply is not an RF status frame.
            DeviceError: Any of the failures listed for ``poll_raw``.
        """
        raw = self.poll_raw(timeout=timeout)
        try:
            table = parse(raw)
        except DecodeError as exc:
            self._fault("decode", exc)
            raise DecodeFailedError(str(exc)) from exc
        return build_spa_attributes(table, self.mapping)

    def health(self) -> dict:
        status = super().health()
        status["spa"] = self.descriptor.name if self.descriptor else None
        return status

    # ---- helpers ----
    def _fault(self, stage: str, reason) -> None:
        self.state = ConnectionState.FAULTED
        logger.warning("Spa session %s failed: %s", stage, reason)
        self.close()

    def _recv_exactly(self, sock: socket.socket, size: int) -> bytes:
        buffer = bytearray()
        while len(buffer) < size:
            chunk = sock.recv(size - len(buffer))
            if not chunk:
                break
            buffer.extend(chunk)
        return bytes(buffer)

    def _read_frame(self, sock: socket.socket, deadline: float) -> bytes:
        # Read until the final row arrives or the deadline passes. The spa going
        # quiet ends the read early only when no row is left half-sent.
        buffer = bytearray()
        while not is_frame_complete(buffer):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            settled = bool(buffer) and ends_on_row_boundary(buffer)
            sock.settimeout(min(remaining, self.idle_grace) if settled else remaining)
            try:
                chunk = sock.recv(RECV_CHUNK_SIZE)
            except socket.timeout:
                if settled:
                    break
                if buffer:
                    continue
                raise
            if not chunk:
                if settled:
                    break
                raise DeviceIOError("Connection closed by spa" + (" in the middle of a row" if buffer else ""))
            buffer.extend(chunk)
            if len(buffer) > self.max_frame_bytes:
                raise DecodeFailedError(f"Frame exceeds {self.max_frame_bytes} bytes")

        if not buffer:
            raise DeviceTimeoutError("Spa did not answer within the deadline")
        if not ends_on_row_boundary(buffer):
            raise DeviceTimeoutError(f"Spa frame was cut off mid-row after {len(buffer)} bytes")
        return bytes(buffer)
