"""Tests for the TCP device session state machine (fake and loopback sockets)."""
import socket
import threading
from unittest.mock import patch

import pytest

from spanetlink.domain import SocketDescriptor, create_device_session
from spanetlink.parsing.rf import SpaAttributes
from spanetlink.transports import (
    ConnectFailedError,
    ConnectionState,
    DecodeFailedError,
    DeviceIOError,
    DeviceTimeoutError,
    HandshakeFailedError,
    NotConnectedError,
)
from spanetlink.transports.tcp.transport import DeviceSession, build_handshake

ACK = b"Successfully connected"
DESCRIPTOR = SocketDescriptor(host="192.0.2.10:9090", socket_id=42, member_id=7, name="Backyard")
CREATE_CONNECTION = "spanetlink.transports.tcp.transport.socket.create_connection"


class FakeSocket:
    """Scripted socket: each ``recv`` pops the next reply (bytes or exception).

    A callable reply is invoked and skipped, to act in between two reads.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.sent = []
        self.timeouts = []
        self.closed = False

    def settimeout(self, value):
        self.timeouts.append(value)

    def sendall(self, data):
        self.sent.append(data)

    def recv(self, size):
        if not self.replies:
            raise socket.timeout("timed out")
        item = self.replies.pop(0)
        if callable(item):
            item()
            return self.recv(size)
        if isinstance(item, Exception):
            raise item
        chunk, rest = item[:size], item[size:]
        if rest:
            self.replies.insert(0, rest)
        return chunk

    def shutdown(self, how):
        pass

    def close(self):
        self.closed = True


def _connected(fake, **options):
    session = DeviceSession(DESCRIPTOR, **options)
    with patch(CREATE_CONNECTION, return_value=fake) as create:
        session.connect()
    create.assert_called_once_with(("192.0.2.10", 9090), timeout=5.0)
    return session


def test_build_handshake():
    assert build_handshake(42, 7) == b"<connect--42--7>"


def test_connect_success():
    fake = FakeSocket(ACK)
    session = _connected(fake)
    assert session.state is ConnectionState.READY
    assert session.is_ready
    assert fake.sent == [b"<connect--42--7>"]
    assert fake.timeouts[0] == 5.0
    assert fake.timeouts[-1] is None


@pytest.mark.parametrize(
    "replies",
    [
        (b"Connection refused ...",),
        (b"Success", b""),
        (socket.timeout("timed out"),),
        (ConnectionResetError("reset"),),
    ],
)
def test_handshake_failure_closes_socket(replies):
    fake = FakeSocket(*replies)
    session = DeviceSession(DESCRIPTOR)
    with patch(CREATE_CONNECTION, return_value=fake):
        with pytest.raises(HandshakeFailedError):
            session.connect()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_connect_failure():
    session = DeviceSession(DESCRIPTOR)
    with patch(CREATE_CONNECTION, side_effect=ConnectionRefusedError("refused")):
        with pytest.raises(ConnectFailedError):
            session.connect()
    assert session.state is ConnectionState.DISCONNECTED


def test_connect_rejects_bad_address():
    session = DeviceSession(SocketDescriptor(host="", socket_id=1, member_id=2, name="Empty"))
    with patch(CREATE_CONNECTION) as create:
        with pytest.raises(ConnectFailedError):
            session.connect()
    create.assert_not_called()


def test_connect_without_descriptor():
    with pytest.raises(ValueError):
        DeviceSession().connect()


def test_poll_when_disconnected_does_no_io():
    session = DeviceSession(DESCRIPTOR)
    with patch(CREATE_CONNECTION) as create:
        with pytest.raises(NotConnectedError):
            session.poll()
    create.assert_not_called()


def test_poll_returns_attributes(rf_frame):
    fake = FakeSocket(ACK, rf_frame)
    session = _connected(fake)
    spa = session.poll()
    assert isinstance(spa, SpaAttributes)
    assert spa.water_temperature == pytest.approx(37.6)
    assert fake.sent == [b"<connect--42--7>", b"RF\n"]
    assert fake.timeouts[-1] is None
    assert session.state is ConnectionState.READY


def test_poll_reads_frame_in_chunks(rf_frame):
    fake = FakeSocket(ACK, rf_frame[:100], rf_frame[100:700], rf_frame[700:])
    session = _connected(fake)
    assert session.poll().pump(2).ok == 1
    assert fake.replies == []


def test_poll_raw_returns_whole_frame(rf_frame):
    fake = FakeSocket(ACK, rf_frame[:10], rf_frame[10:])
    session = _connected(fake)
    assert session.poll_raw() == rf_frame


def test_poll_accepts_frame_without_final_row(rf_frame):
    partial = rf_frame[: rf_frame.index(b",RG,")]
    fake = FakeSocket(ACK, partial)
    session = _connected(fake)
    spa = session.poll()
    assert spa.blower.speed == 1
    assert spa.pump(2).ok == 0


def test_poll_malformed_frame_disconnects():
    fake = FakeSocket(ACK, b"ERROR\n")
    session = _connected(fake)
    with pytest.raises(DecodeFailedError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_poll_io_error_disconnects():
    fake = FakeSocket(ACK, ConnectionResetError("reset by peer"))
    session = _connected(fake)
    with pytest.raises(DeviceIOError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed
    with pytest.raises(NotConnectedError):
        session.poll()


def test_poll_peer_closed_disconnects():
    fake = FakeSocket(ACK, b"")
    session = _connected(fake)
    with pytest.raises(DeviceIOError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED


def test_poll_timeout_disconnects():
    fake = FakeSocket(ACK)
    session = _connected(fake)
    with pytest.raises(DeviceTimeoutError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_poll_waits_out_a_pause_mid_row(rf_frame):
    cut = rf_frame.index(b",R5,") + 20
    fake = FakeSocket(ACK, rf_frame[:cut], socket.timeout("timed out"), rf_frame[cut:])
    session = _connected(fake)
    spa = session.poll()
    assert spa.water_temperature == pytest.approx(37.6)
    assert session.state is ConnectionState.READY


def test_poll_frame_cut_mid_row_at_deadline(rf_frame):
    cut = rf_frame.index(b",R5,") + 20
    fake = FakeSocket(ACK, rf_frame[:cut])
    session = _connected(fake)
    with pytest.raises(DeviceTimeoutError):
        session.poll(timeout=0.05)
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_poll_peer_closed_mid_row(rf_frame):
    cut = rf_frame.index(b",R5,") + 20
    fake = FakeSocket(ACK, rf_frame[:cut], b"")
    session = _connected(fake)
    with pytest.raises(DeviceIOError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED


def test_close_during_handshake_aborts_connect():
    session = DeviceSession(DESCRIPTOR)
    fake = FakeSocket(b"Successfully", session.close, b" connected")
    with patch(CREATE_CONNECTION, return_value=fake):
        with pytest.raises(HandshakeFailedError):
            session.connect()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_close_during_poll_aborts_read(rf_frame):
    fake = FakeSocket(ACK)
    session = _connected(fake)
    fake.replies.extend([rf_frame[:50], session.close, rf_frame[50:]])
    with pytest.raises(DeviceIOError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED
    assert fake.closed


def test_poll_oversized_frame(rf_frame):
    fake = FakeSocket(ACK, rf_frame)
    session = _connected(fake, max_frame_bytes=100)
    with pytest.raises(DecodeFailedError):
        session.poll()
    assert session.state is ConnectionState.DISCONNECTED


def test_reconnect_after_failure(rf_frame):
    first = FakeSocket(ACK, ConnectionResetError("reset"))
    second = FakeSocket(ACK, rf_frame)
    session = DeviceSession(DESCRIPTOR)
    with patch(CREATE_CONNECTION, side_effect=[first, second]):
        session.connect()
        with pytest.raises(DeviceIOError):
            session.poll()
        session.connect()
    assert session.poll().lights.brightness == 5


def test_connect_replaces_live_socket():
    first = FakeSocket(ACK)
    second = FakeSocket(ACK)
    session = DeviceSession(DESCRIPTOR)
    with patch(CREATE_CONNECTION, side_effect=[first, second]):
        session.connect()
        session.connect()
    assert first.closed
    assert not second.closed
    assert session.is_ready


def test_context_manager_closes():
    fake = FakeSocket(ACK)
    with patch(CREATE_CONNECTION, return_value=fake):
        with create_device_session(DESCRIPTOR) as session:
            assert session.is_ready
    assert fake.closed
    assert session.state is ConnectionState.DISCONNECTED
    session.close()


def test_health_reports_state():
    session = DeviceSession(DESCRIPTOR)
    assert session.health() == {"state": "disconnected", "ready": False, "spa": "Backyard"}


def test_descriptor_address():
    assert DESCRIPTOR.address == ("192.0.2.10", 9090)
    with pytest.raises(ValueError):
        SocketDescriptor(host="192.0.2.10", socket_id=1, member_id=1, name="x").address


class _LoopbackSpa:
    """A one-connection TCP peer speaking the controller protocol."""

    def __init__(self, ack: bytes, frame: bytes = b""):
        self.ack = ack
        self.frame = frame
        self.received = []
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.bind(("127.0.0.1", 0))
        self.server.listen(1)
        self.server.settimeout(5)
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    @property
    def descriptor(self) -> SocketDescriptor:
        host, port = self.server.getsockname()
        return SocketDescriptor(host=f"{host}:{port}", socket_id=42, member_id=7, name="Loopback")

    def _serve(self):
        try:
            conn, _ = self.server.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(5)
            try:
                self.received.append(conn.recv(64))
                conn.sendall(self.ack)
                if self.frame:
                    self.received.append(conn.recv(64))
                    conn.sendall(self.frame)
                conn.recv(64)
            except OSError:
                pass

    def stop(self):
        self.server.close()
        self.thread.join(timeout=5)


def test_loopback_handshake_and_poll(rf_frame):
    spa = _LoopbackSpa(ACK, rf_frame)
    try:
        session = create_device_session(spa.descriptor, io_timeout=2.0)
        attributes = session.poll()
        session.close()
    finally:
        spa.stop()
    assert attributes.water_temperature == pytest.approx(37.6)
    assert spa.received == [b"<connect--42--7>", b"RF\n"]


def test_loopback_bad_acknowledgement():
    spa = _LoopbackSpa(b"Authentication failed!")
    session = DeviceSession(spa.descriptor, io_timeout=2.0)
    try:
        with pytest.raises(HandshakeFailedError):
            session.connect()
    finally:
        spa.stop()
    assert session.state is ConnectionState.DISCONNECTED
