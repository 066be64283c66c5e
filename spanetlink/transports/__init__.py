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

__all__ = [
    "ConnectFailedError",
    "ConnectionState",
    "DecodeFailedError",
    "DeviceError",
    "DeviceIOError",
    "DeviceTimeoutError",
    "DeviceTransport",
    "HandshakeFailedError",
    "NotConnectedError",
]
