from spanetlink.clients.cloud import ApiConfig, Client, Session
from spanetlink.domain import SocketDescriptor, create_device_session
from spanetlink.parsing.rf import AttributeMapping, SpaAttributes, decode_rf_frame, parse
from spanetlink.transports.base import ConnectionState
from spanetlink.transports.tcp.transport import DeviceSession
from importlib.metadata import PackageNotFoundError, version

__all__ = [
    "ApiConfig",
    "AttributeMapping",
    "Client",
    "ConnectionState",
    "DeviceSession",
    "Session",
    "SocketDescriptor",
    "SpaAttributes",
    "create_device_session",
    "decode_rf_frame",
    "parse",
]

try:
    __version__ = version("spanetlink")
except PackageNotFoundError:
    __version__ = "0.0.0"
