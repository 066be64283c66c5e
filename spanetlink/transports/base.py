from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    HANDSHAKING = "handshaking"
    READY = "ready"
    FAULTED = "faulted"


class DeviceError(Exception):
    """Base class for failures talking to a spa controller."""


class ConnectFailedError(DeviceError):
    """The TCP connection to the controller could not be opened."""


class HandshakeFailedError(DeviceError):
    """The controller did not acknowledge the connect command."""


class DeviceTimeoutError(DeviceError):
    """No response arrived before the operation deadline."""


class DeviceIOError(DeviceError):
    """Reading from or writing to the controller failed."""


class DecodeFailedError(DeviceError):
    """The controller answered with something that is not a status frame."""


class NotConnectedError(DeviceError):
    """A request was made while the session is not ready."""


class DeviceTransport(ABC):
    state: ConnectionState

    @abstractmethod
    def connect(self, descriptor: Any = None) -> None:
        ...

    @abstractmethod
    def poll(self, timeout: float | None = None) -> Any:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.READY

    def health(self) -> dict[str, Any]:
        return {"state": self.state.value, "ready": self.is_ready}
