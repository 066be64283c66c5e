from __future__ import annotations

from typing import Any, Optional

from spanetlink.domain.socket import SocketDescriptor
from spanetlink.parsing.rf import AttributeMapping
from spanetlink.transports.tcp.transport import DeviceSession


def create_device_session(
    descriptor: SocketDescriptor,
    mapping: Optional[AttributeMapping] = None,
    connect: bool = True,
    **options: Any,
) -> DeviceSession:
    session = DeviceSession(descriptor=descriptor, mapping=mapping, **options)
    if connect:
        session.connect()
    return session
