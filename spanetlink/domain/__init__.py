"""
Domain types for the spanetlink library.

It exposes the ``SocketDescriptor`` that identifies one spa controller and a
factory for the device sessions that talk to it.
"""
from spanetlink.domain.socket import SocketDescriptor
from spanetlink.domain.factory import create_device_session

__all__ = ["SocketDescriptor", "create_device_session"]
