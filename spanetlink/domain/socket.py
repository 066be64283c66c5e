from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SocketDescriptor:
    """
    One spa controller as listed by the SpaNET cloud.

    Attributes:
        host: The controller's ``host:port`` address (``spaurl``).
        socket_id: The vendor's socket identifier, sent in the handshake.
        member_id: The owning member, sent in the handshake.
        name: The display name chosen in the SpaNET app.
    """
    host: str
    socket_id: int
    member_id: int
    name: str
    id: str = ""
    mac_addr: str = ""
    active: str = ""
    signal_strength: int = 0

    @property
    def address(self) -> tuple[str, int]:
        host, sep, port = self.host.strip().rpartition(":")
        if not sep or not host:
            raise ValueError(f"expected 'host:port', got {self.host!r}")
        return host, int(port)

