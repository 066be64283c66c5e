"""
Client for the SpaNET cloud directory.

The cloud is only used to log in and to find the network address and
identifiers of a spa controller; all telemetry is then read directly from
the controller over TCP (see ``spanetlink.transports.tcp``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spanetlink.domain import SocketDescriptor, create_device_session
from spanetlink.resources import load_api_config
from spanetlink.transports.tcp.transport import DeviceSession

logger = logging.getLogger(__name__)

API_USER_AGENT = "spanetlink"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class AuthError(Exception):
    """Base class for SpaNET cloud failures."""


class AuthTransportError(AuthError):
    """The cloud API could not be reached."""


class AuthProtocolError(AuthError):
    """The cloud API answered with something that could not be understood."""


class AuthRejectedError(AuthError):
    """The cloud API reported ``success: false``."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SessionInvalidError(AuthError):
    """The session was invalidated by an earlier failure and must be renewed."""


class SpaNotFoundError(AuthError):
    """No spa with the requested name is linked to the account."""


@dataclass(frozen=True)
class ApiConfig:
    api_url: str
    api_key: str
    timeout: float = 10.0

    @classmethod
    def default(cls) -> "ApiConfig":
        conf = load_api_config()["SPANET"]
        return cls(api_url=conf["API_URL"], api_key=conf["API_KEY"], timeout=float(conf.get("TIMEOUT", 10.0)))


@dataclass
class Session:
    """Authentication state returned by ``Client.login``."""
    member_id: str
    session_id: str
    valid: bool = True

    def invalidate(self) -> None:
        self.valid = False


class LoginData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id_member: int | str
    id_session: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    data: Optional[LoginData] = None
    error: Optional[str] = None


class SocketRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int | str = ""
    active: int | str = ""
    id_member: int
    id_sockets: int
    mac_addr: str = ""
    moburl: str = ""
    name: str
    spaurl: str = ""
    signal_strength: int = Field(0, alias="signalStrength")

    def to_descriptor(self) -> SocketDescriptor:
        return SocketDescriptor(
            host=self.spaurl,
            socket_id=self.id_sockets,
            member_id=self.id_member,
            name=self.name,
            id=str(self.id),
            mac_addr=self.mac_addr,
            active=str(self.active),
            signal_strength=self.signal_strength,
        )


class SocketsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool
    sockets: list[SocketRecord] = Field(default_factory=list)
    error: Optional[str] = None


def _validate(model: Type[_ModelT], body: Any, what: str) -> _ModelT:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise AuthProtocolError(f"Unexpected {what} response: {exc}") from exc


class Client:
    """
    SpaNET cloud directory client.

    The API location and key are passed in with ``config``; by default they
    are read from the packaged ``api_config.json``. Calls are not locked, so
    callers must not share one ``Session`` between concurrent calls.
    """

    def __init__(self, config: ApiConfig | None = None, http: requests.Session | None = None) -> None:
        self.config = config or ApiConfig.default()
        self.http = http or requests.Session()

    def login(self, username: str, password_hash: str) -> Session:
        """
        Log into the SpaNET account.

        Args:
            username: Account login (email address).
            password_hash: Password hash as stored by the SpaNET app.

        Returns:
            A valid ``Session``.

        Raises:
            AuthTransportError: If the API cannot be reached.
            AuthProtocolError: If the reply is not the expected JSON.
            AuthRejectedError: If the API reports ``success: false``.
        """
        body = self._request(
            "POST",
            "MemberLogin",
            json={"login": username, "api_key": self.config.api_key, "password": password_hash},
        )
        response = _validate(LoginResponse, body, "login")
        if not response.success:
            raise AuthRejectedError(response.error or "Login rejected")
        if response.data is None:
            raise AuthProtocolError("Login response has no data")

        session = Session(member_id=str(response.data.id_member), session_id=response.data.id_session)
        logger.info("Logged into SpaNET account, member %s", session.member_id)
        return session

    def list_sockets(self, session: Session) -> list[SocketDescriptor]:
        """
        List the spas linked to the account.

        A ``success: false`` reply invalidates ``session``.

        Raises:
            SessionInvalidError: If ``session`` was already invalidated. No request is made.
            AuthTransportError: If the API cannot be reached.
            AuthProtocolError: If the reply is not the expected JSON.
            AuthRejectedError: If the API reports ``success: false``.
        """
        if not session.valid:
            raise SessionInvalidError("Session is no longer valid, log in again")
        body = self._request(
            "GET",
            "membersockets",
            params={"id_member": session.member_id, "id_session": session.session_id},
        )
        response = _validate(SocketsResponse, body, "membersockets")
        if not response.success:
            session.invalidate()
            raise AuthRejectedError(response.error or "Failed to fetch sockets")

        sockets = [record.to_descriptor() for record in response.sockets]
        logger.debug("Account has %d spa(s): %s", len(sockets), [s.name for s in sockets])
        return sockets

    def resolve(self, session: Session, spa_name: str) -> SocketDescriptor:
        """
        Return the first spa whose name matches ``spa_name`` exactly.

        Raises:
            SpaNotFoundError: If no spa has that name.
            AuthError: Any failure from ``list_sockets``.
        """
        sockets = self.list_sockets(session)
        for descriptor in sockets:
            if descriptor.name == spa_name:
                return descriptor
        raise SpaNotFoundError(f"No spa named {spa_name!r}. Available: {[s.name for s in sockets]}")

    def open_device(self, session: Session, spa_name: str, connect: bool = True, **options: Any) -> DeviceSession:
        return create_device_session(self.resolve(session, spa_name), connect=connect, **options)

    def close(self) -> None:
        self.http.close()

    # ---- helpers ----
    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.config.api_url}{path}"
        try:
            response = self.http.request(
                method,
                url,
                headers={"User-Agent": API_USER_AGENT, "Accept": "application/json"},
                timeout=self.config.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise AuthTransportError(f"{method} {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise AuthProtocolError(
                f"{method} {path} returned a non-JSON response: {response.status_code} {response.text}"
            ) from exc
