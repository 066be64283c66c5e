from spanetlink.clients.cloud import (
    ApiConfig,
    AuthError,
    AuthProtocolError,
    AuthRejectedError,
    AuthTransportError,
    Client,
    Session,
    SessionInvalidError,
    SpaNotFoundError,
)

__all__ = [
    "ApiConfig",
    "AuthError",
    "AuthProtocolError",
    "AuthRejectedError",
    "AuthTransportError",
    "Client",
    "Session",
    "SessionInvalidError",
    "SpaNotFoundError",
]
