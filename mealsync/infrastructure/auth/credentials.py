"""Credential extraction from HTTP and WebSocket connections."""

from typing import Any, Mapping, Optional

from starlette.requests import HTTPConnection

from mealsync.domain.shared.ports.auth_service import Credentials

CLIENT_ID_HEADER = "x-client-id"
DEV_TOKEN_HEADER = "x-dev-token"
TOKEN_COOKIE = "token"


def extract_bearer(auth_header: Optional[str]) -> Optional[str]:
    """Extract Bearer token from an Authorization header.

    Examples:
        >>> extract_bearer("Bearer eyJ...")
        'eyJ...'
        >>> extract_bearer("eyJ...") is None
        True
    """
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2:
        return None

    scheme, token = parts
    if scheme.lower() != "bearer":
        return None

    return token


def credentials_from_connection(
    connection: HTTPConnection, connection_params: Optional[Mapping[str, Any]] = None
) -> Credentials:
    """Collect credentials from headers, cookies and WS connection params.

    Order: Authorization header, ``token`` cookie, ``token`` (or
    ``Authorization``) connection parameter.
    """
    token = extract_bearer(connection.headers.get("authorization"))
    if token is None:
        token = connection.cookies.get(TOKEN_COOKIE) or None
    if token is None and connection_params:
        raw = connection_params.get("token")
        if raw is None:
            raw = extract_bearer(connection_params.get("Authorization"))
        token = str(raw) if raw else None

    dev_token = connection.headers.get(DEV_TOKEN_HEADER)
    if dev_token is None and connection_params:
        dev_token = connection_params.get(DEV_TOKEN_HEADER)

    return Credentials(token=token, dev_token=dev_token or None)


def client_id_from_connection(
    connection: HTTPConnection, connection_params: Optional[Mapping[str, Any]] = None
) -> Optional[str]:
    """Per-browser-session id, None when the caller did not send one."""
    client_id = connection.headers.get(CLIENT_ID_HEADER)
    if not client_id and connection_params:
        client_id = connection_params.get(CLIENT_ID_HEADER) or connection_params.get("clientId")
    return str(client_id) if client_id else None
