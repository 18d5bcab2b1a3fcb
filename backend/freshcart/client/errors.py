class ClientError(Exception):
    """Base class for failures talking to the storefront API."""


class AuthenticationError(ClientError):
    """The bearer token was missing, invalid or expired (HTTP 401)."""


class ApiError(ClientError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class NetworkError(ClientError):
    """The request never completed (DNS, connection, timeout)."""
