"""Error taxonomy for the scurl networking layer.

Construction errors (bad URL, bad request config, bad listener) and decoding
errors are raised to the caller. Transport errors are normally carried inside
an error Response instead of being raised; see ``HttpClient.request``.
"""

from __future__ import annotations


class HttpClientError(Exception):
    """Base class for all scurl errors."""


class MalformedUrlError(HttpClientError, ValueError):
    """The URL string cannot be parsed as a URL."""


class InvalidRequestError(HttpClientError, ValueError):
    """The request cannot be built: no URL, bad method or bad option."""


class MalformedResponseError(HttpClientError, ValueError):
    """Raw response bytes lack a head/body boundary or a status line."""


class InvalidListenerError(HttpClientError, ValueError):
    """Unknown event name or non-callable listener."""


# curl-compatible error codes used by the bundled transport.
CURLE_UNSUPPORTED_PROTOCOL = 1
CURLE_URL_MALFORMAT = 3
CURLE_COULDNT_CONNECT = 7
CURLE_READ_ERROR = 26
CURLE_OPERATION_TIMEDOUT = 28
CURLE_TOO_MANY_REDIRECTS = 47
CURLE_RECV_ERROR = 56
CURLE_PEER_FAILED_VERIFICATION = 60


class TransportError(HttpClientError):
    """Network or protocol failure reported by a transport.

    Attributes:
        code: Numeric error code (curl-compatible for the bundled transport).
        message: Human readable description.
    """

    default_code = CURLE_RECV_ERROR

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = self.default_code if code is None else code

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"{name}(code={self.code}, message={self.message!r})"


class RequestTimeoutError(TransportError):
    default_code = CURLE_OPERATION_TIMEDOUT


class RetryableHttpError(TransportError):
    """The connection to the host could not be established (curl code 7)."""

    default_code = CURLE_COULDNT_CONNECT
