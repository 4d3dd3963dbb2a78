"""Transport agnostic request descriptors and the builder producing them."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Union
from urllib.parse import urlencode

from .config import RequestConfig, TransportOptions
from .errors import InvalidRequestError
from .urls import append_query

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class FileBody:
    """A request body streamed from a file on disk."""

    path: str
    size: int


@dataclass(frozen=True)
class Credentials:
    user: str
    password: str = ""


Body = Union[bytes, FileBody, None]


@dataclass
class RequestDescriptor:
    """Fully resolved, transport ready representation of one HTTP call.

    Owned by a single dispatch. ``before`` listeners receive it and may
    adjust it before the transport runs.

    Attributes:
        method: One of GET, POST, PUT, DELETE or HEAD.
        url: Final URL handed to the transport, query string included.
        parameters: Request parameters in insertion order.
        body: Raw bytes, a ``FileBody`` or None.
        headers: Header name to value, names kept as given.
        cookies: Cookie name to value, also serialized into ``headers``.
        auth: Credentials for HTTP authentication, if any.
        auth_scheme: ``"any"`` lets the transport pick a scheme.
        custom_method: Explicit verb the transport must send, if set.
        options: Transport options (timeouts, redirects, TLS).
    """

    method: str
    url: str
    parameters: dict[str, Any] = field(default_factory=dict)
    body: Body = None
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    auth: Credentials | None = None
    auth_scheme: str | None = None
    custom_method: str | None = None
    options: TransportOptions = field(default_factory=TransportOptions)

    @property
    def verb(self) -> str:
        """The verb that goes on the wire."""
        return self.custom_method or self.method


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    lowered = name.lower()
    return any(key.lower() == lowered for key in headers)


def _cookie_header(cookie: Any) -> str:
    if isinstance(cookie, Mapping):
        return "; ".join(f"{key}={value}" for key, value in cookie.items())
    if isinstance(cookie, str):
        return cookie
    return ""


def _put_body(data: Any) -> tuple[Body, str | None]:
    """Resolve a PUT payload into a body and an optional verb override."""

    if isinstance(data, (str, os.PathLike)) and data and os.path.isfile(data):
        path = os.fspath(data)
        return FileBody(path=path, size=os.path.getsize(path)), None
    if data is None:
        return b"", "PUT"
    if isinstance(data, os.PathLike):
        data = os.fspath(data)
    if isinstance(data, str):
        return data.encode("utf-8"), "PUT"
    if isinstance(data, Mapping):
        return urlencode(data, doseq=True).encode("ascii"), "PUT"
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data), "PUT"
    return str(data).encode("utf-8"), "PUT"


def build_request(url: str, config: Mapping[str, Any]) -> RequestDescriptor:
    """Build a request descriptor from a URL and a merged config tree.

    No network I/O happens here. The only filesystem access is the check
    whether a PUT payload names an existing file.

    Args:
        url: Target URL, credentials already stripped.
        config: Client and per-call config, merged. Library defaults are
            applied underneath it.

    Returns:
        The descriptor to hand to a transport.

    Raises:
        InvalidRequestError: If the URL is empty, or the method or an option
            is invalid.
    """
    if not url:
        raise InvalidRequestError("No URL has been set for request")

    resolved = RequestConfig.from_tree(config)
    parameters = dict(resolved.parameters)

    headers = {str(key): str(value) for key, value in resolved.headers.items()}
    if not _has_header(headers, "User-Agent"):
        headers["User-Agent"] = resolved.options.user_agent

    cookies: dict[str, str] = {}
    if isinstance(resolved.cookie, Mapping):
        cookies = {str(k): str(v) for k, v in resolved.cookie.items()}
    cookie = _cookie_header(resolved.cookie)
    if cookie:
        headers["Cookie"] = cookie

    request = RequestDescriptor(
        method=resolved.method,
        url=url,
        parameters=parameters,
        headers=headers,
        cookies=cookies,
        options=resolved.options,
    )

    if resolved.user:
        request.auth = Credentials(resolved.user, resolved.password)
        request.auth_scheme = "any"

    if resolved.method == "POST":
        request.body = urlencode(parameters, doseq=True).encode("ascii")
        if not _has_header(headers, "Content-Type"):
            headers["Content-Type"] = FORM_CONTENT_TYPE
    else:
        request.url = append_query(url, parameters)

    if resolved.method == "PUT":
        request.body, request.custom_method = _put_body(resolved.data)
    elif resolved.method == "DELETE":
        request.custom_method = "DELETE"

    logger.debug(
        "Built %s request for %s (body=%s)",
        request.verb,
        request.url,
        type(request.body).__name__,
    )
    return request
