"""Transports executing request descriptors.

A transport performs the actual network I/O for one ``RequestDescriptor`` and
reports back the raw response (status line, headers, blank line, body) or a
``TransportError``. It never raises for network failures.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from http.cookiejar import DefaultCookiePolicy
from typing import IO, Any, Protocol

import requests
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth

from .errors import (
    CURLE_PEER_FAILED_VERIFICATION,
    CURLE_READ_ERROR,
    CURLE_TOO_MANY_REDIRECTS,
    CURLE_UNSUPPORTED_PROTOCOL,
    CURLE_URL_MALFORMAT,
    RequestTimeoutError,
    RetryableHttpError,
    TransportError,
)
from .request import Body, FileBody, RequestDescriptor
from .response import HEAD_SEPARATOR
from .types import Err, Ok, Result

logger = logging.getLogger(__name__)

HTTP_VERSIONS = {9: "HTTP/0.9", 10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


class Transport(Protocol):
    """What the HttpClient needs from a transport."""

    def execute(
        self, request: RequestDescriptor
    ) -> Result[bytes, TransportError]:
        """Send ``request`` and return the raw response bytes.

        ``Ok.meta`` / ``Err.meta`` carry diagnostics (effective URL, timing)
        that are passed through to the Response untouched.
        """
        ...


class RequestsTransport:
    """Transport backed by a ``requests.Session``.

    ``requests`` already undoes transfer and content encodings, so the raw
    bytes returned are the received status line and headers re-serialized in
    front of the decoded body.

    The session only provides connection pooling. It stores no cookies and
    ignores the environment (proxies, ``.netrc``, CA bundle variables), so
    everything sent is on the descriptor. Calls are serialized because the
    redirect limit lives on the session.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()
        self._session.cookies.set_policy(
            DefaultCookiePolicy(allowed_domains=[])
        )
        self._session.trust_env = False
        self._lock = threading.Lock()

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _auth(request: RequestDescriptor) -> AuthBase | None:
        """Resolve the auth handler; "any" falls back to basic auth."""
        if request.auth is None:
            return None
        if request.auth_scheme == "digest":
            return HTTPDigestAuth(request.auth.user, request.auth.password)
        return HTTPBasicAuth(request.auth.user, request.auth.password)

    @staticmethod
    def _verify(request: RequestDescriptor) -> bool | str:
        if request.options.ca_bundle:
            return request.options.ca_bundle
        return request.options.verify_peer

    @staticmethod
    def _body(
        body: Body, headers: dict[str, str], stack: ExitStack
    ) -> bytes | IO[bytes] | None:
        if isinstance(body, FileBody):
            headers["Content-Length"] = str(body.size)
            return stack.enter_context(open(body.path, "rb"))
        return body

    def _build_meta(
        self,
        request: RequestDescriptor,
        response: requests.Response | None,
        timeout: tuple[float, float],
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary from response and request."""
        meta: dict[str, Any] = {}
        meta["method"] = request.verb
        meta["url"] = request.url
        meta["timeout_s"] = timeout

        if response is not None:
            meta["status_code"] = response.status_code
            meta["url"] = response.url
            meta["reason"] = response.reason
            meta["redirects"] = len(response.history)
            try:
                meta["elapsed_s"] = response.elapsed.total_seconds()
            except AttributeError:
                pass
        if final_error is not None:
            meta["final_error"] = final_error

        return meta

    @staticmethod
    def _map_exception(
        e: requests.exceptions.RequestException,
    ) -> TransportError:
        """Map requests exceptions to scurl transport errors."""
        message = str(e)
        if isinstance(e, requests.exceptions.SSLError):
            return TransportError(
                message, code=CURLE_PEER_FAILED_VERIFICATION
            )
        if isinstance(e, requests.exceptions.Timeout):
            return RequestTimeoutError(message)
        if isinstance(e, requests.exceptions.TooManyRedirects):
            return TransportError(message, code=CURLE_TOO_MANY_REDIRECTS)
        if isinstance(e, requests.exceptions.InvalidSchema):
            return TransportError(message, code=CURLE_UNSUPPORTED_PROTOCOL)
        if isinstance(
            e,
            (
                requests.exceptions.MissingSchema,
                requests.exceptions.InvalidURL,
            ),
        ):
            return TransportError(message, code=CURLE_URL_MALFORMAT)
        if isinstance(e, requests.exceptions.ConnectionError):
            return RetryableHttpError(message)

        # Generic fallback for other request exceptions
        return TransportError(message)

    @staticmethod
    def _serialize(response: requests.Response) -> bytes:
        version = HTTP_VERSIONS.get(
            getattr(response.raw, "version", None), "HTTP/1.1"
        )
        reason = response.reason or ""
        status_line = f"{version} {response.status_code} {reason}"
        lines = [status_line.rstrip()]
        lines.extend(
            f"{name}: {value}" for name, value in response.headers.items()
        )
        head = "\r\n".join(lines).encode("iso-8859-1", errors="replace")
        return head + HEAD_SEPARATOR + response.content

    def execute(
        self, request: RequestDescriptor
    ) -> Result[bytes, TransportError]:
        options = request.options
        timeout = (options.connect_timeout, options.timeout)
        headers = dict(request.headers)

        with ExitStack() as stack:
            try:
                data = self._body(request.body, headers, stack)
            except OSError as exc:
                return Err(
                    TransportError(
                        f"cannot read request body: {exc}",
                        code=CURLE_READ_ERROR,
                    ),
                    meta=self._build_meta(
                        request, None, timeout, final_error=type(exc).__name__
                    ),
                )

            logger.debug("%s %s", request.verb, request.url)
            try:
                with self._lock:
                    self._session.max_redirects = options.max_redirects
                    response = self._session.request(
                        request.verb,
                        request.url,
                        headers=headers,
                        data=data,
                        auth=self._auth(request),
                        timeout=timeout,
                        allow_redirects=options.follow_location,
                        verify=self._verify(request),
                    )
            except requests.exceptions.RequestException as exc:
                return Err(
                    self._map_exception(exc),
                    meta=self._build_meta(
                        request,
                        exc.response,
                        timeout,
                        final_error=type(exc).__name__,
                    ),
                )

        return Ok(
            self._serialize(response),
            meta=self._build_meta(request, response, timeout),
        )
