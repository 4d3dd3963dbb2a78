"""Synchronous HTTP client for the scurl networking layer.

The client layers configuration (library defaults, client settings, per-call
config), builds a transport agnostic request descriptor, hands it to a
transport and decodes the raw answer. Listeners can hook into the lifecycle:

    before(request)                 right before the transport runs
    error(code, message, request)   when the transport failed
    after(request, response)        always, last

Transport failures never raise; they come back as an error Response.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Union

from .config import HttpClientConfig
from .errors import InvalidRequestError
from .events import Event, Handler, Listener, ListenerHandle, ListenerRegistry
from .merge import merge_config
from .request import RequestDescriptor, build_request
from .response import Response, decode_response
from .transport import RequestsTransport, Transport
from .types import Ok
from .urls import build_url, parse_parameters, parse_url

logger = logging.getLogger(__name__)

Params = Union[str, Mapping[str, Any], None]


class HttpClient:
    """Core HTTP client (sync).

    Each client owns its listener registry and, unless one is injected, its
    transport. A client may be shared between threads; listener registration
    is lock-guarded.
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        """Create a new HttpClient.

        Args:
            config: Client level settings and listener error policy.
            transport: Transport to use. Defaults to a RequestsTransport
                owned (and closed) by this client.
        """
        self._config = config or HttpClientConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or RequestsTransport()
        self._listeners = ListenerRegistry()

    def close(self) -> None:
        if self._owns_transport and isinstance(
            self._transport, RequestsTransport
        ):
            self._transport.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def add_listener(
        self, event: Event | str, callback: Handler
    ) -> ListenerHandle:
        """Register a listener.

        Args:
            event: ``before``, ``after`` or ``error``.
            callback: Called with the arguments documented for ``event``.

        Returns:
            Handle for ``remove_listener``.

        Raises:
            InvalidListenerError: For unknown events or non-callables.
        """
        return self._listeners.add(event, callback)

    def remove_listener(
        self, event: Event | str, handle: ListenerHandle
    ) -> bool:
        """Remove a listener; False when the handle is unknown."""
        return self._listeners.remove(event, handle)

    def remove_listeners(self, event: Event | str | None = None) -> None:
        """Remove all listeners of ``event``, or of every event."""
        self._listeners.clear(event)

    def get_listeners(
        self, event: Event | str | None = None
    ) -> dict[Any, Any]:
        return self._listeners.listeners(event)

    def get_listener(
        self, event: Event | str, handle: ListenerHandle
    ) -> Listener | None:
        return self._listeners.get(event, handle)

    def _emit(self, event: Event, *args: Any) -> None:
        for callback in self._listeners.snapshot(event):
            try:
                callback(*args)
            except Exception:
                if self._config.propagate_listener_errors:
                    raise
                logger.exception("Listener for %r event failed", event.value)

    def _prepare(
        self,
        url: str,
        params: Params,
        config: Mapping[str, Any] | None,
        method: str,
    ) -> RequestDescriptor:
        """Merge configuration and build the request descriptor."""
        if not url:
            raise InvalidRequestError("No URL has been set for request")

        merged = merge_config(self._config.settings, config or {})
        merged["method"] = method
        merged["parameters"] = {
            **parse_parameters(merged.get("parameters")),
            **parse_parameters(params),
        }

        parts = parse_url(url)
        if parts.user:
            merged["auth"] = {"user": parts.user, "pass": parts.password}

        return build_request(build_url(parts, strip_auth=True), merged)

    def request(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
        method: str = "GET",
    ) -> Response:
        """Build, send and decode one request.

        Args:
            url: Absolute URL, may carry ``user[:pass]@`` credentials which are
                moved into the auth config.
            params: Query string or mapping of parameters. Sent in the query
                string, or form-encoded in the body for POST.
            config: Per-call config tree, highest precedence.
            method: GET, POST, PUT, DELETE or HEAD.

        Returns:
            The decoded Response, or an error Response when the transport
            failed.

        Raises:
            MalformedUrlError: If the URL cannot be parsed.
            InvalidRequestError: If the request cannot be built.
            MalformedResponseError: If the transport answered with bytes that
                are not an HTTP response.
        """
        request = self._prepare(url, params, config, method)

        self._emit(Event.BEFORE, request)

        logger.debug("Dispatching %s %s", request.verb, request.url)
        result = self._transport.execute(request)
        request_url = result.meta.get("url", request.url)

        if isinstance(result, Ok):
            response = replace(
                decode_response(result.value),
                request_url=request_url,
                request_parameters=request.parameters,
                info=result.meta,
            )
        else:
            error = result.error
            logger.warning(
                "%s %s failed: [%s] %s",
                request.verb,
                request.url,
                error.code,
                error.message,
            )
            response = Response.from_transport_error(
                error,
                request_url=request_url,
                request_parameters=request.parameters,
                info=result.meta,
            )
            self._emit(Event.ERROR, error.code, error.message, request)

        self._emit(Event.AFTER, request, response)
        return response

    def get(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
    ) -> Response:
        """Perform an HTTP GET request.

        Args:
            url: Absolute URL to request.
            params: Query string or mapping appended to the URL.
            config: Per-call config (headers, cookie, auth, options).

        Returns:
            The decoded Response.
        """
        return self.request(url, params, config, "GET")

    def post(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
    ) -> Response:
        """Perform an HTTP POST request with form-encoded ``params``."""
        return self.request(url, params, config, "POST")

    def put(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
    ) -> Response:
        """Perform an HTTP PUT request.

        The payload comes from ``config["data"]``: a path to an existing file
        is streamed, anything else is sent literally.
        """
        return self.request(url, params, config, "PUT")

    def delete(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
    ) -> Response:
        return self.request(url, params, config, "DELETE")

    def head(
        self,
        url: str,
        params: Params = "",
        config: Mapping[str, Any] | None = None,
    ) -> Response:
        return self.request(url, params, config, "HEAD")
