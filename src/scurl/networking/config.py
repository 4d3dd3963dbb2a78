"""Configuration models for the HttpClient.

Configuration travels as plain nested mappings ("config trees") so callers can
override any part of it per request. Trees are layered with
``merge_config`` in this order, last one winning::

    default_config()  ->  HttpClientConfig.settings  ->  per-call config

The merged tree is then read into the typed ``RequestConfig`` consumed by the
request builder.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .errors import InvalidRequestError
from .merge import merge_config
from .urls import parse_parameters

VERSION = "1.0.3"

DEFAULT_USER_AGENT = (
    f"scurl/{VERSION}; Python/{platform.python_version()} "
    "(+https://github.com/sesser/scurl)"
)

METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "HEAD"})


def default_config() -> dict[str, Any]:
    """Return a fresh copy of the library level defaults."""

    return {
        "method": "GET",
        "auth": {"user": "", "pass": ""},
        "data": "",
        "parameters": {},
        "cookie": {},
        "headers": {
            "Connection": "keep-alive",
            "Keep-Alive": 300,
            "Accept-Charset": "ISO-8859-1,utf-8;q=0.7,*;q=0.7",
            "Accept-Language": "en-us,en;q=0.5",
        },
        "options": {
            "user-agent": DEFAULT_USER_AGENT,
            "timeout": 10,
            "connect_timeout": 2,
            "follow_location": True,
            "max_redirects": 3,
            "ca_bundle": None,
        },
    }


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class TransportOptions:
    """Options a transport must honor for one request.

    Peer and host verification are always on; only the CA bundle can be
    changed.
    """

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 10
    connect_timeout: float = 2
    follow_location: bool = True
    max_redirects: int = 3
    ca_bundle: str | None = None
    verify_peer: bool = field(default=True, init=False)
    verify_host: int = field(default=2, init=False)

    def __post_init__(self) -> None:
        if self.timeout is None or self.timeout <= 0:
            raise InvalidRequestError("timeout must be > 0")
        if self.connect_timeout is None or self.connect_timeout <= 0:
            raise InvalidRequestError("connect_timeout must be > 0")
        if self.max_redirects is None or self.max_redirects < 0:
            raise InvalidRequestError("max_redirects must be >= 0")

    @classmethod
    def from_tree(cls, options: Mapping[str, Any]) -> TransportOptions:
        return cls(
            user_agent=str(options.get("user-agent") or DEFAULT_USER_AGENT),
            timeout=options.get("timeout", 10),
            connect_timeout=options.get("connect_timeout", 2),
            follow_location=bool(options.get("follow_location", True)),
            max_redirects=options.get("max_redirects", 3),
            ca_bundle=options.get("ca_bundle"),
        )


@dataclass(frozen=True)
class RequestConfig:
    """Typed view of a fully merged config tree."""

    method: str = "GET"
    user: str = ""
    password: str = ""
    data: Any = ""
    parameters: Mapping[str, Any] = field(default_factory=_empty_mapping)
    cookie: Any = field(default_factory=_empty_mapping)
    headers: Mapping[str, Any] = field(default_factory=_empty_mapping)
    options: TransportOptions = field(default_factory=TransportOptions)

    def __post_init__(self) -> None:
        method = str(self.method or "GET").upper()
        if method not in METHODS:
            raise InvalidRequestError(
                f"unsupported request method: {self.method!r}"
            )
        object.__setattr__(self, "method", method)
        object.__setattr__(
            self, "parameters", _frozen(parse_parameters(self.parameters))
        )
        object.__setattr__(self, "headers", _frozen(self.headers))
        if isinstance(self.cookie, Mapping):
            object.__setattr__(self, "cookie", _frozen(self.cookie))

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any]) -> RequestConfig:
        """Overlay ``tree`` on the library defaults and read it.

        Args:
            tree: Merged client and per-call configuration.

        Returns:
            The typed configuration.

        Raises:
            InvalidRequestError: If the method or an option is invalid.
        """
        merged = merge_config(default_config(), tree)
        auth = merged.get("auth") or {}
        options = merged.get("options") or {}
        return cls(
            method=merged.get("method") or "GET",
            user=str(auth.get("user") or ""),
            password=str(auth.get("pass") or ""),
            data=merged.get("data"),
            parameters=merged.get("parameters") or {},
            cookie=merged.get("cookie") or {},
            headers=merged.get("headers") or {},
            options=TransportOptions.from_tree(options),
        )


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    Attributes:
        settings: Instance level config tree, merged over the library
            defaults and under every per-call config.
        propagate_listener_errors: Re-raise exceptions thrown by listeners.
            When False they are logged and the dispatch carries on.
    """

    settings: Mapping[str, Any] = field(default_factory=_empty_mapping)
    propagate_listener_errors: bool = True

    def __post_init__(self) -> None:
        # Freeze a deep copy to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "settings",
            MappingProxyType(merge_config({}, self.settings)),
        )
